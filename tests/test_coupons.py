"""Tests for coupon redemption and lookup."""

from datetime import datetime, timedelta, timezone

import pytest

from app.modules.coupons.service import CouponService, parse_timestamp


def _iso(delta):
    return (datetime.now(timezone.utc) + delta).isoformat()


@pytest.fixture
def payer(make_student):
    return make_student("payer", payment_done=False)


def redeem(client, user, code, user_id=None):
    return client.post(
        "/api/validate-coupon",
        json={"couponCode": code, "userId": user_id or user.id},
        headers=user.headers,
    )


def profile_of(fake_db, user_id):
    return next(p for p in fake_db.rows("profiles") if p["id"] == user_id)


def coupon_of(fake_db, code):
    return next(c for c in fake_db.rows("coupons") if c["code"] == code)


class TestValidateCoupon:
    """Tests for POST /api/validate-coupon."""

    def test_redeem_table_coupon(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "SPRING", "uses": 2, "max_uses": 10})
        response = redeem(client, payer, "SPRING")
        assert response.status_code == 200
        assert response.json() == {"valid": True, "message": "Coupon applied successfully!"}
        profile = profile_of(fake_db, payer.id)
        assert profile["payment_done"] is True
        assert profile["coupon_code"] == "SPRING"
        assert coupon_of(fake_db, "SPRING")["uses"] == 3

    def test_exhausted_coupon_rejected_without_writes(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "FULL", "uses": 5, "max_uses": 5})
        data = redeem(client, payer, "FULL").json()
        assert data["valid"] is False
        assert data["message"] == "Coupon has reached its usage limit"
        assert fake_db.writes == []
        assert profile_of(fake_db, payer.id)["payment_done"] is False

    def test_expired_coupon_rejected(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "OLD", "uses": 0, "max_uses": 5, "expires_at": _iso(timedelta(days=-1))})
        data = redeem(client, payer, "OLD").json()
        assert data == {"valid": False, "message": "Coupon has expired"}
        assert fake_db.writes == []

    def test_exhausted_and_expired_rejected(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "BOTH", "uses": 9, "max_uses": 1, "expires_at": _iso(timedelta(days=-3))})
        assert redeem(client, payer, "BOTH").json()["valid"] is False

    def test_future_expiry_accepted(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "SOON", "uses": 0, "max_uses": 1, "expires_at": _iso(timedelta(days=3))})
        assert redeem(client, payer, "SOON").json()["valid"] is True

    def test_short_fraction_expiry_read(self, client, fake_db, payer):
        # Postgres trims trailing zeros, leaving one fractional digit
        fake_db.rows("coupons").append({"code": "TRIM", "uses": 0, "max_uses": 5, "expires_at": "2020-01-01T00:00:00.5+00:00"})
        response = redeem(client, payer, "TRIM")
        assert response.status_code == 200
        assert response.json() == {"valid": False, "message": "Coupon has expired"}

    def test_unreadable_expiry_rejected(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "GARBLED", "uses": 0, "expires_at": "next tuesday"})
        response = redeem(client, payer, "GARBLED")
        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert fake_db.writes == []

    def test_no_max_uses_means_unlimited(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "OPEN", "uses": 1000, "max_uses": None})
        assert redeem(client, payer, "OPEN").json()["valid"] is True
        assert coupon_of(fake_db, "OPEN")["uses"] == 1001

    def test_fallback_code_marks_paid_without_increment(self, client, fake_db, payer):
        response = redeem(client, payer, "NAIROBI")
        assert response.json()["valid"] is True
        assert profile_of(fake_db, payer.id)["coupon_code"] == "NAIROBI"
        assert ("coupons", "update") not in fake_db.writes

    def test_table_row_wins_over_fallback_list(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "NAIROBI", "uses": 3, "max_uses": 3})
        data = redeem(client, payer, "NAIROBI").json()
        assert data["valid"] is False
        assert profile_of(fake_db, payer.id)["payment_done"] is False

    def test_codes_are_case_sensitive(self, client, fake_db, payer):
        data = redeem(client, payer, "nairobi").json()
        assert data == {"valid": False, "message": "Invalid coupon code"}
        assert fake_db.writes == []

    def test_redeeming_twice_keeps_paid_and_counts_twice(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "TWICE", "uses": 0, "max_uses": 10})
        redeem(client, payer, "TWICE")
        redeem(client, payer, "TWICE")
        assert profile_of(fake_db, payer.id)["payment_done"] is True
        assert coupon_of(fake_db, "TWICE")["uses"] == 2

    @pytest.mark.parametrize("body", [
        {"couponCode": "SPRING"},
        {"userId": "someone"},
        {"couponCode": "   ", "userId": "someone"},
    ])
    def test_missing_fields(self, client, payer, body):
        response = client.post("/api/validate-coupon", json=body, headers=payer.headers)
        assert response.status_code == 400

    def test_requires_sign_in(self, client, payer):
        response = client.post("/api/validate-coupon", json={"couponCode": "NAIROBI", "userId": payer.id})
        assert response.status_code == 401

    def test_cannot_redeem_for_someone_else(self, client, fake_db, payer, make_student):
        other = make_student("other", payment_done=False)
        response = redeem(client, payer, "NAIROBI", user_id=other.id)
        assert response.status_code == 403
        assert profile_of(fake_db, other.id)["payment_done"] is False

    def test_super_user_may_redeem_for_someone_else(self, client, fake_db, payer, make_student):
        admin = make_student("admin", app_metadata={"type": "super_user"})
        response = redeem(client, admin, "NAIROBI", user_id=payer.id)
        assert response.status_code == 200
        assert profile_of(fake_db, payer.id)["payment_done"] is True

    def test_profile_update_failure(self, client, fake_db, payer):
        fake_db.failures.add(("profiles", "update"))
        response = redeem(client, payer, "NAIROBI")
        assert response.status_code == 500
        assert response.json() == {"valid": False, "error": "Error updating profile"}

    def test_missing_profile_is_an_update_failure(self, client, fake_db, make_student):
        ghost = make_student("ghost", profile=False)
        response = redeem(client, ghost, "NAIROBI")
        assert response.status_code == 500
        assert response.json()["valid"] is False

    def test_lost_increment_does_not_roll_back(self, client, fake_db, payer):
        fake_db.rows("coupons").append({"code": "FLAKY", "uses": 0, "max_uses": 10})
        fake_db.failures.add(("coupons", "update"))
        assert redeem(client, payer, "FLAKY").json()["valid"] is True
        assert profile_of(fake_db, payer.id)["payment_done"] is True
        assert coupon_of(fake_db, "FLAKY")["uses"] == 0

    def test_rate_limited(self, client, payer):
        statuses = {redeem(client, payer, "NOPE").status_code for _ in range(25)}
        assert 429 in statuses


class TestIncrementUses:
    """Compare-and-swap on the uses counter."""

    def test_retries_after_concurrent_increment(self, fake_db):
        fake_db.rows("coupons").append({"code": "RACE", "uses": 3, "max_uses": 10})
        service = CouponService(fake_db, [])
        # Caller read uses=2; another redemption has since moved it to 3
        assert service._increment_uses({"code": "RACE", "uses": 2}) is True
        assert coupon_of(fake_db, "RACE")["uses"] == 4
        assert fake_db.calls.count(("coupons", "update")) == 2

    def test_null_uses_counts_as_zero(self, fake_db):
        fake_db.rows("coupons").append({"code": "FRESH", "uses": None})
        service = CouponService(fake_db, [])
        assert service._increment_uses({"code": "FRESH", "uses": None}) is True
        assert coupon_of(fake_db, "FRESH")["uses"] == 1

    def test_gives_up_after_bounded_attempts(self, fake_db, monkeypatch):
        fake_db.rows("coupons").append({"code": "HOT", "uses": 0})
        service = CouponService(fake_db, [])
        monkeypatch.setattr(service, "find_coupon", lambda code: {"code": code, "uses": 99})
        assert service._increment_uses({"code": "HOT", "uses": 50}) is False
        assert fake_db.calls.count(("coupons", "update")) == 3
        assert coupon_of(fake_db, "HOT")["uses"] == 0


class TestTestCoupon:
    """Tests for GET /api/test-coupon."""

    def test_table_coupon(self, client, fake_db):
        fake_db.rows("coupons").append({"code": "HALF", "uses": 0, "max_uses": 5, "discount_type": "percentage", "discount_value": 50})
        response = client.get("/api/test-coupon", params={"code": "HALF"})
        assert response.status_code == 200
        assert response.json() == {"valid": True, "discount_type": "percentage", "discount_value": 50}
        assert fake_db.writes == []

    def test_fallback_code(self, client):
        data = client.get("/api/test-coupon", params={"code": "NAIROBI"}).json()
        assert data["discount_type"] == "fixed"
        assert data["discount_value"] == 100

    def test_unknown_code(self, client):
        assert client.get("/api/test-coupon", params={"code": "NOPE"}).status_code == 404

    def test_expired_code(self, client, fake_db):
        fake_db.rows("coupons").append({"code": "OLD", "expires_at": _iso(timedelta(hours=-1))})
        response = client.get("/api/test-coupon", params={"code": "OLD"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Coupon has expired"

    def test_missing_code(self, client):
        assert client.get("/api/test-coupon").status_code == 400


class TestParseTimestamp:
    @pytest.mark.parametrize("raw,expected", [
        ("2030-06-01T12:00:00.5+00:00", datetime(2030, 6, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)),
        ("2030-06-01T12:00:00.123Z", datetime(2030, 6, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)),
        ("2030-06-01T15:00:00+03:00", datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc)),
        ("2030-06-01T12:00:00", datetime(2030, 6, 1, 12, 0, 0, tzinfo=timezone.utc)),
    ])
    def test_parses_postgres_text(self, raw, expected):
        assert parse_timestamp(raw) == expected

    def test_empty_is_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a date")

    def test_future_short_fraction_still_valid(self, fake_db):
        service = CouponService(fake_db, [])
        assert service.rejection_reason({"code": "X", "expires_at": "2999-01-01T00:00:00.1+00:00"}) is None
