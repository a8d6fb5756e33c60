"""Shared fixtures: in-memory Supabase and mailer fakes wired into the app."""

import asyncio
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.core.rate_limit import limiter
from app.database.supabase_client import SupabaseClients
from app.main import create_app
from app.modules.auth.service import clear_auth_cache


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the PostgREST builder for the services under test."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self._order = None
        self._limit = None

    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def upsert(self, payload):
        self.op = "upsert"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column, value):
        if value == "null":
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) is value)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op))
        if (self.table, self.op) in self.db.failures:
            raise Exception(f"simulated {self.op} failure on {self.table}")
        if self.table == "profiles" and self.op == "select":
            self.db.tick_pending_profiles()
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self._order:
                column, desc = self._order
                found.sort(key=lambda r: (r.get(column) is None, str(r.get(column))), reverse=desc)
            if self._limit is not None:
                found = found[:self._limit]
            return FakeResponse(found)

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return FakeResponse(updated)

        if self.op == "upsert":
            item = dict(self.payload)
            for row in rows:
                if row.get("id") == item.get("id"):
                    row.update(item)
                    return FakeResponse([dict(row)])
            rows.append(item)
            return FakeResponse([dict(item)])

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(removed)

        raise AssertionError(f"unsupported op {self.op}")


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, content, file_options=None):
        if self.storage.fail_uploads:
            raise Exception("simulated storage failure")
        self.storage.objects[(self.name, path)] = (content, file_options)
        return {"path": path}

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop((self.name, path), None)
        return paths


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_uploads = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAdmin:
    def __init__(self, db):
        self.db = db
        self.created = []
        # None: the signup trigger never creates the profile
        self.profile_trigger_delay = 0

    def create_user(self, attributes):
        user_id = str(uuid.uuid4())
        self.created.append(attributes)
        if self.profile_trigger_delay is not None:
            self.db.pending_profiles.append(
                [self.profile_trigger_delay, {
                    "id": user_id,
                    "email": attributes["email"],
                    "name": attributes.get("user_metadata", {}).get("name"),
                    "atp_done": False,
                    "payment_done": False,
                }]
            )
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=attributes["email"]))


class FakeAuth:
    """Auth on the shared client: token lookups and admin user creation only.

    Sign-in flow methods live on FakeFlowAuth only; calling one on the shared
    client raises AttributeError.
    """

    def __init__(self, db):
        self.users_by_token = {}
        # code -> (access token, code verifier the flow was started with)
        self.codes = {}
        self.otp_requests = []
        self.oauth_requests = []
        self.exchanges = []
        self.signed_out = []
        self.verifiers_issued = 0
        self.admin = FakeAdmin(db)

    def get_user(self, jwt=None):
        user = self.users_by_token.get(jwt)
        if user is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def issue_code(self, code, token, code_verifier="pkce-verifier"):
        self.codes[code] = (token, code_verifier)


class FakeFlowAdmin:
    def __init__(self, shared):
        self.shared = shared

    def sign_out(self, jwt, scope="global"):
        self.shared.signed_out.append(jwt)


class FakeFlowAuth:
    """Auth on a per-request flow client; records onto the shared FakeAuth."""

    STORAGE_KEY = "sb-supabase-auth-token"

    def __init__(self, shared, storage):
        self.shared = shared
        self.storage = storage
        self.admin = FakeFlowAdmin(shared)

    def _start_flow(self):
        self.shared.verifiers_issued += 1
        self.storage.set_item(f"{self.STORAGE_KEY}-code-verifier", f"verifier-{self.shared.verifiers_issued}")

    def sign_in_with_otp(self, credentials):
        self._start_flow()
        self.shared.otp_requests.append(credentials)

    def sign_in_with_oauth(self, credentials):
        self._start_flow()
        self.shared.oauth_requests.append(credentials)
        return SimpleNamespace(
            provider=credentials["provider"],
            url=f"https://auth.test/authorize?provider={credentials['provider']}",
        )

    def exchange_code_for_session(self, params):
        self.shared.exchanges.append(params)
        token, code_verifier = self.shared.codes.get(params["auth_code"], (None, None))
        if token is None:
            raise Exception("invalid flow state, no valid flow state found")
        if params.get("code_verifier") != code_verifier:
            raise Exception("code challenge does not match previously saved code verifier")
        return SimpleNamespace(session=SimpleNamespace(access_token=token), user=None)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = set()
        self.pending_profiles = []
        self.storage = FakeStorage()
        self.auth = FakeAuth(self)
        self.flow_storages = []

    def flow_client(self, storage):
        self.flow_storages.append(storage)
        return SimpleNamespace(auth=FakeFlowAuth(self.auth, storage))

    def table(self, name):
        return FakeQuery(self, name)

    def tick_pending_profiles(self):
        still_pending = []
        for entry in self.pending_profiles:
            if entry[0] <= 0:
                self.tables.setdefault("profiles", []).append(entry[1])
            else:
                entry[0] -= 1
                still_pending.append(entry)
        self.pending_profiles = still_pending

    @property
    def writes(self):
        return [(t, op) for t, op in self.calls if op != "select"]

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def add_user(self, token, user_id=None, email=None, app_metadata=None):
        user_id = user_id or str(uuid.uuid4())
        self.auth.users_by_token[token] = SimpleNamespace(
            id=user_id,
            email=email or f"{user_id}@example.com",
            user_metadata={},
            app_metadata=app_metadata or {},
            created_at="2026-01-01T00:00:00+00:00",
            updated_at=None,
        )
        return user_id


class FakeMailer:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []
        # One entry per send: was it called from inside a running event loop
        self.sent_on_event_loop = []

    def send_welcome_email(self, to_email, name):
        self.sent.append((to_email, name))
        try:
            asyncio.get_running_loop()
            self.sent_on_event_loop.append(True)
        except RuntimeError:
            self.sent_on_event_loop.append(False)
        return self.succeed


@pytest.fixture(autouse=True)
def _reset_process_state():
    clear_auth_cache()
    limiter.reset()
    yield
    clear_auth_cache()


@pytest.fixture
def settings():
    return Settings(
        supabase_url="http://supabase.test",
        supabase_key="anon-key",
        razorpay_webhook_secret="whsec_test",
        valid_coupon_codes="NAIROBI",
        smtp_user=None,
        smtp_password=None,
        profile_poll_timeout_seconds=0.3,
        profile_poll_initial_delay_seconds=0.01,
        profile_poll_max_delay_seconds=0.05,
        frontend_dir=None,
        environment="development",
    )


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def app(settings, fake_db, mailer):
    clients = SupabaseClients(fake_db, fake_db, auth_client_factory=fake_db.flow_client)
    return create_app(settings=settings, supabase=clients, mailer=mailer)


@pytest.fixture
def client(app):
    return TestClient(app)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student(fake_db):
    """Signed-in student who finished onboarding"""
    user_id = fake_db.add_user("student-token", email="ana@example.com")
    fake_db.rows("profiles").append({
        "id": user_id,
        "email": "ana@example.com",
        "name": "Ana",
        "phone_number": "+254700000000",
        "atp_done": True,
        "payment_done": True,
    })
    return SimpleNamespace(id=user_id, token="student-token", headers=auth_header("student-token"))


@pytest.fixture
def counselor(fake_db):
    user_id = fake_db.add_user("counselor-token", email="cara@example.com")
    fake_db.rows("career_counselors").append({
        "id": user_id,
        "email": "cara@example.com",
        "name": "Cara",
        "phone_number": "+254711111111",
    })
    fake_db.rows("profiles").append({
        "id": user_id,
        "email": "cara@example.com",
        "phone_number": None,
        "atp_done": True,
        "payment_done": True,
    })
    return SimpleNamespace(id=user_id, token="counselor-token", headers=auth_header("counselor-token"))


@pytest.fixture
def make_student(fake_db):
    """Factory for signed-in users at any onboarding stage. profile=False leaves no profiles row."""

    def _make(token, phone="+254700000000", atp_done=True, payment_done=False,
              profile=True, app_metadata=None, **extra):
        email = f"{token}@example.com"
        user_id = fake_db.add_user(token, email=email, app_metadata=app_metadata)
        if profile:
            row = {
                "id": user_id,
                "email": email,
                "name": token.title(),
                "phone_number": phone,
                "atp_done": atp_done,
                "payment_done": payment_done,
            }
            row.update(extra)
            fake_db.rows("profiles").append(row)
        return SimpleNamespace(id=user_id, token=token, email=email, headers=auth_header(token))

    return _make
