"""Access gating policy.

One pure decision over a snapshot of session/profile flags. The server
middleware, the post-sign-in landing endpoint and the route-guard endpoint
all call into this module instead of re-deriving the rules.
"""
from dataclasses import dataclass, replace
from typing import Optional

LOGIN_PATH = "/login"
LANDING_PATH = "/"
ROLE_SELECTION_PATH = "/role-selection"
COUNSELOR_ONBOARDING_PATH = "/counselor/onboarding"
COUNSELOR_DASHBOARD_PATH = "/counselor/dashboard"
COUNSELOR_PREFIX = "/counselor"
APP_TO_TAP_PATH = "/app-to-tap"
COUPON_PATH = "/coupon"
PAYMENTS_PATH = "/payments"

PUBLIC_PATHS = frozenset({LANDING_PATH, LOGIN_PATH})
ROLE_CHOICE_PATHS = frozenset({ROLE_SELECTION_PATH, COUNSELOR_ONBOARDING_PATH})
STUDENT_ONBOARDING_PATHS = frozenset({APP_TO_TAP_PATH, COUPON_PATH, PAYMENTS_PATH})

ALLOW = "allow"
REDIRECT = "redirect"
PROMPT_PHONE = "prompt_phone"


@dataclass(frozen=True)
class AccessSnapshot:
    has_session: bool
    has_phone_number: bool = False
    is_counselor: bool = False
    has_profile: bool = False
    atp_done: bool = False
    payment_done: bool = False

    @classmethod
    def anonymous(cls) -> "AccessSnapshot":
        return cls(has_session=False)


@dataclass(frozen=True)
class GateDecision:
    action: str
    target: Optional[str] = None
    phone_required: bool = False

    @property
    def allowed(self) -> bool:
        return self.action == ALLOW


_ALLOWED = GateDecision(ALLOW)


def _redirect(target: str) -> GateDecision:
    return GateDecision(REDIRECT, target)


def normalize_path(path: str) -> str:
    if not path:
        return LANDING_PATH
    path = path.split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def is_counselor_path(path: str) -> bool:
    return path == COUNSELOR_PREFIX or path.startswith(COUNSELOR_PREFIX + "/")


def evaluate_gate(snapshot: AccessSnapshot, current_path: str) -> GateDecision:
    """Decide whether the snapshot's user may reach current_path. First matching rule wins.

    A missing phone number never opens a path the onboarding rules would close:
    the rules below still run, a redirect they produce is kept, and the decision
    is flagged so the caller shows the phone prompt wherever the user ends up.
    Only a path that would otherwise be allowed becomes PROMPT_PHONE.
    """
    path = normalize_path(current_path)

    if not snapshot.has_session:
        return _ALLOWED if path in PUBLIC_PATHS else _redirect(LOGIN_PATH)

    if not snapshot.has_phone_number:
        decision = _evaluate_signed_in(replace(snapshot, has_phone_number=True), path)
        if decision.action == REDIRECT:
            return GateDecision(REDIRECT, decision.target, phone_required=True)
        return GateDecision(PROMPT_PHONE, phone_required=True)

    return _evaluate_signed_in(snapshot, path)


def _evaluate_signed_in(snapshot: AccessSnapshot, path: str) -> GateDecision:
    # Role-choice pages stay open to non-counselors at every onboarding stage,
    # so a student who picked the wrong role can still switch
    if path in ROLE_CHOICE_PATHS:
        return _redirect(COUNSELOR_DASHBOARD_PATH) if snapshot.is_counselor else _ALLOWED

    if snapshot.is_counselor:
        if path in STUDENT_ONBOARDING_PATHS:
            return _redirect(COUNSELOR_DASHBOARD_PATH)
        return _ALLOWED

    if not snapshot.has_profile:
        return _redirect(ROLE_SELECTION_PATH)

    if not snapshot.atp_done:
        return _ALLOWED if path == APP_TO_TAP_PATH else _redirect(APP_TO_TAP_PATH)

    if not snapshot.payment_done:
        return _ALLOWED if path in STUDENT_ONBOARDING_PATHS else _redirect(COUPON_PATH)

    if is_counselor_path(path):
        return _redirect(ROLE_SELECTION_PATH)
    return _ALLOWED


def resolve_landing(snapshot: AccessSnapshot) -> str:
    """Where a user should land right after signing in"""
    if not snapshot.has_session:
        return LOGIN_PATH
    if snapshot.is_counselor:
        return COUNSELOR_DASHBOARD_PATH
    if not snapshot.has_profile:
        return ROLE_SELECTION_PATH
    if not snapshot.atp_done:
        return APP_TO_TAP_PATH
    if not snapshot.payment_done:
        return COUPON_PATH
    return LANDING_PATH
