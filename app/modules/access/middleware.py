"""Server-side access gate for page navigations."""
import logging
from fastapi import HTTPException
from starlette.requests import Request
from starlette.responses import RedirectResponse

from app.core.dependencies import extract_token
from app.modules.access.policy import REDIRECT
from app.modules.access.service import AccessService
from app.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

PHONE_REQUIRED_HEADER = "X-Phone-Required"

# Paths that are not page navigations
UNGATED_PREFIXES = ("/api/", "/auth/", "/static/", "/_next/", "/assets/")
UNGATED_PATHS = frozenset({
    "/api", "/auth", "/health", "/ready", "/docs", "/redoc", "/openapi.json", "/favicon.ico",
})


def is_gated_path(path: str) -> bool:
    if path in UNGATED_PATHS:
        return False
    return not path.startswith(UNGATED_PREFIXES)


class AccessGateMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not is_gated_path(scope["path"]):
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        supabase = request.app.state.supabase.client
        user_id = None
        token = extract_token(request)
        if token:
            try:
                user_id = AuthService(supabase).get_current_user(token)["id"]
            except HTTPException:
                user_id = None

        decision = AccessService(supabase).check_path(user_id, scope["path"])

        if decision.action == REDIRECT:
            logger.debug(f"Gate redirect {scope['path']} -> {decision.target}")
            response = RedirectResponse(url=decision.target, status_code=307)
            if decision.phone_required:
                response.headers[PHONE_REQUIRED_HEADER] = "1"
            await response(scope, receive, send)
            return

        if not decision.phone_required:
            await self.app(scope, receive, send)
            return

        async def send_with_phone_flag(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].append((PHONE_REQUIRED_HEADER.encode("latin-1"), b"1"))
            await send(message)

        await self.app(scope, receive, send_with_phone_flag)
