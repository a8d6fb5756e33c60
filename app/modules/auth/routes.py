from fastapi import APIRouter, Depends, Request, Response, Security
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials
from app.config.settings import Settings
from app.modules.auth.schemas import MagicLinkRequest, MagicLinkResponse, OAuthUrlResponse
from app.modules.auth.service import AuthFlowService
from app.core.dependencies import (
    ACCESS_TOKEN_COOKIE, security, get_auth_flow_service, get_current_user, get_settings, extract_token
)
from typing import Dict, Optional

CODE_VERIFIER_COOKIE = "sb-code-verifier"
CODE_VERIFIER_MAX_AGE = 600

# /auth/callback is mounted at the root; the JSON endpoints live under /api
callback_router = APIRouter(prefix="/auth", tags=["auth"])
router = APIRouter(prefix="/auth", tags=["auth"])


def _remember_code_verifier(response: Response, code_verifier: Optional[str], settings: Settings) -> None:
    if not code_verifier:
        return
    response.set_cookie(
        CODE_VERIFIER_COOKIE,
        code_verifier,
        max_age=CODE_VERIFIER_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@callback_router.get("/callback")
async def auth_callback(
    request: Request,
    code: Optional[str] = None,
    service: AuthFlowService = Depends(get_auth_flow_service),
    settings: Settings = Depends(get_settings)
):
    """Exchange the provider code for a session and send the browser home"""
    response = RedirectResponse(url="/", status_code=307)
    if code:
        access_token = service.exchange_code_for_session(code, request.cookies.get(CODE_VERIFIER_COOKIE))
        if access_token:
            response.set_cookie(
                ACCESS_TOKEN_COOKIE,
                access_token,
                httponly=True,
                secure=settings.is_production,
                samesite="lax",
            )
    if CODE_VERIFIER_COOKIE in request.cookies:
        response.delete_cookie(CODE_VERIFIER_COOKIE)
    return response


@router.post("/otp", response_model=MagicLinkResponse)
async def send_magic_link(
    body: MagicLinkRequest,
    response: Response,
    service: AuthFlowService = Depends(get_auth_flow_service),
    settings: Settings = Depends(get_settings)
):
    """Email a sign-in link"""
    code_verifier = service.send_magic_link(body.email, body.redirect_to or f"{settings.site_url}/")
    _remember_code_verifier(response, code_verifier, settings)
    return MagicLinkResponse(email=body.email, message="Check your email for the sign-in link")


@router.get("/google", response_model=OAuthUrlResponse)
async def google_sign_in(
    response: Response,
    redirect_to: Optional[str] = None,
    service: AuthFlowService = Depends(get_auth_flow_service),
    settings: Settings = Depends(get_settings)
):
    """Provider URL for Google sign-in"""
    url, code_verifier = service.google_sign_in_url(redirect_to or f"{settings.site_url}/")
    _remember_code_verifier(response, code_verifier, settings)
    return OAuthUrlResponse(provider="google", url=url)


@router.post("/logout", status_code=200)
async def logout(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    service: AuthFlowService = Depends(get_auth_flow_service)
):
    """Logout and drop the session cookie"""
    token = extract_token(request, credentials)
    if token:
        service.logout(token)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return {"message": "Logged out successfully", "redirect_to": "/login"}


@router.get("/me")
async def get_me(current_user: Dict = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user
