"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi.security.utils import get_authorization_scheme_param
from app.config.settings import Settings
from app.database.supabase_client import SupabaseClients, get_clients, get_supabase
from app.modules.auth.service import AuthFlowService, AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_auth_flow_service(clients: SupabaseClients = Depends(get_clients)) -> AuthFlowService:
    return AuthFlowService(clients)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None) -> Optional[str]:
    """Bearer header first, then the session cookie set by /auth/callback.

    Outside FastAPI's dependency system (the gate middleware) there are no parsed
    credentials, so the Authorization header is read directly.
    """
    if credentials is None:
        scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
        if scheme.lower() == "bearer" and param:
            return param
    elif credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Dict[str, Any]]:
    """Current user, or None when there is no usable session"""
    token = extract_token(request, credentials)
    if not token:
        return None
    try:
        return auth_service.get_current_user(token)
    except HTTPException:
        return None


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current user info from JWT token"""
    token = extract_token(request, credentials)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return auth_service.get_current_user(token)


def is_super_user(user_data: dict) -> bool:
    """Check if user is a super user from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def require_super_user(user_data: dict = Depends(get_current_user)) -> dict:
    if not is_super_user(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super users can perform this action"
        )
    return user_data


def get_counselor_row(user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    result = supabase.table("career_counselors")\
        .select("*")\
        .eq("id", user_id)\
        .limit(1)\
        .execute()
    return result.data[0] if result.data else None


def require_counselor(
    user_data: dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, Any]:
    """Current user's career_counselors row; 404 when the caller is not a counselor"""
    try:
        counselor = get_counselor_row(user_data["id"], supabase)
    except Exception as e:
        logger.error(f"Counselor lookup failed for {user_data['id']}: {e}")
        raise HTTPException(status_code=500, detail=f"Counselor lookup failed: {str(e)}")
    if not counselor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Counselor not found")
    return counselor
