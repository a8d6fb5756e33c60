import hashlib
import time
import logging
from supabase import Client
from fastapi import HTTPException
from app.database.supabase_client import FlowStorage, SupabaseClients
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)

# Token -> user cache; every gated page navigation validates the session token
_AUTH_USER_CACHE: Dict[str, Tuple[Dict[str, Any], float]] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_user(key: str, now: float) -> Optional[Dict[str, Any]]:
    entry = _AUTH_USER_CACHE.get(key)
    if entry is None:
        return None
    user_data, expiry = entry
    if now >= expiry:
        _AUTH_USER_CACHE.pop(key, None)
        return None
    return user_data


def _remember_user(key: str, user_data: Dict[str, Any], now: float) -> None:
    if len(_AUTH_USER_CACHE) >= _AUTH_CACHE_MAX_SIZE:
        for stale in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
            del _AUTH_USER_CACHE[stale]
    if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
        _AUTH_USER_CACHE[key] = (user_data, now + _AUTH_CACHE_TTL_SEC)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a session token to the user dict the routes work with. Cached for a minute."""
        try:
            key = _token_key(token)
            now = time.monotonic()
            cached = _cached_user(key, now)
            if cached is not None:
                return cached
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            _remember_user(key, user_data, now)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")



class AuthFlowService:
    """Sign-in and sign-out flows.

    Each call runs on its own short-lived auth client, so a session or PKCE code
    verifier from one browser never lands on the shared client. The verifier
    travels in a cookie between starting a flow and /auth/callback.
    """

    def __init__(self, clients: SupabaseClients):
        self.clients = clients

    def exchange_code_for_session(self, code: str, code_verifier: Optional[str]) -> Optional[str]:
        """Exchange an OAuth / magic link code for a session. Returns the access token, or None on failure."""
        if not code_verifier:
            logger.warning("Code exchange attempted without a code verifier")
            return None
        storage = FlowStorage(code_verifier)
        try:
            auth_response = self.clients.auth_client(storage).auth.exchange_code_for_session({
                "auth_code": code,
                "code_verifier": code_verifier,
            })
        except Exception as e:
            logger.error(f"Code exchange failed: {e}")
            return None
        if not auth_response or not auth_response.session:
            return None
        return auth_response.session.access_token

    def send_magic_link(self, email: str, redirect_to: str) -> Optional[str]:
        """Email a one-time sign-in link. Returns the code verifier the callback will need."""
        storage = FlowStorage()
        try:
            self.clients.auth_client(storage).auth.sign_in_with_otp({
                "email": email,
                "options": {"email_redirect_to": redirect_to}
            })
        except Exception as e:
            logger.error(f"Failed to send magic link to {email}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to send sign-in link: {str(e)}")
        return storage.code_verifier

    def google_sign_in_url(self, redirect_to: str) -> Tuple[str, Optional[str]]:
        """Provider URL the browser should follow to sign in with Google, plus the flow's code verifier"""
        storage = FlowStorage()
        try:
            response = self.clients.auth_client(storage).auth.sign_in_with_oauth({
                "provider": "google",
                "options": {"redirect_to": redirect_to}
            })
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to start Google sign-in: {str(e)}")
        if not response or not response.url:
            raise HTTPException(status_code=500, detail="Failed to start Google sign-in")
        return response.url, storage.code_verifier

    def logout(self, token: str) -> bool:
        """Forget the cached session and revoke it in Supabase Auth"""
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        try:
            self.clients.auth_client(FlowStorage()).auth.admin.sign_out(token)
            return True
        except Exception as e:
            # The cookie drop in the route still ends the browser session
            logger.warning(f"Supabase sign_out failed: {e}")
            return False
