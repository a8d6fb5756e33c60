from fastapi import Request
from supabase import create_client, Client, ClientOptions
from app.config.settings import Settings
from typing import Callable, Dict, Optional

CODE_VERIFIER_SUFFIX = "-code-verifier"


class FlowStorage:
    """Auth storage for one sign-in flow.

    Starts from the PKCE code verifier carried in the browser's cookie (if any) and
    captures the verifier the auth client generates when a new flow begins.
    """

    def __init__(self, code_verifier: Optional[str] = None):
        self._items: Dict[str, str] = {}
        self._code_verifier = code_verifier

    @property
    def code_verifier(self) -> Optional[str]:
        return self._code_verifier

    def get_item(self, key: str) -> Optional[str]:
        if key.endswith(CODE_VERIFIER_SUFFIX):
            return self._code_verifier
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if key.endswith(CODE_VERIFIER_SUFFIX):
            self._code_verifier = value
        else:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        if key.endswith(CODE_VERIFIER_SUFFIX):
            self._code_verifier = None
        else:
            self._items.pop(key, None)


AuthClientFactory = Callable[[FlowStorage], Client]


class SupabaseClients:
    """Process-wide Supabase clients, built once at startup from explicit settings.

    The shared clients never hold a user session. Sign-in flows (code exchange,
    magic link, OAuth, sign-out) run on a throwaway client from auth_client().
    """

    def __init__(
        self,
        client: Client,
        service_client: Optional[Client] = None,
        auth_client_factory: Optional[AuthClientFactory] = None
    ):
        self.client = client
        self._service_client = service_client
        self._auth_client_factory = auth_client_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseClients":
        client = create_client(settings.supabase_url, settings.supabase_key)
        service_client = None
        if settings.supabase_service_role_key:
            service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )

        def auth_client_factory(storage: FlowStorage) -> Client:
            return create_client(
                settings.supabase_url,
                settings.supabase_key,
                options=ClientOptions(storage=storage, flow_type="pkce", auto_refresh_token=False),
            )

        return cls(client, service_client, auth_client_factory)

    @property
    def service_client(self) -> Client:
        """Client with service_role key; bypasses RLS. Use for admin and webhook writes."""
        return self._service_client or self.client

    def auth_client(self, storage: FlowStorage) -> Client:
        """Short-lived client for one sign-in flow; its session dies with the request"""
        if self._auth_client_factory is None:
            raise RuntimeError("Supabase auth client factory is not configured")
        return self._auth_client_factory(storage)


def get_clients(request: Request) -> SupabaseClients:
    return request.app.state.supabase


def get_supabase(request: Request) -> Client:
    return get_clients(request).client


def get_service_supabase(request: Request) -> Client:
    return get_clients(request).service_client
