from supabase import create_client, Client
from app.config import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Client for the users table; uses the service_role key when configured so RLS cannot hide rows."""
        if cls._client is None:
            key = settings.supabase_service_role_key or settings.supabase_key
            cls._client = create_client(settings.supabase_url, key)
        return cls._client

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()
