import os
from supabase import create_client

from lessonforge.core.config import get_settings

_client = None


def get_supabase_client():
    global _client
    if _client:
        return _client
    settings = get_settings()
    url = settings.supabase_url or os.getenv("SUPABASE_URL")
    key = settings.supabase_service_key or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_KEY")
    if not url or not key:
        raise RuntimeError("Supabase env vars missing")
    _client = create_client(url, key)
    return _client
