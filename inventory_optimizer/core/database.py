"""
Connection to the tabular store (Supabase / PostgREST)

The analytics core only reads from the store, so a single service-role
client is enough. It is created lazily so that importing the package
(tests, tooling) does not require credentials.

Author: TM3
Updated: 2025-11-03
"""
import logging
from typing import Optional

from supabase import create_client, Client

from .config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# Supabase Client
# ============================================================================

_supabase: Optional[Client] = None


def get_supabase() -> Client:
    """
    FastAPI dependency to get the Supabase client

    Usage:
        @router.get("/data")
        def get_data(sb: Client = Depends(get_supabase)):
            ...

    Raises:
        RuntimeError if SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is not configured
    """
    global _supabase
    if _supabase is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise RuntimeError("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not configured")

        logger.info(f"Creating Supabase client for {settings.SUPABASE_URL}")
        _supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    return _supabase
