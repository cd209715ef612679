from __future__ import annotations

import os

from supabase import Client, create_client

# Shared client for repositories and storage
_CLIENT_SINGLETON: Client | None = None


def get_supabase_client() -> Client | None:
    """Return the Supabase client, or None when disabled or not configured.

    Adapters fall back to their local in-memory / on-disk mode on None.
    """
    global _CLIENT_SINGLETON
    disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    if disabled or not url or not key:
        return None
    if _CLIENT_SINGLETON is None:
        _CLIENT_SINGLETON = create_client(url, key)
    return _CLIENT_SINGLETON
