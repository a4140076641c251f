"""
Centralized database client factory for Supabase.

Provides a single point of initialization for the Supabase client that holds
the CRM contacts. Handles connection validation and error handling consistently.

Usage:
    from geoenrich.core.database import get_supabase_client

    # Get a Supabase client (singleton)
    client = get_supabase_client()

    # Query data
    result = client.table('contacts').select('id, address').execute()
"""

import logging
from typing import Optional
from functools import lru_cache

from geoenrich.core.config import settings, ConfigurationError

logger = logging.getLogger(__name__)


class SupabaseClientError(ConfigurationError):
    """Raised when Supabase client cannot be created."""
    pass


class StoreError(Exception):
    """Raised when the record store rejects a read or a write."""

    def __init__(self, message: str, record_id: str = ""):
        self.message = message
        self.record_id = record_id
        super().__init__(f"[{record_id}] {message}" if record_id else message)


@lru_cache(maxsize=1)
def get_supabase_client(
    url: Optional[str] = None,
    key: Optional[str] = None,
) -> "Client":
    """
    Get a Supabase client instance (singleton).

    Args:
        url: Override Supabase URL (uses settings.SUPABASE_URL by default)
        key: Override Supabase key (uses settings.SUPABASE_KEY by default)

    Returns:
        Supabase Client instance

    Raises:
        SupabaseClientError: If credentials are missing or the client fails
    """
    from supabase import create_client

    # Use provided values or fall back to settings
    supabase_url = url or settings.SUPABASE_URL
    supabase_key = key or settings.SUPABASE_KEY

    if not supabase_url or not supabase_key:
        msg = (
            "Supabase credentials not configured. "
            "Set SUPABASE_URL and SUPABASE_KEY environment variables."
        )
        logger.error(msg)
        raise SupabaseClientError(msg)

    try:
        client = create_client(supabase_url, supabase_key)
        logger.debug("Supabase client created successfully")
        return client
    except Exception as e:
        msg = f"Failed to create Supabase client: {e}"
        logger.error(msg)
        raise SupabaseClientError(msg) from e


def clear_client_cache():
    """Clear the cached Supabase client (useful for testing)."""
    get_supabase_client.cache_clear()


def fetch_rows_paginated(
    client: "Client",
    table: str,
    columns: str = "*",
    batch_size: int = 1000,
    order_by: Optional[str] = None
):
    """
    Generator that yields rows in batches from a Supabase table.

    Args:
        client: Supabase client instance
        table: Table name
        columns: Columns to select (default: all)
        batch_size: Number of records per batch
        order_by: Column to order by

    Yields:
        Lists of row dicts
    """
    offset = 0

    while True:
        query = client.table(table).select(columns)

        if order_by:
            query = query.order(order_by)

        query = query.range(offset, offset + batch_size - 1)

        result = query.execute()

        if not result.data:
            break

        yield result.data

        if len(result.data) < batch_size:
            break

        offset += batch_size
