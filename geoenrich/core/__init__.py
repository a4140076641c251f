"""
Core module providing shared configuration, database access, and utilities.

This module consolidates common functionality used across the codebase:
- Configuration management (settings, environment variables)
- Database client factory (Supabase)
- Utility functions (address, geo)

Usage:
    from geoenrich.core import settings, get_supabase_client
    from geoenrich.core.utils import apply_region_qualifier, has_coordinate_pair
"""

from geoenrich.core.config import settings, Settings, ConfigurationError
from geoenrich.core.database import (
    get_supabase_client,
    SupabaseClientError,
    StoreError,
)

__all__ = [
    "settings",
    "Settings",
    "ConfigurationError",
    "get_supabase_client",
    "SupabaseClientError",
    "StoreError",
]
