"""
Centralized configuration management for the contact geocoder.

All configuration is loaded from environment variables with sensible defaults.
Use the `settings` singleton for accessing configuration values.

Usage:
    from geoenrich.core.config import settings

    # Access configuration
    print(settings.CONTACTS_TABLE)
    print(settings.GEOCODER_DELAY)
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables from .env file
# Search in common locations
_env_paths = [
    Path(__file__).parent.parent.parent / ".env",  # project root
    Path(__file__).parent.parent.parent / "server" / ".env",  # CRM backend
    Path.cwd() / ".env",  # Current working directory
]

for env_path in _env_paths:
    if env_path.exists():
        load_dotenv(env_path)
        break


class ConfigurationError(Exception):
    """Raised when required configuration is missing or unusable."""
    pass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # Supabase Configuration
    # ==========================================================================
    SUPABASE_URL: str = field(
        default_factory=lambda: os.getenv("SUPABASE_URL", "")
    )
    SUPABASE_KEY: str = field(
        default_factory=lambda: os.getenv("SUPABASE_KEY", "")
    )
    CONTACTS_TABLE: str = field(
        default_factory=lambda: os.getenv("CONTACTS_TABLE", "contacts")
    )
    STORE_PAGE_SIZE: int = field(
        default_factory=lambda: int(os.getenv("STORE_PAGE_SIZE", "1000"))
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    GOOGLE_GEOCODING_API_KEY: str = field(
        default_factory=lambda: (
            os.getenv("GOOGLE_GEOCODING_API_KEY")
            or os.getenv("GOOGLE_API_KEY", "")
        )
    )

    # ==========================================================================
    # Geocoding
    # ==========================================================================
    GEOCODE_REGION_QUALIFIER: str = field(
        default_factory=lambda: os.getenv("GEOCODE_REGION_QUALIFIER", ", PA")
    )
    GEOCODER_DELAY: float = field(
        default_factory=lambda: float(os.getenv("GEOCODER_DELAY", "0.2"))
    )
    GEOCODER_TIMEOUT: float = field(
        default_factory=lambda: float(os.getenv("GEOCODER_TIMEOUT", "10"))
    )
    GEOCODER_RETRIES: int = field(
        default_factory=lambda: int(os.getenv("GEOCODER_RETRIES", "0"))
    )

    # ==========================================================================
    # Run Output
    # ==========================================================================
    PROGRESS_EVERY: int = field(
        default_factory=lambda: int(os.getenv("PROGRESS_EVERY", "10"))
    )
    LOG_FILE: str = field(
        default_factory=lambda: os.getenv("LOG_FILE", "geocoding.log")
    )

    def validate_google_geocoding(self) -> bool:
        """Check if Google Geocoding API key is configured."""
        return bool(self.GOOGLE_GEOCODING_API_KEY)

    def require_google_api_key(self) -> str:
        """Return the Google API key or raise ConfigurationError."""
        if not self.validate_google_geocoding():
            raise ConfigurationError(
                "Google Geocoding API key not configured. "
                "Set GOOGLE_GEOCODING_API_KEY (or GOOGLE_API_KEY)."
            )
        return self.GOOGLE_GEOCODING_API_KEY


# Singleton settings instance
settings = Settings()
