"""
Geocoding enrichment for CRM contacts.

Subpackages:
- core: settings, Supabase client, address and coordinate helpers
- geocoding: geocoding providers and rate limiting
- enrichment: the batch sweep that writes coordinates back to contacts
"""

__version__ = "1.0.0"
