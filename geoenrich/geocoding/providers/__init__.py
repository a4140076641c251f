"""
Geocoding provider implementations.
"""

from geoenrich.geocoding.providers.google import GoogleGeocoder

__all__ = ["GoogleGeocoder"]
