"""
Shared utility functions for the contact geocoder.

Modules:
- address: Address cleanup and region normalization
- geo: Coordinate presence and range checks

Usage:
    from geoenrich.core.utils import apply_region_qualifier, has_coordinate_pair

    apply_region_qualifier("123 Main St", ", PA")  # "123 Main St, PA"
    has_coordinate_pair(0.0, 0.0)                  # True
"""

from geoenrich.core.utils.address import (
    apply_region_qualifier,
    clean_address,
)
from geoenrich.core.utils.geo import (
    has_coordinate_pair,
    is_valid_coordinate,
)

__all__ = [
    # Address utilities
    "apply_region_qualifier",
    "clean_address",
    # Geo utilities
    "has_coordinate_pair",
    "is_valid_coordinate",
]
