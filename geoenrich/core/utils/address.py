"""
Address trimming and region normalization utilities.

Usage:
    from geoenrich.core.utils.address import apply_region_qualifier, clean_address

    clean_address("  123 Main St ")                 # "123 Main St"
    clean_address("   ")                            # None
    apply_region_qualifier("123 Main St", ", PA")   # "123 Main St, PA"
"""

from typing import Optional


def clean_address(address: Optional[str]) -> Optional[str]:
    """
    Trim surrounding whitespace from an address.

    Returns:
        The trimmed address, or None if it is missing or blank
    """
    if not isinstance(address, str):
        return None

    addr = address.strip()
    return addr or None


def apply_region_qualifier(address: str, qualifier: Optional[str]) -> str:
    """
    Append a region qualifier unless the address already contains it.

    The check is a plain substring test, so "123 Main St, PA 15205" already
    satisfies a qualifier of ", PA". An empty qualifier disables normalization.

    Args:
        address: Address as entered in the CRM
        qualifier: Region suffix such as ", PA"

    Returns:
        Address string to send to the provider

    Example:
        >>> apply_region_qualifier("123 Main St", ", PA")
        "123 Main St, PA"
        >>> apply_region_qualifier("123 Main St, PA", ", PA")
        "123 Main St, PA"
    """
    if not qualifier:
        return address

    if qualifier in address:
        return address

    return f"{address}{qualifier}"
