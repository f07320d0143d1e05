"""
entropy.utils
-------------

Light helpers shared across the beacon components: hashlib wrappers, hex
validation and the fixed-delay retry combinator.

This package file deliberately avoids eager imports to keep dependency order
simple during bootstrap.
"""

__all__: list[str] = []
