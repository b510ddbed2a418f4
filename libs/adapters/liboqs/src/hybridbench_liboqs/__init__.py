"""Adapter package for liboqs-backed key-wrap schemes.

Importing submodules triggers registration of adapters. The ``oqs`` module is
only loaded when a scheme is instantiated, so listing schemes works without
liboqs installed.
"""

# Trigger registration side-effects
from . import kem_adapters as _kem_adapters  # noqa: F401

__all__: list[str] = []
