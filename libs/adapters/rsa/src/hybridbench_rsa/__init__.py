"""RSA-OAEP key-wrap adapter (``cryptography``).

Importing the package registers the ``rsa`` scheme.
"""

from . import rsa_adapter as _rsa_adapter  # noqa: F401

__all__: list[str] = []
