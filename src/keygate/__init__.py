"""Keygate: access key issuance and verification service."""

from keygate.client import KeyStoreClient
from keygate.keygen.generator import generate_unique_key, random_key
from keygate.keys.repository import KeyRecord, KeyRepository

__all__ = [
    "KeyStoreClient",
    "generate_unique_key",
    "random_key",
    "KeyRecord",
    "KeyRepository",
]
__version__ = "0.1.0"
