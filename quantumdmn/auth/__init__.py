"""
Authentication for the DMN API.

- credentials: load and validate the Zitadel service account key file.
- assertion: sign short-lived JWT-bearer assertions.
- token_provider: exchange assertions for access tokens and cache them.

Credential problems surface as ConfigurationError when the provider is
constructed; nothing touches the network until the first get_token().
"""

from .credentials import CredentialMaterial, ServiceAccountKey, parse_private_key
from .assertion import AssertionBuilder
from .token_provider import (
    CachedToken,
    StaticTokenProvider,
    TokenProvider,
    ZitadelTokenProvider,
)

__all__ = [
    "AssertionBuilder",
    "CachedToken",
    "CredentialMaterial",
    "ServiceAccountKey",
    "StaticTokenProvider",
    "TokenProvider",
    "ZitadelTokenProvider",
    "parse_private_key",
]
