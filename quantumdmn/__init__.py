"""
Python client for the QuantumDMN decision engine.

- auth: service account credentials, assertion signing, token caching.
- model: FEEL values and their exact JSON encoding.
- service: authenticated HTTP access to the API.
- engine: decision evaluation with FEEL inputs and outputs.
- config: settings from the environment and client wiring.
- errors / logging: shared error types and structured logging.

Importing the package performs no I/O; credentials are read when a token
provider is constructed and the network is used on the first request.
"""

from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DmnClientError,
    FeelTypeMismatch,
    TransportError,
)
from .model import FeelType, FeelValue, FeelValueCodec, context_builder, list_builder
from .auth import StaticTokenProvider, TokenProvider, ZitadelTokenProvider
from .service import BearerTokenAuth, DmnService
from .engine import DmnEngine, EvaluationOptions
from .config import DmnClientSettings, create_engine, create_service, create_token_provider

__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "AuthenticationError",
    "BearerTokenAuth",
    "ConfigurationError",
    "DmnClientError",
    "DmnClientSettings",
    "DmnEngine",
    "DmnService",
    "EvaluationOptions",
    "FeelType",
    "FeelTypeMismatch",
    "FeelValue",
    "FeelValueCodec",
    "StaticTokenProvider",
    "TokenProvider",
    "TransportError",
    "ZitadelTokenProvider",
    "context_builder",
    "create_engine",
    "create_service",
    "create_token_provider",
    "list_builder",
]
