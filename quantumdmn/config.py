"""
Client configuration and wiring.

Settings come from ``QUANTUMDMN_*`` environment variables or a ``.env``
file; nested auth settings use ``__`` as delimiter, e.g.
``QUANTUMDMN_AUTH__ZITADEL__KEY_FILE=/etc/quantumdmn/key.json``.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from quantumdmn.auth.token_provider import DEFAULT_ISSUER, TokenProvider, ZitadelTokenProvider
from quantumdmn.engine import DmnEngine
from quantumdmn.errors import ConfigurationError
from quantumdmn.logging import get_logger
from quantumdmn.service import DEFAULT_BASE_URL, DmnService

logger = get_logger("quantumdmn.config")


class ZitadelSettings(BaseModel):
    """Service account authentication against Zitadel."""

    key_file: Optional[str] = None
    issuer: str = DEFAULT_ISSUER
    # Adds the project audience scope to issued tokens
    project_id: Optional[str] = None


class AuthSettings(BaseModel):
    zitadel: ZitadelSettings = Field(default_factory=ZitadelSettings)


class DmnClientSettings(BaseSettings):
    """Configuration for the QuantumDMN client."""

    model_config = SettingsConfigDict(
        env_prefix="QUANTUMDMN_",
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    base_url: str = DEFAULT_BASE_URL
    # Static bearer token; ignored when a Zitadel key file is configured
    token: Optional[str] = None
    project_id: Optional[str] = None
    http_timeout: float = 10.0

    auth: AuthSettings = Field(default_factory=AuthSettings)


def get_settings(**overrides) -> DmnClientSettings:
    """Load settings from the environment, with keyword overrides."""
    return DmnClientSettings(**overrides)


def create_token_provider(settings: DmnClientSettings) -> Optional[ZitadelTokenProvider]:
    """Build a Zitadel token provider when a key file is configured."""
    zitadel = settings.auth.zitadel
    if not zitadel.key_file or not zitadel.key_file.strip():
        return None

    return ZitadelTokenProvider.from_key_file(
        zitadel.key_file,
        issuer=zitadel.issuer,
        project_id=zitadel.project_id,
        http_timeout=settings.http_timeout,
    )


def create_service(settings: DmnClientSettings,
                   token_provider: Optional[TokenProvider] = None) -> DmnService:
    """Create a DmnService from settings.

    An explicit token provider wins, then a Zitadel key file, then the
    static token. With none of them configured this raises ConfigurationError.
    """
    if token_provider is not None:
        return DmnService(settings.base_url, token_provider, http_timeout=settings.http_timeout)

    zitadel_provider = create_token_provider(settings)
    if zitadel_provider is not None:
        logger.info("Using Zitadel service account authentication", issuer=settings.auth.zitadel.issuer)
        return DmnService(
            settings.base_url,
            zitadel_provider,
            http_timeout=settings.http_timeout,
            close_provider=True,
        )

    if settings.token and settings.token.strip():
        return DmnService(settings.base_url, settings.token, http_timeout=settings.http_timeout)

    raise ConfigurationError(
        "QuantumDMN configuration requires either a static token "
        "(QUANTUMDMN_TOKEN) or a Zitadel key file (QUANTUMDMN_AUTH__ZITADEL__KEY_FILE)"
    )


def create_engine(settings: DmnClientSettings,
                  token_provider: Optional[TokenProvider] = None) -> DmnEngine:
    """Create a DmnEngine for the configured project."""
    if not settings.project_id:
        raise ConfigurationError("QuantumDMN engine requires a project ID (QUANTUMDMN_PROJECT_ID)")
    return DmnEngine(create_service(settings, token_provider), settings.project_id)
