"""
Service account credentials loaded from a Zitadel JSON key file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from quantumdmn.errors import ConfigurationError
from quantumdmn.logging import get_logger

logger = get_logger("quantumdmn.auth.credentials")


class ServiceAccountKey(BaseModel):
    """Fields read from the JSON key file; anything else in the file is ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userId", min_length=1)
    key_id: str = Field(alias="keyId", min_length=1)
    key: str = Field(min_length=1)


@dataclass(frozen=True)
class CredentialMaterial:
    """Identity used to sign JWT-bearer assertions."""

    user_id: str
    key_id: str
    private_key: rsa.RSAPrivateKey = field(repr=False)
    issuer: str
    project_id: Optional[str] = None

    @classmethod
    def from_key_file(cls,
                      key_file: Union[str, os.PathLike],
                      issuer: str,
                      project_id: Optional[str] = None) -> "CredentialMaterial":
        """Load credentials from a key file; any defect raises ConfigurationError."""
        path = Path(key_file)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(
                "Cannot read Zitadel JSON key file",
                details={"key_file": str(path), "error": str(exc)}
            ) from exc
        except ValueError as exc:
            raise ConfigurationError(
                "Zitadel JSON key file is not valid JSON",
                details={"key_file": str(path), "error": str(exc)}
            ) from exc

        return cls.from_key_data(data, issuer, project_id)

    @classmethod
    def from_key_data(cls,
                      data: Dict[str, Any],
                      issuer: str,
                      project_id: Optional[str] = None) -> "CredentialMaterial":
        """Build credentials from an already-parsed key file document."""
        if not isinstance(data, dict):
            raise ConfigurationError("Invalid Zitadel JSON key file format")

        try:
            key_data = ServiceAccountKey.model_validate(data)
        except ValidationError as exc:
            invalid = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
            raise ConfigurationError(
                "Invalid Zitadel JSON key file format",
                details={"invalid_fields": invalid}
            ) from exc

        if not issuer or not issuer.strip():
            raise ConfigurationError("Zitadel issuer URL is required")

        private_key = parse_private_key(key_data.key)

        logger.info("Loaded service account credentials", user_id=key_data.user_id, key_id=key_data.key_id)
        return cls(
            user_id=key_data.user_id,
            key_id=key_data.key_id,
            private_key=private_key,
            issuer=issuer.strip().rstrip("/"),
            project_id=project_id or None,
        )

    def signing_key_pem(self) -> str:
        """Private key re-encoded as PKCS#8 PEM for the JWT signer."""
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")


def parse_private_key(key_pem: str) -> rsa.RSAPrivateKey:
    """Parse a PKCS#8 or PKCS#1 PEM private key; only RSA keys are accepted."""
    try:
        key = serialization.load_pem_private_key(key_pem.encode("utf-8"), password=None)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError("Failed to parse private key", details={"error": str(exc)}) from exc
    except UnsupportedAlgorithm as exc:
        raise ConfigurationError("Unsupported private key", details={"error": str(exc)}) from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise ConfigurationError(
            "Unsupported private key type",
            details={"key_type": type(key).__name__}
        )
    return key
