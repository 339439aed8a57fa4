"""
JWT-bearer assertion signing.
"""

import time
import uuid
from typing import Any, Dict, Optional

from jose import jwt

from quantumdmn.auth.credentials import CredentialMaterial

ASSERTION_LIFETIME_SECONDS = 3600
ASSERTION_ALGORITHM = "RS256"


class AssertionBuilder:
    """Builds signed assertions for the OAuth2 JWT-bearer grant."""

    def __init__(self, credentials: CredentialMaterial):
        self.credentials = credentials
        self._signing_key = credentials.signing_key_pem()

    def claims(self, now: Optional[float] = None) -> Dict[str, Any]:
        issued_at = int(now if now is not None else time.time())
        return {
            "iss": self.credentials.user_id,
            "sub": self.credentials.user_id,
            "aud": self.credentials.issuer,
            "iat": issued_at,
            "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
            "jti": str(uuid.uuid4()),
        }

    def build(self, now: Optional[float] = None) -> str:
        """Return a compact signed JWT; every call gets a fresh jti."""
        return jwt.encode(
            self.claims(now),
            self._signing_key,
            algorithm=ASSERTION_ALGORITHM,
            headers={"kid": self.credentials.key_id},
        )
