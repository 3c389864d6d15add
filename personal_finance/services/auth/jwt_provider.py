"""
JWT Auth Provider

Verifies tokens with PyJWT against a configured secret (HS*) or public
key (RS*/ES*). The user id is the "sub" claim.
"""

from typing import Optional

import jwt
import structlog

from personal_finance.config import AuthSettings, get_settings
from personal_finance.errors import AuthError
from personal_finance.models.user import AuthUser
from personal_finance.services.auth.interface import AuthProvider


logger = structlog.get_logger(__name__)

_BEARER_PREFIX = "bearer "


def strip_bearer(token: Optional[str]) -> str:
    """Accept both "<jwt>" and "Bearer <jwt>"."""
    if not token:
        return ""
    token = token.strip()
    if token.lower().startswith(_BEARER_PREFIX):
        token = token[len(_BEARER_PREFIX):].strip()
    return token


class JWTAuthProvider(AuthProvider):

    def __init__(self, settings: Optional[AuthSettings] = None):
        self._settings = settings or get_settings().auth

    def _decode(self, token: str) -> dict:
        options = {"require": ["sub"]}
        if self._settings.jwt_audience is None:
            options["verify_aud"] = False
        return jwt.decode(
            token,
            self._settings.jwt_secret,
            algorithms=self._settings.algorithms_list,
            audience=self._settings.jwt_audience,
            issuer=self._settings.jwt_issuer,
            leeway=self._settings.leeway_seconds,
            options=options,
        )

    async def verify_token(self, token: str) -> AuthUser:
        raw = strip_bearer(token)
        if not raw:
            raise AuthError()

        try:
            payload = self._decode(raw)
        except jwt.ExpiredSignatureError as exc:
            logger.info("token_rejected", reason="expired")
            raise AuthError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("token_rejected", reason=type(exc).__name__)
            raise AuthError("Invalid token") from exc

        uid = str(payload.get("sub") or "")
        if not uid:
            raise AuthError("Invalid token")

        return AuthUser(uid=uid, email=payload.get("email"), claims=payload)
