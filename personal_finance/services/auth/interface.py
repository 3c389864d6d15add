"""
Abstract Auth Provider

The core never manages sessions or passwords. It only needs to turn a
bearer token into a user id; whoever issues tokens lives outside.
"""

from abc import ABC, abstractmethod

from personal_finance.models.user import AuthUser


class AuthProvider(ABC):
    """Verifies bearer tokens."""

    @abstractmethod
    async def verify_token(self, token: str) -> AuthUser:
        """
        Verify a token and return the user it was issued to.

        Raises:
            AuthError: If the token is missing, malformed, expired or
                fails signature/claim checks
        """
        pass
