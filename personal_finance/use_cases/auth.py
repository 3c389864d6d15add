"""Auth use case: token in, user out."""

from personal_finance.errors import AuthError
from personal_finance.models.user import AuthUser
from personal_finance.services.auth import AuthProvider


class AuthUseCases:

    def __init__(self, provider: AuthProvider):
        self._provider = provider

    async def verify_id_token(self, token: str) -> AuthUser:
        """
        Raises:
            AuthError: If the token is missing or does not verify
        """
        if not token:
            raise AuthError()
        return await self._provider.verify_token(token)
