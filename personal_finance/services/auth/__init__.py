"""Auth Services Package"""

from personal_finance.services.auth.interface import AuthProvider
from personal_finance.services.auth.jwt_provider import JWTAuthProvider, strip_bearer

__all__ = [
    "AuthProvider",
    "JWTAuthProvider",
    "strip_bearer",
]
