"""Authentication: identity provider client, profile bootstrap, error codes."""

from studyhub.auth.errors import AuthError
from studyhub.auth.identity import FirebaseIdentityProvider, IdentityProvider, IdentityUser
from studyhub.auth.service import AuthService, AuthSession

__all__ = [
    "AuthError",
    "AuthService",
    "AuthSession",
    "FirebaseIdentityProvider",
    "IdentityProvider",
    "IdentityUser",
]
