"""Bearer token verification for identities issued by the auth provider."""

from .errors import AuthenticationError
from .tokens import decode_token, identity_from_claims, verify_bearer_token

__all__ = [
    "AuthenticationError",
    "decode_token",
    "identity_from_claims",
    "verify_bearer_token",
]
