"""JWT helpers for decoding bearer tokens issued by the auth provider."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import jwt

from memory_vista.core.access.types import UserIdentity
from memory_vista.settings import Settings

from .errors import AuthenticationError


def decode_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
    audience: str | None = None,
    issuer: str | None = None,
) -> dict[str, Any]:
    """Decode a JWT and return its payload."""

    options = {"require": ["sub", "exp"], "verify_aud": audience is not None}
    return jwt.decode(
        token,
        secret,
        algorithms=list(algorithms),
        audience=audience,
        issuer=issuer,
        options=options,
    )


def identity_from_claims(claims: Mapping[str, Any]) -> UserIdentity:
    """Map provider claims (``sub``, ``email``, ``email_verified``, ``name``)."""

    subject = str(claims.get("sub") or "").strip()
    if not subject:
        raise AuthenticationError("Token has no subject")
    name = claims.get("name")
    return UserIdentity(
        id=subject,
        email=str(claims.get("email") or ""),
        display_name=str(name) if name else None,
        email_verified=bool(claims.get("email_verified", False)),
    )


def verify_bearer_token(token: str, settings: Settings) -> UserIdentity:
    secret = settings.jwt_secret_value
    if not secret:
        raise AuthenticationError("Token verification is not configured")
    try:
        claims = decode_token(
            token,
            secret=secret,
            algorithms=settings.jwt_algorithms,
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError(str(exc)) from exc
    return identity_from_claims(claims)


__all__ = ["decode_token", "identity_from_claims", "verify_bearer_token"]
