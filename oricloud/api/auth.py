"""Bearer token authentication."""

from __future__ import annotations

import time
from dataclasses import dataclass

import jwt
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from oricloud.config import get_settings
from oricloud.core.errors import AuthenticationError

BEARER = HTTPBearer(auto_error=False)


@dataclass
class AuthPrincipal:
    id: str
    auth_type: str = "token"

    @property
    def user_id(self) -> int | None:
        """Numeric user id used for event ownership; None means unrestricted."""
        if self.auth_type == "disabled":
            return None
        return int(self.id)


DISABLED_PRINCIPAL = AuthPrincipal(id="auth-disabled", auth_type="disabled")


def _unauthorized(error: AuthenticationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.as_dict(),
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_access_token(user_id: int, *, ttl_minutes: int | None = None) -> str:
    settings = get_settings()
    ttl = int(ttl_minutes) if ttl_minutes is not None else int(settings.auth_access_token_min)
    now = int(time.time())
    payload = {"sub": str(int(user_id)), "iat": now, "exp": now + max(1, ttl) * 60}
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_alg)


def principal_from_token(token: str) -> AuthPrincipal:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.auth_jwt_secret, algorithms=[settings.auth_jwt_alg])
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Unauthorized: Invalid or expired token") from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise AuthenticationError("Unauthorized: Invalid token payload")
    return AuthPrincipal(id=subject)


def principal_from_authorization(header: str | None) -> AuthPrincipal:
    """Resolve an ``Authorization`` header value to a principal."""
    settings = get_settings()
    if not settings.auth_enabled:
        return DISABLED_PRINCIPAL

    raw = (header or "").strip()
    if not raw.lower().startswith("bearer ") or not raw[7:].strip():
        raise AuthenticationError("Unauthorized: No token provided")
    return principal_from_token(raw[7:].strip())


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Security(BEARER),
) -> AuthPrincipal:
    header = f"{credentials.scheme} {credentials.credentials}" if credentials else None
    try:
        return principal_from_authorization(header)
    except AuthenticationError as exc:
        raise _unauthorized(exc) from exc
