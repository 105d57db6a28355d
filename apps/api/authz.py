"""
Token check for the export service.

Default behavior is permissive. Set `HOPETRACK_EXPORT_TOKEN` to require the
same token the case API issues, sent as `x-auth-token` or as a bearer
`Authorization` header.
"""
from __future__ import annotations

import hmac
import os
from dataclasses import dataclass

from fastapi import Header, HTTPException


def _env_true(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def export_token() -> str:
    return os.getenv("HOPETRACK_EXPORT_TOKEN", "").strip()


def token_enforcement_enabled() -> bool:
    return bool(export_token()) or _env_true("HOPETRACK_REQUIRE_TOKEN", False)


@dataclass(frozen=True)
class RequestToken:
    value: str
    source: str  # "x-auth-token" or "authorization"


def _extract_token(x_auth_token: str | None, authorization: str | None) -> RequestToken | None:
    if x_auth_token and x_auth_token.strip():
        return RequestToken(value=x_auth_token.strip(), source="x-auth-token")
    if authorization:
        raw = authorization.strip()
        if raw.lower().startswith("bearer "):
            raw = raw[7:].strip()
        if raw:
            return RequestToken(value=raw, source="authorization")
    return None


def require_export_token(
    x_auth_token: str | None = Header(default=None, alias="x-auth-token"),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> RequestToken | None:
    """
    Resolve the request token when enforcement is enabled.
    Returns None when enforcement is disabled.
    """
    if not token_enforcement_enabled():
        return None

    expected = export_token()
    if not expected:
        raise HTTPException(
            status_code=500,
            detail="Export service is misconfigured: HOPETRACK_EXPORT_TOKEN must be set",
        )

    token = _extract_token(x_auth_token, authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    if not hmac.compare_digest(token.value.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid token")
    return token
