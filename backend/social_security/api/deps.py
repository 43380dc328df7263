# backend/social_security/api/deps.py
"""
Auth collaborator for the config admin routes.

Enforcement is off by default (dev): every caller is a dev principal with the
admin role. With SS_AUTH_ENFORCE=true, admin routes need an X-API-Key header
matching SS_ADMIN_API_KEY.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status


@dataclass(frozen=True)
class Principal:
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


DEV_PRINCIPAL = Principal(name="dev@local", role="admin")


def _auth_enforced() -> bool:
    """Return True if API keys should be checked (production), False in dev."""
    return os.getenv("SS_AUTH_ENFORCE", "false").lower() in {"1", "true", "yes", "on"}


def _principal_for_key(api_key: str, user_name: Optional[str]) -> Principal:
    admin_key = os.getenv("SS_ADMIN_API_KEY", "")
    if admin_key and secrets.compare_digest(api_key, admin_key):
        return Principal(name=(user_name or "admin").strip()[:100] or "admin", role="admin")
    return Principal(name=(user_name or "user").strip()[:100] or "user", role="user")


def get_current_principal(
    api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    user_name: Optional[str] = Header(default=None, alias="X-User"),
) -> Principal:
    if not _auth_enforced():
        return DEV_PRINCIPAL

    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-API-Key")
    return _principal_for_key(api_key, user_name)


def get_optional_principal(
    api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    user_name: Optional[str] = Header(default=None, alias="X-User"),
) -> Optional[Principal]:
    """Like get_current_principal, but anonymous callers get None instead of a 401."""
    if not _auth_enforced():
        return DEV_PRINCIPAL
    if not api_key:
        return None
    return _principal_for_key(api_key, user_name)


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return principal


__all__ = ["Principal", "DEV_PRINCIPAL", "get_current_principal", "get_optional_principal", "require_admin"]
