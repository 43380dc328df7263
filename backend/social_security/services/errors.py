# backend/social_security/services/errors.py
"""
Typed failures raised by the calculation engine and its collaborators.

The services never build HTTP responses; the API layer maps ``status_code``
to an ``HTTPException``.
"""

from __future__ import annotations

from typing import Optional


class SocialSecurityError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(SocialSecurityError):
    status_code = 400


class CityNotFound(SocialSecurityError):
    status_code = 404

    def __init__(self, city: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"不支持的城市: {city}")
        self.city = city


class InvalidConfig(SocialSecurityError):
    status_code = 400

    def __init__(self, category: str, message: str) -> None:
        super().__init__(message)
        self.category = category


class InternalFailure(SocialSecurityError):
    status_code = 500


__all__ = [
    "SocialSecurityError",
    "InvalidInput",
    "CityNotFound",
    "InvalidConfig",
    "InternalFailure",
]
