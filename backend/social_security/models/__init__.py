# backend/social_security/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py) so SQLAlchemy sees all mapped
classes before metadata is used (create_all, Alembic autogenerate).
"""
from social_security.db import Base  # re-export Base
from social_security.models.social_security import (  # noqa: F401
    SocialSecurityConfig,
    SocialSecurityConfigAudit,
)

__all__ = ["Base", "SocialSecurityConfig", "SocialSecurityConfigAudit"]
