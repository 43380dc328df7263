# backend/social_security/models/social_security.py
"""
Social insurance config ORM models.

Tables:
- social_security_configs        (one active row per city; version bumps on update)
- social_security_config_audit   (append-only change log with a JSON snapshot)

Two schema generations share the configs table: the legacy shared ranges
(base_lower/base_upper, housing_fund_base_lower/housing_fund_base_upper) and
the per-category ranges. Rows written by this backend always fill both; older
rows may carry NULL per-category ranges, which are back-filled on read.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from social_security.db import Base

RATE = Numeric(8, 6)
MONEY = Numeric(12, 2)


class SocialSecurityConfig(Base):
    __tablename__ = "social_security_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    city: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    # Legacy shared ranges (mirrors of pension / housing_fund)
    base_lower: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    base_upper: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    housing_fund_base_lower: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    housing_fund_base_upper: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Pension
    pension_personal_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    pension_company_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    pension_base_lower: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    pension_base_upper: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)

    # Medical (rate + fixed add-ons)
    medical_personal_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    medical_company_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    medical_personal_fixed: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    medical_company_fixed: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    medical_base_lower: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    medical_base_upper: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)

    # Unemployment
    unemployment_personal_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    unemployment_company_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    unemployment_base_lower: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    unemployment_base_upper: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)

    # Work injury
    injury_personal_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    injury_company_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    injury_base_lower: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    injury_base_upper: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)

    # Maternity
    maternity_personal_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    maternity_company_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    maternity_base_lower: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    maternity_base_upper: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)

    # Housing fund
    housing_fund_personal_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    housing_fund_company_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    housing_fund_base_lower_new: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    housing_fund_base_upper_new: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    housing_fund_protection_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Lifecycle
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class SocialSecurityConfigAudit(Base):
    __tablename__ = "social_security_config_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    city: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # create | update | deactivate
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    snapshot: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    changed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
