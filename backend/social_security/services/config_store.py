# backend/social_security/services/config_store.py
"""
Persisted city configurations (one active row per city).

- get_active_config / list_active_cities / list_active_configs: read side
- save_config: validate → upsert → bump version → audit row
- deactivate_config: soft delete (is_active = false) → audit row
- list_audit: change log, newest first

Database faults are logged and re-raised as InternalFailure; validation
failures propagate as InvalidConfig untouched.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from social_security.models.social_security import (
    SocialSecurityConfig as SocialSecurityConfigDB,
    SocialSecurityConfigAudit,
)
from social_security.schemas.social_security import CATEGORIES, CityConfig
from social_security.services.errors import CityNotFound, InternalFailure, InvalidInput
from social_security.services.validator import validate_storable

logger = logging.getLogger(__name__)

DEFAULT_ACTOR = "system"

# per-category range columns; housing fund kept the legacy names and got a suffix
_RANGE_COLUMNS = {
    c: (f"{c}_base_lower", f"{c}_base_upper") for c in CATEGORIES if c != "housing_fund"
}
_RANGE_COLUMNS["housing_fund"] = ("housing_fund_base_lower_new", "housing_fund_base_upper_new")


# ----------------------------- row <-> config ----------------------------- #

def _row_to_config(row: SocialSecurityConfigDB) -> CityConfig:
    payload: Dict[str, Any] = {
        "base_lower": row.base_lower,
        "base_upper": row.base_upper,
        "housing_fund_base_lower": row.housing_fund_base_lower,
        "housing_fund_base_upper": row.housing_fund_base_upper,
        "housing_fund_protection_enabled": bool(row.housing_fund_protection_enabled),
    }
    for category in CATEGORIES:
        lower_col, upper_col = _RANGE_COLUMNS[category]
        payload[category] = {
            "personal_rate": getattr(row, f"{category}_personal_rate"),
            "company_rate": getattr(row, f"{category}_company_rate"),
            # None → back-filled from the legacy shared range by CityConfig
            "base_lower": getattr(row, lower_col),
            "base_upper": getattr(row, upper_col),
        }
    payload["medical"]["personal_fixed"] = row.medical_personal_fixed or Decimal("0")
    payload["medical"]["company_fixed"] = row.medical_company_fixed or Decimal("0")
    return CityConfig.model_validate(payload)


def _apply_config(row: SocialSecurityConfigDB, config: CityConfig) -> None:
    row.base_lower = config.pension.base_lower
    row.base_upper = config.pension.base_upper
    row.housing_fund_base_lower = config.housing_fund.base_lower
    row.housing_fund_base_upper = config.housing_fund.base_upper
    for category in CATEGORIES:
        rule = config.rate(category)
        lower_col, upper_col = _RANGE_COLUMNS[category]
        setattr(row, f"{category}_personal_rate", rule.personal_rate)
        setattr(row, f"{category}_company_rate", rule.company_rate)
        setattr(row, lower_col, rule.base_lower)
        setattr(row, upper_col, rule.base_upper)
    row.medical_personal_fixed = config.medical.personal_fixed
    row.medical_company_fixed = config.medical.company_fixed
    row.housing_fund_protection_enabled = config.housing_fund_protection_enabled


def _normalize_city(city: Optional[str]) -> str:
    name = (city or "").strip()
    if not name:
        raise InvalidInput("城市不能为空")
    return name


def _audit(db: Session, row: SocialSecurityConfigDB, action: str, config: CityConfig, actor: str) -> None:
    db.add(SocialSecurityConfigAudit(
        city=row.city,
        action=action,
        version=row.version,
        snapshot=config.model_dump(mode="json"),
        changed_by=actor,
    ))


# -------------------------------- reads ---------------------------------- #

def get_active_config(db: Session, city: str) -> Optional[CityConfig]:
    try:
        row = db.execute(
            select(SocialSecurityConfigDB).where(
                SocialSecurityConfigDB.city == city,
                SocialSecurityConfigDB.is_active.is_(True),
            )
        ).scalars().first()
    except SQLAlchemyError as e:
        logger.exception("config store: lookup failed city=%s", city)
        raise InternalFailure("读取城市配置失败") from e
    return _row_to_config(row) if row is not None else None


def list_active_cities(db: Session) -> List[str]:
    try:
        rows = db.execute(
            select(SocialSecurityConfigDB.city)
            .where(SocialSecurityConfigDB.is_active.is_(True))
            .order_by(SocialSecurityConfigDB.city)
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.exception("config store: city list failed")
        raise InternalFailure("读取城市列表失败") from e
    return list(rows)


def list_active_configs(db: Session) -> List[Dict[str, Any]]:
    """Admin listing: every active row with its config, timestamps and version."""
    try:
        rows = db.execute(
            select(SocialSecurityConfigDB)
            .where(SocialSecurityConfigDB.is_active.is_(True))
            .order_by(SocialSecurityConfigDB.city)
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.exception("config store: config list failed")
        raise InternalFailure("读取所有配置失败") from e
    return [
        {
            "id": row.id,
            "city": row.city,
            "config": _row_to_config(row),
            "created_at": row.created_at,
            "updated_at": row.updated_at,
            "version": row.version,
        }
        for row in rows
    ]


def list_audit(db: Session, city: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
    stmt = select(SocialSecurityConfigAudit)
    if city:
        stmt = stmt.where(SocialSecurityConfigAudit.city == city)
    stmt = stmt.order_by(SocialSecurityConfigAudit.id.desc()).limit(limit)
    try:
        rows = db.execute(stmt).scalars().all()
    except SQLAlchemyError as e:
        logger.exception("config store: audit list failed")
        raise InternalFailure("读取配置变更记录失败") from e
    return [
        {
            "id": r.id,
            "city": r.city,
            "action": r.action,
            "version": r.version,
            "snapshot": r.snapshot or {},
            "changed_by": r.changed_by,
            "changed_at": r.changed_at,
        }
        for r in rows
    ]


# -------------------------------- writes --------------------------------- #

def save_config(
    db: Session,
    city: str,
    config: CityConfig,
    changed_by: Optional[str] = None,
) -> SocialSecurityConfigDB:
    """
    Validate and upsert the config for ``city``.

    New rows start at version 1; every later save (including reactivating a
    deactivated row) increments the version and overwrites the values. Values
    must fit the column scale so the stored row reads back unchanged.
    """
    name = _normalize_city(city)
    validate_storable(config)
    actor = changed_by or DEFAULT_ACTOR

    try:
        row = db.execute(
            select(SocialSecurityConfigDB).where(SocialSecurityConfigDB.city == name)
        ).scalars().first()

        if row is None:
            row = SocialSecurityConfigDB(city=name, version=1, is_active=True, created_by=actor)
            action = "create"
        else:
            row.version = (row.version or 0) + 1
            row.is_active = True
            action = "update"
        row.updated_by = actor
        _apply_config(row, config)

        db.add(row)
        db.flush()
        _audit(db, row, action, config, actor)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("config store: save failed city=%s", name)
        raise InternalFailure("保存失败") from e

    logger.info("config store: %s city=%s version=%s by=%s", action, name, row.version, actor)
    return row


def deactivate_config(db: Session, city: str, changed_by: Optional[str] = None) -> SocialSecurityConfigDB:
    name = _normalize_city(city)
    actor = changed_by or DEFAULT_ACTOR

    try:
        row = db.execute(
            select(SocialSecurityConfigDB).where(
                SocialSecurityConfigDB.city == name,
                SocialSecurityConfigDB.is_active.is_(True),
            )
        ).scalars().first()
        if row is None:
            raise CityNotFound(name, f"没有可停用的城市配置: {name}")

        snapshot = _row_to_config(row)
        row.is_active = False
        row.version = (row.version or 0) + 1
        row.updated_by = actor
        db.add(row)
        db.flush()
        _audit(db, row, "deactivate", snapshot, actor)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("config store: deactivate failed city=%s", name)
        raise InternalFailure("停用失败") from e

    logger.info("config store: deactivate city=%s version=%s by=%s", name, row.version, actor)
    return row


__all__ = [
    "get_active_config",
    "list_active_cities",
    "list_active_configs",
    "list_audit",
    "save_config",
    "deactivate_config",
]
