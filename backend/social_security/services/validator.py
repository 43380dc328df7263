# backend/social_security/services/validator.py
"""
Config validator. Rejects a CityConfig before it is used or persisted.

Rules, checked per category in CATEGORIES order (fail fast on the first
violation):
    • 0 ≤ base_lower < base_upper ≤ MAX_AMOUNT
    • 0 ≤ personal_rate ≤ 1 and 0 ≤ company_rate ≤ 1
    • medical fixed add-ons within 0..MAX_AMOUNT

validate_storable() adds the column scale of the config table on top:
rates at most 6 decimals, amounts at most 2.
"""

from __future__ import annotations

from decimal import Decimal

from social_security.schemas.social_security import CATEGORIES, CATEGORY_NAMES, CityConfig
from social_security.services.errors import InvalidConfig
from social_security.services.money import CENT, MAX_AMOUNT, RATE_STEP

_ZERO = Decimal("0")
_ONE = Decimal("1")


def _rate_in_range(rate: Decimal) -> bool:
    return rate.is_finite() and _ZERO <= rate <= _ONE


def _fits_scale(val: Decimal, step: Decimal) -> bool:
    return val.quantize(step) == val


def validate_city_config(config: CityConfig) -> CityConfig:
    for category in CATEGORIES:
        rule = config.rate(category)
        name = CATEGORY_NAMES[category]

        if not (rule.base_lower.is_finite() and rule.base_upper.is_finite()):
            raise InvalidConfig(category, f"{name}缴费基数必须为有效数字")
        if rule.base_lower < 0:
            raise InvalidConfig(category, f"{name}缴费基数下限不能为负数")
        if rule.base_upper > MAX_AMOUNT:
            raise InvalidConfig(category, f"{name}缴费基数上限超出范围")
        if rule.base_lower >= rule.base_upper:
            raise InvalidConfig(category, f"{name}缴费基数下限必须小于上限")
        if not (_rate_in_range(rule.personal_rate) and _rate_in_range(rule.company_rate)):
            raise InvalidConfig(category, f"{name}缴费比例必须在0-100%之间")

    medical = config.medical
    fixed = (medical.personal_fixed, medical.company_fixed)
    if not all(f.is_finite() and f >= 0 for f in fixed):
        raise InvalidConfig("medical", f"{CATEGORY_NAMES['medical']}固定金额不能为负数")
    if any(f > MAX_AMOUNT for f in fixed):
        raise InvalidConfig("medical", f"{CATEGORY_NAMES['medical']}固定金额超出范围")

    return config


def validate_storable(config: CityConfig) -> CityConfig:
    """validate_city_config plus the numeric scale of the config columns."""
    validate_city_config(config)
    for category in CATEGORIES:
        rule = config.rate(category)
        name = CATEGORY_NAMES[category]
        if not all(_fits_scale(r, RATE_STEP) for r in (rule.personal_rate, rule.company_rate)):
            raise InvalidConfig(category, f"{name}缴费比例最多保留6位小数")
        amounts = [rule.base_lower, rule.base_upper]
        if category == "medical":
            amounts += [config.medical.personal_fixed, config.medical.company_fixed]
        if not all(_fits_scale(a, CENT) for a in amounts):
            raise InvalidConfig(category, f"{name}金额最多保留2位小数")
    return config


__all__ = ["validate_city_config", "validate_storable"]
