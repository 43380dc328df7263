# backend/social_security/services/calculator.py
"""
Contribution calculator: salary + CityConfig -> per-category breakdown.

Per category (pension, medical, unemployment, injury, maternity, housing_fund):
    base     = clamp(salary, base_lower, base_upper)     # each category on its own range
    personal = q2(base * personal_rate + personal_fixed)  # fixed add-ons: medical only
    company  = q2(base * company_rate  + company_fixed)

Housing fund, protection disabled: same as above without add-ons.
Housing fund, protection enabled (L = housing_fund.base_lower, whole-unit rounding):
    salary ≤ L                     → personal 0,          company round(L * company_rate)
    salary - salary*personal < L   → personal salary - L, company round(salary * company_rate)
    otherwise                      → personal round(salary * personal_rate),
                                     company  round(salary * company_rate)
    Rounding never takes net pay below L.

Totals: personal_total / company_total are the 2 dp sums of the items,
total = personal_total + company_total, after_tax_salary = salary - personal_total.

Pure: no I/O, the config is never modified, identical input → identical output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Any, Dict, Iterable, List, Optional, Tuple

from social_security.schemas.social_security import (
    CATEGORIES,
    CATEGORY_NAMES,
    CityConfig,
    InsuranceRate,
    MedicalInsuranceRate,
)
from social_security.services.errors import InvalidInput
from social_security.services.money import D, MAX_AMOUNT, UNIT, clamp, pct, q0, q2
from social_security.services.resolver import ConfigResolver
from social_security.services.validator import validate_city_config

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


# ---------------------------- Result holders ---------------------------- #

@dataclass(frozen=True)
class CalculationItem:
    key: str
    name: str
    personal: Decimal
    company: Decimal
    personal_rate: Decimal
    company_rate: Decimal
    actual_base: Decimal


@dataclass(frozen=True)
class CalculationResult:
    city: str
    base_salary: Decimal
    actual_base: Decimal
    base_lower: Decimal
    base_upper: Decimal
    housing_fund_actual_base: Decimal
    housing_fund_base_lower: Decimal
    housing_fund_base_upper: Decimal
    items: Tuple[CalculationItem, ...]
    personal_total: Decimal
    company_total: Decimal
    total: Decimal
    after_tax_salary: Decimal
    actual_bases: Dict[str, Decimal] = field(default_factory=dict)

    def item(self, key: str) -> CalculationItem:
        for it in self.items:
            if it.key == key:
                return it
        raise KeyError(key)

    def salary_shares(self) -> Dict[str, Decimal]:
        """Totals as a percentage of the input salary (2 dp)."""
        return {
            "personal": pct(self.personal_total, self.base_salary),
            "company": pct(self.company_total, self.base_salary),
            "total": pct(self.total, self.base_salary),
            "after_tax": pct(self.after_tax_salary, self.base_salary),
        }


# ------------------------------- Helpers -------------------------------- #

def _coerce_salary(salary: Any) -> Decimal:
    if salary is None or isinstance(salary, bool):
        raise InvalidInput("工资必须为正数")
    try:
        s = D(salary)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput("工资必须为正数") from None
    if not s.is_finite() or s <= 0:
        raise InvalidInput("工资必须为正数")
    if s > MAX_AMOUNT:
        raise InvalidInput("工资超出可计算范围")
    return s


def _floor_unit(val: Decimal) -> Decimal:
    return val.quantize(UNIT, rounding=ROUND_FLOOR)


def actual_base(salary: Decimal, rule: InsuranceRate) -> Decimal:
    return clamp(salary, rule.base_lower, rule.base_upper)


def compute_item(category: str, salary: Decimal, rule: InsuranceRate) -> CalculationItem:
    base = actual_base(salary, rule)
    personal_fixed = company_fixed = _ZERO
    if isinstance(rule, MedicalInsuranceRate):
        personal_fixed, company_fixed = rule.personal_fixed, rule.company_fixed
    return CalculationItem(
        key=category,
        name=CATEGORY_NAMES[category],
        personal=q2(base * rule.personal_rate + personal_fixed),
        company=q2(base * rule.company_rate + company_fixed),
        personal_rate=rule.personal_rate,
        company_rate=rule.company_rate,
        actual_base=base,
    )


def compute_housing_fund(salary: Decimal, rule: InsuranceRate, protection_enabled: bool) -> CalculationItem:
    base = actual_base(salary, rule)
    if not protection_enabled:
        personal = q2(base * rule.personal_rate)
        company = q2(base * rule.company_rate)
    else:
        floor = rule.base_lower
        if salary <= floor:
            personal = _ZERO
            company = q0(floor * rule.company_rate)
        elif salary - salary * rule.personal_rate < floor:
            personal = _floor_unit(salary - floor)
            company = q0(salary * rule.company_rate)
        else:
            personal = min(q0(salary * rule.personal_rate), _floor_unit(salary - floor))
            company = q0(salary * rule.company_rate)
        personal, company = q2(personal), q2(company)

    return CalculationItem(
        key="housing_fund",
        name=CATEGORY_NAMES["housing_fund"],
        personal=personal,
        company=company,
        personal_rate=rule.personal_rate,
        company_rate=rule.company_rate,
        actual_base=base,
    )


def _compute(salary: Decimal, config: CityConfig, city: str) -> CalculationResult:
    items: List[CalculationItem] = []
    for category in CATEGORIES:
        rule = config.rate(category)
        if category == "housing_fund":
            items.append(compute_housing_fund(salary, rule, config.housing_fund_protection_enabled))
        else:
            items.append(compute_item(category, salary, rule))

    personal_total = q2(sum((it.personal for it in items), _ZERO))
    company_total = q2(sum((it.company for it in items), _ZERO))
    total = q2(personal_total + company_total)
    after_tax_salary = q2(salary - personal_total)

    bases = {it.key: it.actual_base for it in items}
    result = CalculationResult(
        city=city,
        base_salary=salary,
        actual_base=bases["pension"],
        base_lower=config.pension.base_lower,
        base_upper=config.pension.base_upper,
        housing_fund_actual_base=bases["housing_fund"],
        housing_fund_base_lower=config.housing_fund.base_lower,
        housing_fund_base_upper=config.housing_fund.base_upper,
        items=tuple(items),
        personal_total=personal_total,
        company_total=company_total,
        total=total,
        after_tax_salary=after_tax_salary,
        actual_bases=bases,
    )
    logger.debug(
        "calculated city=%s salary=%s personal=%s company=%s",
        city, salary, personal_total, company_total,
    )
    return result


# ---------------------------- Entry points ---------------------------- #

def calculate_contributions(salary: Any, config: CityConfig, city: str = "") -> CalculationResult:
    """Compute one breakdown from an already-resolved config."""
    s = _coerce_salary(salary)
    validate_city_config(config)
    return _compute(s, config, city)


def calculate_series(salaries: Iterable[Any], config: CityConfig, city: str = "") -> List[CalculationResult]:
    """One breakdown per salary point, all from the same config (trend charts)."""
    points = [_coerce_salary(s) for s in salaries]
    validate_city_config(config)
    return [_compute(s, config, city) for s in points]


def calculate(
    salary: Any,
    city: Optional[str],
    custom_config: Optional[CityConfig] = None,
    *,
    resolver: ConfigResolver,
) -> CalculationResult:
    """
    Full calculation: input checks → config resolution → validation → compute.

    Raises InvalidInput, CityNotFound, InvalidConfig (or InternalFailure from
    the store); never returns a partial result.
    """
    s = _coerce_salary(salary)
    name = (city or "").strip()
    if not name:
        raise InvalidInput("城市不能为空")
    config = resolver.resolve(name, custom_config)
    return calculate_contributions(s, config, name)


__all__ = [
    "CalculationItem",
    "CalculationResult",
    "actual_base",
    "compute_item",
    "compute_housing_fund",
    "calculate_contributions",
    "calculate_series",
    "calculate",
]
