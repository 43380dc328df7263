# backend/social_security/schemas/social_security.py
"""
Pydantic schemas for the social insurance ("五险一金") calculator.

Covers:
- InsuranceRate / MedicalInsuranceRate (one rule per category)
- CityConfig (the six categories + housing fund protection flag)
- Request bodies for calculation and config writes

Notes:
- Monetary values and rates use Decimal to avoid float rounding.
- Shape only. Ordering/range rules live in services.validator so they surface
  as InvalidConfig rather than a request validation error.
- Legacy payloads (one shared base range for the five insurances, one for the
  housing fund) are back-filled into the per-category ranges; the legacy fields
  are then kept only as mirrors of pension / housing_fund.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ------------------------------ Categories -------------------------------- #
CATEGORIES = ("pension", "medical", "unemployment", "injury", "maternity", "housing_fund")

SOCIAL_INSURANCE_CATEGORIES = CATEGORIES[:5]

CATEGORY_NAMES: Dict[str, str] = {
    "pension": "养老保险",
    "medical": "医疗保险",
    "unemployment": "失业保险",
    "injury": "工伤保险",
    "maternity": "生育保险",
    "housing_fund": "住房公积金",
}


# ------------------------------ Rate rules -------------------------------- #
class InsuranceRate(BaseModel):
    personal_rate: Decimal = Field(..., description="Employee share, fraction in [0, 1]")
    company_rate: Decimal = Field(..., description="Employer share, fraction in [0, 1]")
    base_lower: Decimal = Field(..., description="Contribution base floor (currency)")
    base_upper: Decimal = Field(..., description="Contribution base ceiling (currency)")


class MedicalInsuranceRate(InsuranceRate):
    personal_fixed: Decimal = Field(default=Decimal("0"), description="Flat employee add-on")
    company_fixed: Decimal = Field(default=Decimal("0"), description="Flat employer add-on")


# ------------------------------ City config ------------------------------- #
class CityConfig(BaseModel):
    pension: InsuranceRate
    medical: MedicalInsuranceRate
    unemployment: InsuranceRate
    injury: InsuranceRate
    maternity: InsuranceRate
    housing_fund: InsuranceRate
    housing_fund_protection_enabled: bool = False

    # Deprecated mirrors of pension.base_* / housing_fund.base_*; never used in computation.
    base_lower: Optional[Decimal] = None
    base_upper: Optional[Decimal] = None
    housing_fund_base_lower: Optional[Decimal] = None
    housing_fund_base_upper: Optional[Decimal] = None

    @model_validator(mode="before")
    @classmethod
    def _backfill_category_ranges(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        shared = (data.get("base_lower"), data.get("base_upper"))
        housing = (data.get("housing_fund_base_lower"), data.get("housing_fund_base_upper"))
        for key in CATEGORIES:
            entry = data.get(key)
            if not isinstance(entry, dict):
                continue
            lower, upper = housing if key == "housing_fund" else shared
            entry = dict(entry)
            if entry.get("base_lower") is None and lower is not None:
                entry["base_lower"] = lower
            if entry.get("base_upper") is None and upper is not None:
                entry["base_upper"] = upper
            data[key] = entry
        return data

    @model_validator(mode="after")
    def _sync_legacy_mirrors(self) -> "CityConfig":
        self.base_lower = self.pension.base_lower
        self.base_upper = self.pension.base_upper
        self.housing_fund_base_lower = self.housing_fund.base_lower
        self.housing_fund_base_upper = self.housing_fund.base_upper
        return self

    def rate(self, category: str) -> InsuranceRate:
        if category not in CATEGORIES:
            raise KeyError(category)
        return getattr(self, category)


# ------------------------------- Requests --------------------------------- #
class CalculateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Left untyped so malformed salaries reach the calculator and fail as InvalidInput.
    salary: Any = None
    city: Optional[str] = None
    custom_config: Optional[CityConfig] = Field(default=None, alias="customConfig")


class CalculateSeriesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    salaries: List[Any] = Field(default_factory=list, max_length=120)
    city: Optional[str] = None
    custom_config: Optional[CityConfig] = Field(default=None, alias="customConfig")


class ConfigSaveRequest(BaseModel):
    city: str = Field(..., min_length=1, max_length=64)
    config: CityConfig


__all__ = [
    "CATEGORIES",
    "SOCIAL_INSURANCE_CATEGORIES",
    "CATEGORY_NAMES",
    "InsuranceRate",
    "MedicalInsuranceRate",
    "CityConfig",
    "CalculateRequest",
    "CalculateSeriesRequest",
    "ConfigSaveRequest",
]
