# backend/social_security/services/defaults.py
"""
Static per-city default configurations — loader + lookup helpers

Precedence inside this tier:
    1) JSON file at SS_DEFAULTS_FILE (if set), else app data file
       data/social_security/cities.json (if present)
    2) Built-in table below (2024 figures for ten major cities; keeps the app
       working without data files)

The table is loaded once per process and exposed read-only. Lookups return a
fresh CityConfig so callers can never change the shared table.

JSON schema: {"<city>": <CityConfig payload>, ...}; the legacy shape with one
shared social insurance range (base_lower/base_upper) and one housing fund
range (housing_fund_base_lower/housing_fund_base_upper) is accepted.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from social_security.schemas.social_security import CityConfig
from social_security.services.validator import validate_city_config
from social_security.services.errors import InvalidConfig

logger = logging.getLogger(__name__)


def _rates(pension, medical, unemployment, injury, maternity, housing_fund) -> Dict[str, Any]:
    pairs = {
        "pension": pension,
        "medical": medical,
        "unemployment": unemployment,
        "injury": injury,
        "maternity": maternity,
        "housing_fund": housing_fund,
    }
    return {k: {"personal_rate": p, "company_rate": c} for k, (p, c) in pairs.items()}


# ----------------------------- Built-in table ----------------------------- #
# (personal_rate, company_rate) per category; rates as strings to stay exact.
BUILTIN_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "北京": {
        "base_lower": "5360", "base_upper": "31884",
        "housing_fund_base_lower": "2320", "housing_fund_base_upper": "31884",
        **_rates(("0.08", "0.16"), ("0.02", "0.10"), ("0.002", "0.008"),
                 ("0", "0.004"), ("0", "0.008"), ("0.12", "0.12")),
    },
    "上海": {
        "base_lower": "7310", "base_upper": "36549",
        "housing_fund_base_lower": "2590", "housing_fund_base_upper": "36549",
        **_rates(("0.08", "0.16"), ("0.02", "0.10"), ("0.005", "0.005"),
                 ("0", "0.0016"), ("0", "0.01"), ("0.07", "0.07")),
    },
    "广州": {
        "base_lower": "2300", "base_upper": "38082",
        "housing_fund_base_lower": "2300", "housing_fund_base_upper": "38082",
        **_rates(("0.08", "0.14"), ("0.02", "0.065"), ("0.002", "0.0048"),
                 ("0", "0.002"), ("0", "0.0085"), ("0.12", "0.12")),
    },
    "深圳": {
        "base_lower": "2360", "base_upper": "31938",
        "housing_fund_base_lower": "2360", "housing_fund_base_upper": "31938",
        **_rates(("0.08", "0.13"), ("0.02", "0.062"), ("0.003", "0.007"),
                 ("0", "0.0014"), ("0", "0.0045"), ("0.13", "0.13")),
    },
    "杭州": {
        "base_lower": "3957", "base_upper": "19783",
        "housing_fund_base_lower": "1860", "housing_fund_base_upper": "19783",
        **_rates(("0.08", "0.14"), ("0.02", "0.105"), ("0.005", "0.005"),
                 ("0", "0.002"), ("0", "0.008"), ("0.12", "0.12")),
    },
    "成都": {
        "base_lower": "2966", "base_upper": "20307",
        "housing_fund_base_lower": "1650", "housing_fund_base_upper": "20307",
        **_rates(("0.08", "0.16"), ("0.02", "0.075"), ("0.004", "0.006"),
                 ("0", "0.002"), ("0", "0.006"), ("0.12", "0.12")),
    },
    "南京": {
        "base_lower": "4494", "base_upper": "24042",
        "housing_fund_base_lower": "1620", "housing_fund_base_upper": "24042",
        **_rates(("0.08", "0.16"), ("0.02", "0.09"), ("0.005", "0.005"),
                 ("0", "0.002"), ("0", "0.008"), ("0.12", "0.12")),
    },
    "武汉": {
        "base_lower": "3739.8", "base_upper": "18699",
        "housing_fund_base_lower": "1750", "housing_fund_base_upper": "18699",
        **_rates(("0.08", "0.16"), ("0.02", "0.08"), ("0.003", "0.007"),
                 ("0", "0.0024"), ("0", "0.005"), ("0.12", "0.12")),
    },
    "西安": {
        "base_lower": "3632", "base_upper": "18159",
        "housing_fund_base_lower": "1680", "housing_fund_base_upper": "18159",
        **_rates(("0.08", "0.16"), ("0.02", "0.07"), ("0.003", "0.007"),
                 ("0", "0.002"), ("0", "0.005"), ("0.12", "0.12")),
    },
    "苏州": {
        "base_lower": "4250", "base_upper": "24042",
        "housing_fund_base_lower": "1620", "housing_fund_base_upper": "24042",
        **_rates(("0.08", "0.16"), ("0.02", "0.09"), ("0.005", "0.005"),
                 ("0", "0.002"), ("0", "0.008"), ("0.12", "0.12")),
    },
}


# ------------------------------- Loader ---------------------------------- #

def _data_file() -> str:
    env_path = os.getenv("SS_DEFAULTS_FILE")
    if env_path:
        return env_path
    here = os.path.dirname(os.path.abspath(__file__))  # .../social_security/services
    return os.path.normpath(os.path.join(here, "..", "data", "social_security", "cities.json"))


def _load_json(path: str) -> Optional[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError):
        logger.warning("static defaults: unreadable file %s, using built-in table", path, exc_info=True)
        return None
    if not isinstance(data, dict):
        logger.warning("static defaults: %s is not a JSON object, using built-in table", path)
        return None
    return data


def _parse_table(raw: Mapping[str, Any], source: str) -> Dict[str, CityConfig]:
    table: Dict[str, CityConfig] = {}
    for city, payload in raw.items():
        name = str(city).strip()
        if not name:
            continue
        try:
            table[name] = validate_city_config(CityConfig.model_validate(payload))
        except (ValidationError, InvalidConfig) as e:
            # skip the entry, keep the rest of the table
            logger.warning("static defaults (%s): skipping %s: %s", source, name, e)
    return table


@lru_cache(maxsize=1)
def _static_table() -> Mapping[str, CityConfig]:
    path = _data_file()
    raw = _load_json(path)
    if raw is not None:
        table = _parse_table(raw, path)
        logger.info("static defaults: %d cities loaded from %s", len(table), path)
    else:
        table = _parse_table(BUILTIN_DEFAULTS, "built-in")
    return MappingProxyType(table)


def reload_static_defaults() -> None:
    """Drop the cached table; the next lookup re-reads the data file."""
    _static_table.cache_clear()


def list_static_cities() -> List[str]:
    return sorted(_static_table().keys())


def get_static_config(city: str) -> Optional[CityConfig]:
    cfg = _static_table().get(city)
    return cfg.model_copy(deep=True) if cfg is not None else None


__all__ = [
    "BUILTIN_DEFAULTS",
    "reload_static_defaults",
    "list_static_cities",
    "get_static_config",
]
