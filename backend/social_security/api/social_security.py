# backend/social_security/api/social_security.py
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from social_security.api.deps import Principal, get_optional_principal, require_admin
from social_security.db import get_db
from social_security.schemas.social_security import (
    CalculateRequest,
    CalculateSeriesRequest,
    CityConfig,
    ConfigSaveRequest,
)
from social_security.services import config_store
from social_security.services.calculator import (
    CalculationItem,
    CalculationResult,
    calculate,
    calculate_series,
)
from social_security.services.errors import InvalidInput, SocialSecurityError
from social_security.services.resolver import default_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/social-security", tags=["Social Security"])

# ----------------------------- helpers ----------------------------- #

def _to_float(x) -> float:
    if x is None:
        return 0.0
    if isinstance(x, Decimal):
        return float(x)
    return float(x)

def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None

def _http_error(e: SocialSecurityError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)

def _item_out(it: CalculationItem) -> Dict[str, Any]:
    return {
        "key": it.key,
        "name": it.name,
        "personal": _to_float(it.personal),
        "company": _to_float(it.company),
        "personalRate": _to_float(it.personal_rate),
        "companyRate": _to_float(it.company_rate),
    }

def _result_out(r: CalculationResult) -> Dict[str, Any]:
    return {
        "city": r.city,
        "baseSalary": _to_float(r.base_salary),
        "actualBase": _to_float(r.actual_base),
        "baseLower": _to_float(r.base_lower),
        "baseUpper": _to_float(r.base_upper),
        "housingFundActualBase": _to_float(r.housing_fund_actual_base),
        "housingFundBaseLower": _to_float(r.housing_fund_base_lower),
        "housingFundBaseUpper": _to_float(r.housing_fund_base_upper),
        "actualBases": {k: _to_float(v) for k, v in r.actual_bases.items()},
        "items": [_item_out(it) for it in r.items],
        "personalTotal": _to_float(r.personal_total),
        "companyTotal": _to_float(r.company_total),
        "total": _to_float(r.total),
        "afterTaxSalary": _to_float(r.after_tax_salary),
        "shares": {k: _to_float(v) for k, v in r.salary_shares().items()},
    }

def _config_out(cfg: CityConfig) -> Dict[str, Any]:
    # mode="json" renders Decimals as strings; the UI expects numbers
    out = cfg.model_dump()
    def conv(v):
        if isinstance(v, dict):
            return {k: conv(x) for k, x in v.items()}
        if isinstance(v, Decimal):
            return _to_float(v)
        return v
    return conv(out)


# ----------------------------- calculation ----------------------------- #

@router.post("/calculate")
def api_calculate(payload: CalculateRequest, db: Session = Depends(get_db)):
    try:
        result = calculate(
            payload.salary,
            payload.city,
            payload.custom_config,
            resolver=default_resolver(db),
        )
    except SocialSecurityError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("calculate failed city=%s", payload.city)
        raise HTTPException(status_code=500, detail="服务器内部错误")
    return _result_out(result)


@router.post("/calculate/series")
def api_calculate_series(payload: CalculateSeriesRequest, db: Session = Depends(get_db)):
    try:
        if not payload.salaries:
            raise InvalidInput("工资列表不能为空")
        city = (payload.city or "").strip()
        if not city:
            raise InvalidInput("城市不能为空")
        config = default_resolver(db).resolve(city, payload.custom_config)
        results = calculate_series(payload.salaries, config, city)
    except SocialSecurityError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("calculate series failed city=%s", payload.city)
        raise HTTPException(status_code=500, detail="服务器内部错误")
    return {"city": city, "points": [_result_out(r) for r in results], "count": len(results)}


# ------------------------------- config -------------------------------- #

@router.get("/config")
def api_get_config(
    city: Optional[str] = Query(None, description="Return the resolved config for this city"),
    all: bool = Query(False, description="Admin listing of every persisted config"),
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(get_optional_principal),
):
    try:
        if all:
            if principal is None:
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-API-Key")
            if not principal.is_admin:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
            rows = config_store.list_active_configs(db)
            configs = [
                {
                    "id": row["id"],
                    "city": row["city"],
                    "config": _config_out(row["config"]),
                    "created_at": _iso(row["created_at"]),
                    "updated_at": _iso(row["updated_at"]),
                    "version": row["version"],
                }
                for row in rows
            ]
            return {"configs": configs, "count": len(configs)}

        resolver = default_resolver(db)
        if city:
            cfg = resolver.resolve(city)
            return {"city": city.strip(), "config": _config_out(cfg)}

        cities = resolver.known_cities()
        return {"cities": cities, "count": len(cities)}
    except HTTPException:
        raise
    except SocialSecurityError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("config lookup failed city=%s", city)
        raise HTTPException(status_code=500, detail="服务器内部错误")


@router.post("/config")
def api_save_config(
    payload: ConfigSaveRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    try:
        row = config_store.save_config(db, payload.city, payload.config, changed_by=principal.name)
    except SocialSecurityError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("config save failed city=%s", payload.city)
        raise HTTPException(status_code=500, detail="服务器内部错误")
    return {"success": True, "message": "配置保存成功", "city": row.city, "version": row.version}


@router.delete("/config/{city}")
def api_deactivate_config(
    city: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    try:
        row = config_store.deactivate_config(db, city, changed_by=principal.name)
    except SocialSecurityError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("config deactivate failed city=%s", city)
        raise HTTPException(status_code=500, detail="服务器内部错误")
    return {"success": True, "message": "配置已停用", "city": row.city, "version": row.version}


@router.get("/config/audit", dependencies=[Depends(require_admin)])
def api_config_audit(
    city: Optional[str] = None,
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    try:
        rows = config_store.list_audit(db, city=city, limit=limit)
    except SocialSecurityError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("config audit failed city=%s", city)
        raise HTTPException(status_code=500, detail="服务器内部错误")
    items = [dict(r, changed_at=_iso(r["changed_at"])) for r in rows]
    return {"items": items, "count": len(items)}
