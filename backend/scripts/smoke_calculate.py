# backend/scripts/smoke_calculate.py
"""
Smoke test against a running server.

1) GET  /social-security/config            → city list
2) POST /social-security/calculate         → 北京 @ 10000, checks pension/housing legs
3) POST /social-security/calculate         → bad salary must be 400
4) POST /social-security/calculate/series  → three salary points

Usage:
  (.venv) $ uvicorn social_security.main:app --reload
  (.venv) $ python scripts/smoke_calculate.py --base http://127.0.0.1:8000
"""
from __future__ import annotations

import argparse
import json
import sys

import requests


def _check(cond: bool, msg: str) -> None:
    if not cond:
        print(f"❌ {msg}")
        sys.exit(1)
    print(f"✅ {msg}")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--city", default="北京")
    args = parser.parse_args()
    base = args.base.rstrip("/")

    r = requests.get(f"{base}/social-security/config", timeout=10)
    _check(r.status_code == 200, f"city list ({r.status_code})")
    cities = r.json()["cities"]
    _check(args.city in cities, f"{args.city} is listed")

    r = requests.post(
        f"{base}/social-security/calculate",
        json={"salary": 10000, "city": args.city},
        timeout=10,
    )
    _check(r.status_code == 200, f"calculate ({r.status_code})")
    res = r.json()
    legs = {it["key"]: it for it in res["items"]}
    _check(len(legs) == 6, "six categories")
    _check(
        abs(res["afterTaxSalary"] - (res["baseSalary"] - res["personalTotal"])) < 0.005,
        "afterTaxSalary = salary - personalTotal",
    )
    print(json.dumps({k: [v["personal"], v["company"]] for k, v in legs.items()}, ensure_ascii=False))

    r = requests.post(
        f"{base}/social-security/calculate",
        json={"salary": -1, "city": args.city},
        timeout=10,
    )
    _check(r.status_code == 400, f"negative salary rejected ({r.status_code})")

    r = requests.post(
        f"{base}/social-security/calculate/series",
        json={"salaries": [3000, 10000, 40000], "city": args.city},
        timeout=10,
    )
    _check(r.status_code == 200 and r.json()["count"] == 3, "series of three points")


if __name__ == "__main__":
    main()
