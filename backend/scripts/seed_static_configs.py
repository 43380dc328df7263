# backend/scripts/seed_static_configs.py
r"""
Copy the static per-city defaults into the config store.

- Existing active rows are left alone unless --overwrite is given
  (an overwrite bumps the row's version like any admin save).
- Each write goes through the Config Validator and is audited with
  changed_by = "seed:static".

Usage:
  (.venv) $ python scripts/seed_static_configs.py                 # all cities
  (.venv) $ python scripts/seed_static_configs.py --city 北京 --overwrite
"""
from __future__ import annotations

# --- PATH SHIM: ensure 'social_security' is importable when running this script ---
import os, sys
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))          # .../backend/scripts
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))   # .../backend
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import argparse

from social_security.db import SessionLocal
from social_security.logging_setup import configure_logging
from social_security.services import config_store, defaults
from social_security.services.errors import SocialSecurityError


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed city configs from the static defaults")
    parser.add_argument("--city", action="append", help="Only seed this city (repeatable)")
    parser.add_argument("--overwrite", action="store_true", help="Replace existing active configs")
    args = parser.parse_args()

    configure_logging()
    cities = args.city or defaults.list_static_cities()

    created = skipped = failed = 0
    with SessionLocal() as db:
        for city in cities:
            cfg = defaults.get_static_config(city)
            if cfg is None:
                print(f"!! {city}: no static default", file=sys.stderr)
                failed += 1
                continue
            if not args.overwrite and config_store.get_active_config(db, city) is not None:
                skipped += 1
                continue
            try:
                row = config_store.save_config(db, city, cfg, changed_by="seed:static")
            except SocialSecurityError as e:
                print(f"!! {city}: {e.message}", file=sys.stderr)
                failed += 1
                continue
            print(f"✅ {city}: version {row.version}")
            created += 1

    print(f"done: written={created} skipped={skipped} failed={failed}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
