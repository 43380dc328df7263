# backend/social_security/services/resolver.py
"""
Configuration resolver: turns a city name into a CityConfig.

Resolution order:
    1) caller-supplied override (used verbatim)
    2) each source in order; the standard chain is
         StoreSource  (persisted, active row)
         StaticSource (built-in / file defaults)
    3) CityNotFound

Every resolved config is a private copy, so a config saved while a calculation
runs is only seen by the next calculation.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from sqlalchemy.orm import Session

from social_security.schemas.social_security import CityConfig
from social_security.services import config_store, defaults
from social_security.services.errors import CityNotFound, InvalidInput

logger = logging.getLogger(__name__)


class ConfigSource(Protocol):
    name: str

    def lookup(self, city: str) -> Optional[CityConfig]: ...

    def cities(self) -> List[str]: ...


class StoreSource:
    name = "store"

    def __init__(self, db: Session) -> None:
        self.db = db

    def lookup(self, city: str) -> Optional[CityConfig]:
        return config_store.get_active_config(self.db, city)

    def cities(self) -> List[str]:
        return config_store.list_active_cities(self.db)


class StaticSource:
    name = "static"

    def lookup(self, city: str) -> Optional[CityConfig]:
        return defaults.get_static_config(city)

    def cities(self) -> List[str]:
        return defaults.list_static_cities()


class ConfigResolver:
    def __init__(self, sources: Iterable[ConfigSource]) -> None:
        self.sources: Sequence[ConfigSource] = tuple(sources)

    def resolve(self, city: Optional[str], custom_config: Optional[CityConfig] = None) -> CityConfig:
        if custom_config is not None:
            logger.debug("resolver: using caller override city=%s", city)
            return custom_config.model_copy(deep=True)

        name = (city or "").strip()
        if not name:
            raise InvalidInput("城市不能为空")

        for source in self.sources:
            cfg = source.lookup(name)
            if cfg is not None:
                logger.debug("resolver: city=%s resolved from %s", name, source.name)
                return cfg.model_copy(deep=True)

        raise CityNotFound(name)

    def known_cities(self) -> List[str]:
        seen = set()
        for source in self.sources:
            seen.update(source.cities())
        return sorted(seen)


def default_resolver(db: Session) -> ConfigResolver:
    return ConfigResolver([StoreSource(db), StaticSource()])


__all__ = [
    "ConfigSource",
    "StoreSource",
    "StaticSource",
    "ConfigResolver",
    "default_resolver",
]
