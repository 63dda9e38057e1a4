from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache
from pathlib import Path

import redis
from fastapi import Depends

from inlinegames.config import EngineConfig
from inlinegames.i18n import LocaleCatalog
from inlinegames.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


@lru_cache(maxsize=1)
def get_config() -> EngineConfig:
    return EngineConfig.from_env()


def get_catalog(config: EngineConfig = Depends(get_config)) -> LocaleCatalog:
    if config.locales_dir is not None:
        return _catalog_from_directory(str(config.locales_dir), config.default_locale)
    return LocaleCatalog(default_locale=config.default_locale)


@lru_cache(maxsize=4)
def _catalog_from_directory(path: str, default_locale: str) -> LocaleCatalog:
    return LocaleCatalog.from_directory(Path(path), default_locale=default_locale)
