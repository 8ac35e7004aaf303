from functools import lru_cache

from app.core.config import settings

from .db import SQLiteStore


@lru_cache(maxsize=1)
def get_default_store() -> SQLiteStore:
    return SQLiteStore(settings.database_path)


__all__ = ["SQLiteStore", "get_default_store"]
