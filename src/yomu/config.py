from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

__all__ = [
    "DEFAULT_ARCHIVE_NAME",
    "DEFAULT_DB_NAME",
    "DEFAULT_LOOKUP_LIMIT",
    "DictionaryConfig",
    "load_config",
]

DEFAULT_DB_NAME = "dict.db"
DEFAULT_ARCHIVE_NAME = "jitendex.zip"
DEFAULT_LOOKUP_LIMIT = 10
MAX_LOOKUP_LIMIT = 50

_DB_ENV = "YOMU_DB"
_ARCHIVE_ENV = "YOMU_ARCHIVE"
_LIMIT_ENV = "YOMU_LOOKUP_LIMIT"
_DICDIR_ENV = "YOMU_MECAB_DICDIR"


@dataclass(slots=True)
class DictionaryConfig:
    db_path: Path = Path(DEFAULT_DB_NAME)
    archive_path: Path = Path(DEFAULT_ARCHIVE_NAME)
    lookup_limit: int = DEFAULT_LOOKUP_LIMIT
    mecab_dicdir: Path | None = None


def _parse_limit(value: str | None) -> int:
    if not value:
        return DEFAULT_LOOKUP_LIMIT
    try:
        parsed = int(value.strip())
    except ValueError:
        return DEFAULT_LOOKUP_LIMIT
    if parsed <= 0:
        return DEFAULT_LOOKUP_LIMIT
    return min(parsed, MAX_LOOKUP_LIMIT)


def _env_path(env: Mapping[str, str], key: str) -> Path | None:
    value = env.get(key)
    if not value or not value.strip():
        return None
    return Path(value.strip()).expanduser()


def load_config(env: Mapping[str, str] | None = None) -> DictionaryConfig:
    """Build a config from defaults and ``YOMU_*`` environment overrides."""
    if env is None:
        env = os.environ
    return DictionaryConfig(
        db_path=_env_path(env, _DB_ENV) or Path(DEFAULT_DB_NAME),
        archive_path=_env_path(env, _ARCHIVE_ENV) or Path(DEFAULT_ARCHIVE_NAME),
        lookup_limit=_parse_limit(env.get(_LIMIT_ENV)),
        mecab_dicdir=_env_path(env, _DICDIR_ENV),
    )
