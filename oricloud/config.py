"""OriCloud configuration.

Values come from the process environment, with `.env` in the repository root
loaded first (existing variables win).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return bool(default)
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str | None, default: int) -> int:
    try:
        return int(str(value).strip())
    except Exception:
        return int(default)


def _as_path(value: str | None, default: Path) -> Path:
    raw = (value or "").strip()
    return Path(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    db_path: Path
    sqlite_busy_timeout_ms: int

    # Live updates
    subscription_queue_size: int
    graphql_ide: bool

    # Auth
    auth_enabled: bool
    auth_jwt_secret: str
    auth_jwt_alg: str
    auth_access_token_min: int

    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    base_dir = Path(__file__).resolve().parents[1]
    load_dotenv(dotenv_path=base_dir / ".env", override=False)

    db_path = _as_path(os.getenv("ORICLOUD_DATABASE_PATH"), base_dir / ".runtime" / "data" / "oricloud.db")
    if not db_path.is_absolute():
        db_path = base_dir / db_path

    return Settings(
        base_dir=base_dir,
        db_path=db_path,
        sqlite_busy_timeout_ms=max(100, _as_int(os.getenv("ORICLOUD_SQLITE_BUSY_TIMEOUT_MS"), 5000)),
        subscription_queue_size=max(0, _as_int(os.getenv("ORICLOUD_SUBSCRIPTION_QUEUE_SIZE"), 0)),
        graphql_ide=_as_bool(os.getenv("ORICLOUD_GRAPHQL_IDE"), True),
        auth_enabled=_as_bool(os.getenv("AUTH_ENABLED"), True),
        auth_jwt_secret=os.getenv("AUTH_JWT_SECRET", "change-me-in-production"),
        auth_jwt_alg=os.getenv("AUTH_JWT_ALG", "HS256"),
        auth_access_token_min=_as_int(os.getenv("AUTH_ACCESS_TOKEN_MIN"), 60),
        log_level=(os.getenv("ORICLOUD_LOG_LEVEL") or "INFO").strip().upper(),
    )
