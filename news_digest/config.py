from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

_REPO_ROOT = Path(__file__).resolve().parent.parent
_ENV_LOADED = False
_ENV_FILES = (
    _REPO_ROOT / ".env.local",
    _REPO_ROOT / ".env",
)


def _load_env_file(path: Path) -> None:
    """Best-effort `.env` loader that respects already-set variables."""
    if not path.exists():
        return
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        # Unreadable env files are ignored; explicit env vars win anyway.
        return
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
            value = value[1:-1]
        if key and key not in os.environ:
            os.environ[key] = value


def load_environment() -> None:
    """Load environment files once, preferring explicitly exported values."""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    for candidate in _ENV_FILES:
        _load_env_file(candidate)
    _ENV_LOADED = True


def _get_env(*keys: str) -> Optional[str]:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _resolve_path(env_value: Optional[str], *, default: Path) -> Path:
    raw_path = Path(env_value).expanduser() if env_value else default
    return raw_path if raw_path.is_absolute() else (_REPO_ROOT / raw_path)


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: Optional[str]
    telegram_chat_id: Optional[str]
    telegram_timeout: int
    telegram_max_retries: int
    telegram_retry_delay: float
    filter_rules_path: Path
    log_dir: Path
    output_dir: Path
    fetch_timeout: int
    fetch_delay: float
    max_items_per_source: int
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached project settings sourced from env variables."""
    load_environment()

    telegram_bot_token = _get_env("TELEGRAM_BOT_TOKEN")
    telegram_chat_id = _get_env("TELEGRAM_GROUP_ID", "TELEGRAM_CHAT_ID")
    telegram_timeout = _optional_int(os.getenv("TELEGRAM_TIMEOUT")) or 10
    telegram_max_retries = _optional_int(os.getenv("TELEGRAM_MAX_RETRIES")) or 3
    retry_delay = _optional_float(os.getenv("TELEGRAM_RETRY_DELAY"))
    telegram_retry_delay = retry_delay if retry_delay is not None else 1.0

    fetch_timeout = _optional_int(os.getenv("FETCH_TIMEOUT")) or 10
    delay = _optional_float(os.getenv("FETCH_DELAY"))
    fetch_delay = delay if delay is not None else 1.0
    max_items_per_source = _optional_int(os.getenv("MAX_ITEMS_PER_SOURCE")) or 50

    log_level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    return Settings(
        telegram_bot_token=telegram_bot_token,
        telegram_chat_id=telegram_chat_id,
        telegram_timeout=telegram_timeout,
        telegram_max_retries=max(1, telegram_max_retries),
        telegram_retry_delay=max(0.0, telegram_retry_delay),
        filter_rules_path=_resolve_path(
            os.getenv("FILTER_RULES_PATH"),
            default=Path("config") / "filter-rules.json",
        ),
        log_dir=_resolve_path(os.getenv("LOG_DIR"), default=Path("logs")),
        output_dir=_resolve_path(os.getenv("OUTPUT_DIR"), default=Path("outputs")),
        fetch_timeout=fetch_timeout,
        fetch_delay=max(0.0, fetch_delay),
        max_items_per_source=max(1, max_items_per_source),
        log_level=log_level,
    )


__all__ = ["Settings", "get_settings", "load_environment"]
