from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

import requests

from news_digest.config import get_settings

if TYPE_CHECKING:
    from news_digest.workers import RunLog

_TELEGRAM_API_ROOT = "https://api.telegram.org"
_MAX_MESSAGE_CHARS = 4096


class TelegramConfigError(RuntimeError):
    """Raised when Telegram credentials are missing."""


class TelegramRequestError(RuntimeError):
    """Raised when Telegram HTTP calls fail or return errors."""


@dataclass(frozen=True)
class _TelegramConfig:
    bot_token: str
    chat_id: str
    timeout: int
    max_retries: int
    retry_delay: float


def is_configured() -> bool:
    """Return True if Telegram credentials are present."""
    try:
        _load_config()
    except TelegramConfigError:
        return False
    return True


def send_message(
    message: str,
    *,
    log: Optional["RunLog"] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Post an HTML message to the configured chat and return its message id.

    Each failed attempt waits ``retry_delay * 2**attempt`` seconds before the
    next one; after ``max_retries`` attempts the last error is raised.
    """
    config = _load_config()
    text = _truncate(message, _MAX_MESSAGE_CHARS)
    last_error: Optional[TelegramRequestError] = None
    for attempt in range(config.max_retries):
        if log:
            log.debug("sending Telegram message (attempt %d/%d)", attempt + 1, config.max_retries)
        try:
            message_id = _post_message(config, text)
        except TelegramRequestError as exc:
            last_error = exc
            if log:
                log.error("Telegram send failed: %s", exc)
            if attempt < config.max_retries - 1:
                delay = config.retry_delay * (2 ** attempt)
                if log:
                    log.warning("retrying in %.1fs", delay)
                sleep(delay)
            continue
        if log:
            log.info("Telegram message sent (message_id=%s)", message_id)
        return message_id
    raise last_error or TelegramRequestError("Telegram send failed")


def _load_config() -> _TelegramConfig:
    settings = get_settings()
    bot_token = settings.telegram_bot_token
    chat_id = settings.telegram_chat_id
    if not (bot_token and chat_id):
        raise TelegramConfigError(
            "Telegram credentials missing. Set TELEGRAM_BOT_TOKEN and TELEGRAM_GROUP_ID."
        )
    return _TelegramConfig(
        bot_token=bot_token,
        chat_id=chat_id,
        timeout=settings.telegram_timeout,
        max_retries=max(1, settings.telegram_max_retries),
        retry_delay=settings.telegram_retry_delay,
    )


def _post_message(config: _TelegramConfig, text: str) -> int:
    url = f"{_TELEGRAM_API_ROOT}/bot{config.bot_token}/sendMessage"
    payload = {
        "chat_id": config.chat_id,
        "text": text,
        "parse_mode": "HTML",
        "disable_web_page_preview": False,
    }
    try:
        response = requests.post(url, json=payload, timeout=config.timeout)
    except requests.RequestException as exc:
        raise TelegramRequestError(f"Failed to reach Telegram: {exc}") from exc

    try:
        data = response.json()
    except ValueError as exc:
        raise TelegramRequestError(f"Telegram response was not valid JSON (HTTP {response.status_code})") from exc

    if not data.get("ok"):
        description = data.get("description") or f"HTTP {response.status_code}"
        raise TelegramRequestError(f"Telegram sendMessage error: {description}")
    return int(data.get("result", {}).get("message_id", 0))


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[: max(0, limit - 3)] + "..."


__all__ = [
    "TelegramConfigError",
    "TelegramRequestError",
    "is_configured",
    "send_message",
]
