"""Fixed-window, in-memory rate limiting for the public chat endpoints."""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Tuple

from fastapi import Request

from sitechat.core.config import (
    RATE_LIMIT_WINDOW_SECONDS,
    CHAT_START_LIMIT,
    CHAT_MESSAGE_LIMIT,
)


@dataclass
class _RateLimitEntry:
    count: int
    window_end: datetime


_LIMIT_STORE: Dict[Tuple[str, str], _RateLimitEntry] = {}


class RateLimitExceeded(Exception):
    def __init__(self, retry_after_seconds: int, message: str):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
        self.message = message


def rate_limit_action(key: str, identifier: str, *, limit: int, window_seconds: int, message: str) -> None:
    """Count one action and raise RateLimitExceeded once the window is full."""
    if _rate_limiting_disabled():
        return

    now = datetime.utcnow()
    store_key = (key, identifier)
    entry = _LIMIT_STORE.get(store_key)

    if entry and entry.window_end > now:
        if entry.count >= limit:
            retry_after = int((entry.window_end - now).total_seconds())
            raise RateLimitExceeded(max(retry_after, 1), message)
        entry.count += 1
        return

    _prune_expired(now)
    _LIMIT_STORE[store_key] = _RateLimitEntry(
        count=1,
        window_end=now + timedelta(seconds=window_seconds),
    )


def _prune_expired(now: datetime) -> None:
    for store_key in [k for k, entry in _LIMIT_STORE.items() if entry.window_end <= now]:
        del _LIMIT_STORE[store_key]


def _rate_limiting_disabled() -> bool:
    flag = os.getenv("RATE_LIMIT_DISABLED", "")
    return flag.lower() in {"1", "true", "yes", "on"}


def reset_rate_limits() -> None:
    _LIMIT_STORE.clear()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def limit_chat_start(request: Request):
    rate_limit_action(
        "chat_start",
        _client_ip(request),
        limit=CHAT_START_LIMIT,
        window_seconds=RATE_LIMIT_WINDOW_SECONDS,
        message="Zu viele Chat-Starts. Bitte später erneut versuchen.",
    )


def limit_chat_message(request: Request):
    rate_limit_action(
        "chat_message",
        _client_ip(request),
        limit=CHAT_MESSAGE_LIMIT,
        window_seconds=RATE_LIMIT_WINDOW_SECONDS,
        message="Zu viele Chat-Nachrichten. Bitte später erneut versuchen.",
    )
