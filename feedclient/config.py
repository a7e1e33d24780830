"""Client configuration - every timing decision in one place"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import ValidationError


def split_urls(urls_str: str) -> List[str]:
    """Split a comma-separated list of feed URLs, dropping blanks"""
    if not urls_str:
        return []
    return [url.strip() for url in urls_str.split(",") if url.strip()]


@dataclass(frozen=True)
class ClientConfig:
    """Timeouts and service location for the subscription client

    All durations are in seconds. Watchdogs only change presentation state,
    the HTTP timeout is the transport-level limit.
    """
    service_url: str = "http://localhost:8080"
    add_timeout: float = 15.0
    load_timeout: float = 10.0
    delete_timeout: float = 10.0
    toast_duration: float = 4.0
    highlight_duration: float = 2.0
    exit_transition: float = 0.3
    http_timeout: float = 60.0
    default_feeds: tuple = ()

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ClientConfig":
        """Build a config from environment variables, falling back to defaults"""
        env = os.environ if environ is None else environ
        defaults = cls()

        def seconds(name, default):
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                value = float(raw)
            except ValueError:
                raise ValidationError(f"{name} must be a number of seconds, got {raw!r}")
            if value < 0:
                raise ValidationError(f"{name} must not be negative")
            return value

        return cls(
            service_url=env.get("FEED_SERVICE_URL", defaults.service_url).rstrip("/"),
            add_timeout=seconds("ADD_TIMEOUT", defaults.add_timeout),
            load_timeout=seconds("LOAD_TIMEOUT", defaults.load_timeout),
            delete_timeout=seconds("DELETE_TIMEOUT", defaults.delete_timeout),
            toast_duration=seconds("TOAST_DURATION", defaults.toast_duration),
            highlight_duration=seconds("HIGHLIGHT_DURATION", defaults.highlight_duration),
            exit_transition=seconds("EXIT_TRANSITION", defaults.exit_transition),
            http_timeout=seconds("HTTP_TIMEOUT", defaults.http_timeout),
            default_feeds=tuple(split_urls(env.get("DEFAULT_FEEDS", ""))),
        )
