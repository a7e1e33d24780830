"""Subscription and feed content records exchanged with the feed service"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from dateutil import parser as date_parser

from .errors import ValidationError

logger = logging.getLogger(__name__)


def validate_feed_url(raw: Optional[str]) -> str:
    """Trim and check a user-supplied feed URL, returning the cleaned value"""
    url = (raw or "").strip()
    if not url:
        raise ValidationError("Please enter a valid URL")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Not a valid feed URL: {url}")
    return url


def parse_published(value) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime

    The service sends the zero time for undated items, which is treated the
    same as a missing value.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except (ValueError, OverflowError):
            logger.warning(f"Could not parse date: {value}")
            return None

    if parsed.year <= 1:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Subscription:
    """A user's record of interest in one feed URL"""
    url: str
    title: str

    @classmethod
    def from_payload(cls, payload: Dict) -> "Subscription":
        url = payload.get("URL") or payload.get("url") or ""
        if not url:
            raise ValueError("subscription payload has no URL")
        title = payload.get("Title") or payload.get("title") or url
        return cls(url=url, title=title)


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    published_at: Optional[datetime]
    body: str = ""

    @classmethod
    def from_payload(cls, payload: Dict) -> "FeedItem":
        body = payload.get("Description") or payload.get("Content") or ""
        if not isinstance(body, str):
            raise ValueError("feed item body is not text")
        return cls(
            title=payload.get("Title") or "Untitled",
            link=payload.get("Link") or "",
            published_at=parse_published(payload.get("PublishedAt")),
            body=body,
        )


@dataclass(frozen=True)
class FeedSnapshot:
    """Feed content as of one fetch - never cached"""
    title: str
    items: Tuple[FeedItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Dict) -> "FeedSnapshot":
        items = payload.get("Items") or []
        return cls(
            title=payload.get("Title") or "Untitled Feed",
            items=tuple(FeedItem.from_payload(item) for item in items),
        )
