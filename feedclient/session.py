"""Load-feed-content lifecycle for the selected subscription"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Callable, Optional, Tuple

from .errors import FeedClientError, TimeoutWarning
from .models import FeedItem, FeedSnapshot
from .notifier import NotificationLevel, Notifier
from .sanitizer import ContentSanitizer
from .service import FeedServiceClient
from .watchdog import Watchdog

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Select a Feed"
PLACEHOLDER_MESSAGE = "Select a feed from the list to view its contents"
LOADING_MESSAGE = "Loading feed..."
SLOW_MESSAGE = "This feed is taking longer than expected to load. It will appear here when ready."
EMPTY_MESSAGE = "No items found in this feed"
ERROR_MESSAGE = "Error loading feed"


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERED = "rendered"
    FAILED = "failed"


class PaneKind(Enum):
    PLACEHOLDER = "placeholder"
    LOADING = "loading"
    SLOW = "slow"
    ITEMS = "items"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class ContentPane:
    """Everything the content pane shows, replaced wholesale on each change"""
    kind: PaneKind = PaneKind.PLACEHOLDER
    title: str = PLACEHOLDER_TITLE
    message: str = PLACEHOLDER_MESSAGE
    items: Tuple[FeedItem, ...] = field(default_factory=tuple)
    refreshed_at: Optional[datetime] = None
    media_normalized: bool = False


class FeedSession:
    """Owns the selection and the content pane

    Every selection issues a fresh fetch. Each load captures a generation
    number; completions and watchdog fires from a load that is no longer the
    newest are discarded, so a slow response for an abandoned selection can
    never repaint the pane.
    """

    def __init__(self, service: FeedServiceClient, notifier: Notifier,
                 sanitizer: Optional[ContentSanitizer] = None, load_timeout: float = 10.0,
                 set_refreshing: Optional[Callable[[str, bool], None]] = None):
        self.service = service
        self.notifier = notifier
        self.sanitizer = sanitizer or ContentSanitizer()
        self.load_timeout = load_timeout
        self._set_refreshing = set_refreshing or (lambda url, flag: None)
        self.state = LoadState.IDLE
        self.selected: Optional[str] = None
        self.pane = ContentPane()
        self.generation = 0

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    async def select(self, url: str, title: Optional[str] = None) -> LoadState:
        self.generation += 1
        generation = self.generation
        self.selected = url
        self.state = LoadState.LOADING
        self._set_refreshing(url, True)
        self.pane = ContentPane(kind=PaneKind.LOADING, title=title or url, message=LOADING_MESSAGE)
        logger.info(f"Loading {url} (generation {generation})")

        watchdog = Watchdog(self.load_timeout, partial(self._on_timeout, generation), operation=f"load {url}")
        watchdog.start()
        try:
            snapshot = await self.service.get_feed(url)
        except FeedClientError as e:
            self._fail(generation, url, e)
            return self.state
        finally:
            watchdog.cancel()

        self._render(generation, url, snapshot)
        return self.state

    def reset(self):
        """Back to NoneSelected with the empty placeholder"""
        if self.selected is not None:
            self._set_refreshing(self.selected, False)
        self.generation += 1
        self.selected = None
        self.state = LoadState.IDLE
        self.pane = ContentPane()

    def _settle_refreshing(self, generation: int, url: str):
        # A newer load of the same url still owns the refreshing mark
        if not self.is_current(generation) and self.state is LoadState.LOADING and self.selected == url:
            return
        self._set_refreshing(url, False)

    def _render(self, generation: int, url: str, snapshot: FeedSnapshot):
        self._settle_refreshing(generation, url)
        if not self.is_current(generation):
            logger.debug(f"Discarding stale content for {url} (generation {generation})")
            return

        items = tuple(replace(item, body=self.sanitizer.sanitize(item.body)) for item in snapshot.items)
        self.state = LoadState.RENDERED
        self.pane = ContentPane(
            kind=PaneKind.ITEMS if items else PaneKind.EMPTY,
            title=snapshot.title,
            message="" if items else EMPTY_MESSAGE,
            items=items,
            refreshed_at=datetime.now().astimezone(),
        )
        logger.info(f"Rendered {len(items)} items for {url}")
        if items:
            asyncio.get_running_loop().call_soon(self._normalize_media, generation)

    def _fail(self, generation: int, url: str, error: FeedClientError):
        self._settle_refreshing(generation, url)
        if not self.is_current(generation):
            logger.debug(f"Discarding stale failure for {url}: {error.message}")
            return

        self.state = LoadState.FAILED
        self.notifier.notify(f"Error loading feed: {error.user_message}",
                             NotificationLevel.ERROR)
        self.pane = ContentPane(kind=PaneKind.ERROR, title=self.pane.title, message=ERROR_MESSAGE)

    def _on_timeout(self, generation: int, warning: TimeoutWarning):
        if not self.is_current(generation) or self.state is not LoadState.LOADING:
            return
        self.pane = ContentPane(kind=PaneKind.SLOW, title=self.pane.title, message=SLOW_MESSAGE)

    def _normalize_media(self, generation: int):
        """Deferred image/link pass over the pane that was just rendered"""
        pane = self.pane
        if not self.is_current(generation) or pane.kind is not PaneKind.ITEMS or pane.media_normalized:
            return
        try:
            items = tuple(replace(item, body=self.sanitizer.normalize_media(item.body)) for item in pane.items)
        except Exception:
            logger.exception("Media normalization failed, keeping rendered content")
            return
        self.pane = replace(pane, items=items, media_normalized=True)
