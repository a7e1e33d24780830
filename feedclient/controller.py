"""Wires user intents to the store, the feed session and the notifier"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Iterable, Optional, Set, Union

from .config import ClientConfig
from .errors import FeedClientError, TimeoutWarning
from .models import Subscription, validate_feed_url
from .notifier import NotificationLevel, Notifier
from .sanitizer import ContentSanitizer
from .service import FeedServiceClient
from .session import FeedSession, LoadState
from .store import SubscriptionStore
from .watchdog import Watchdog

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]


@dataclass
class AddFeedForm:
    """State of the add-feed input and its submit button"""
    value: str = ""
    submit_enabled: bool = True


class SyncController:
    """Top-level coordinator for subscribe, select and delete

    Everything runs on one event loop. The only discipline is that each
    handler leaves the submit and delete affordances consistent on every exit
    path, watchdog fires included.
    """

    def __init__(self, service: FeedServiceClient, config: Optional[ClientConfig] = None,
                 notifier: Optional[Notifier] = None, sanitizer: Optional[ContentSanitizer] = None,
                 confirm: Optional[ConfirmCallback] = None):
        self.config = config or ClientConfig()
        self.service = service
        self.notifier = notifier or Notifier(self.config.toast_duration)
        self.store = SubscriptionStore()
        self.session = FeedSession(
            service,
            self.notifier,
            sanitizer=sanitizer,
            load_timeout=self.config.load_timeout,
            set_refreshing=self.store.mark_refreshing,
        )
        self.form = AddFeedForm()
        self.confirm = confirm
        self._add_attempts = 0
        self._submit_owner: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # Background intents
    # =========================================================================

    def spawn(self, coro) -> asyncio.Task:
        """Run an intent without blocking the caller, keeping a reference until done"""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self):
        """Wait for every spawned intent (used on shutdown and in tests)"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def export_url(self, url: str) -> str:
        return self.service.export_url(url)

    # =========================================================================
    # Startup
    # =========================================================================

    async def hydrate(self) -> int:
        """Load the current subscription list from the service"""
        try:
            subscriptions = await self.service.list_subscriptions()
        except FeedClientError as e:
            self.notifier.notify(f"Error loading subscriptions: {e.user_message}",
                                 NotificationLevel.ERROR)
            return 0
        self.store.replace_all(subscriptions)
        logger.info(f"Loaded {len(self.store)} subscriptions")
        return len(self.store)

    async def seed_default_feeds(self, urls: Optional[Iterable[str]] = None) -> int:
        """Subscribe to the configured default feeds when the list is empty

        Seeding bypasses the add form, so a user submit made meanwhile is
        neither blocked nor overwritten.
        """
        if len(self.store):
            return 0
        added = 0
        for raw_url in (self.config.default_feeds if urls is None else urls):
            try:
                subscription = await self.service.add_subscription(validate_feed_url(raw_url))
            except FeedClientError as e:
                self.notifier.notify(f"Error adding feed: {e.user_message}", NotificationLevel.ERROR)
                continue
            if subscription.url not in self.store:
                self.store.insert(subscription)
                added += 1
        logger.info(f"Seeded {added} default feeds")
        return added

    # =========================================================================
    # Add flow
    # =========================================================================

    async def submit_add(self, raw_url: str, select: bool = True) -> Optional[Subscription]:
        if not self.form.submit_enabled:
            logger.debug("Add ignored, a previous submit is still pending")
            return None

        self.form.value = raw_url
        try:
            url = validate_feed_url(raw_url)
        except FeedClientError as e:
            self.notifier.notify(e.user_message, NotificationLevel.ERROR)
            return None

        self._add_attempts += 1
        attempt = self._add_attempts
        self._submit_owner = attempt
        self.form.submit_enabled = False
        logger.info(f"Adding feed {url} (attempt {attempt})")

        watchdog = Watchdog(self.config.add_timeout, partial(self._on_add_timeout, attempt), operation=f"add {url}")
        watchdog.start()
        try:
            subscription = await self.service.add_subscription(url)
        except FeedClientError as e:
            self.notifier.notify(f"Error adding feed: {e.user_message}", NotificationLevel.ERROR)
            return None
        finally:
            watchdog.cancel()
            self._release_submit(attempt)

        # The user may have typed something new after a timeout
        if self.form.value in (raw_url, ""):
            self.form.value = ""

        if self.store.insert(subscription):
            self.notifier.notify("Feed added successfully!", NotificationLevel.SUCCESS)
        else:
            self.notifier.notify(f"Already subscribed to: {subscription.title}", NotificationLevel.SUCCESS)
            asyncio.get_running_loop().call_later(
                self.config.highlight_duration, self.store.clear_highlight, subscription.url
            )

        if select:
            await self.select(subscription.url)
        return subscription

    def _release_submit(self, attempt: int):
        # Only the attempt that disabled submit may re-enable it, and only once
        if self._submit_owner != attempt:
            return
        self._submit_owner = None
        self.form.submit_enabled = True

    def _on_add_timeout(self, attempt: int, warning: TimeoutWarning):
        self.notifier.notify("Your feed is still being processed. Check back shortly.", NotificationLevel.WARNING)
        self._release_submit(attempt)

    # =========================================================================
    # Selection
    # =========================================================================

    async def select(self, url: str) -> Optional[LoadState]:
        entry = self.store.get(url)
        if entry is None:
            logger.debug(f"Select ignored, {url} is not subscribed")
            return None
        return await self.session.select(url, title=entry.title)

    # =========================================================================
    # Delete flow
    # =========================================================================

    async def delete(self, url: str, confirmed: Optional[bool] = None) -> bool:
        entry = self.store.get(url)
        if entry is None or entry.delete_disabled:
            logger.debug(f"Delete ignored for {url}")
            return False

        if confirmed is None:
            confirmed = await self._ask_confirmation(url)
        if not confirmed:
            return False

        # Confirmation may have awaited; re-check before committing
        entry = self.store.get(url)
        if entry is None or entry.delete_disabled:
            return False

        self.store.mark_pending_delete(url)
        logger.info(f"Deleting feed {url}")
        watchdog = Watchdog(self.config.delete_timeout, self._on_delete_timeout, operation=f"delete {url}")
        watchdog.start()
        try:
            await self.service.delete_subscription(url)
        except FeedClientError as e:
            self.store.revert_pending_delete(url)
            self.notifier.notify(f"Error deleting feed: {e.user_message}", NotificationLevel.ERROR)
            return False
        finally:
            watchdog.cancel()

        self.store.mark_exiting(url)
        if self.config.exit_transition:
            await asyncio.sleep(self.config.exit_transition)

        if self.store.remove(url) is None:
            return False
        if self.session.selected == url:
            self.session.reset()
        self.notifier.notify("Feed deleted successfully!", NotificationLevel.SUCCESS)
        return True

    async def _ask_confirmation(self, url: str) -> bool:
        if self.confirm is None:
            logger.warning(f"No confirmation handler, not deleting {url}")
            return False
        answer = self.confirm(url)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _on_delete_timeout(self, warning: TimeoutWarning):
        self.notifier.notify("Delete request may still be processing.", NotificationLevel.WARNING)

    async def shutdown(self):
        """Cancel outstanding intents and close the service connection"""
        for task in list(self._tasks):
            task.cancel()
        await self.drain()
        self.notifier.clear()
        await self.service.aclose()
