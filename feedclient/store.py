"""Ordered, url-keyed collection of subscribed feeds"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .models import Subscription

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionEntry:
    """A subscription plus the presentation flags of its list entry"""
    subscription: Subscription
    refreshing: bool = False
    pending_delete: bool = False
    delete_disabled: bool = False
    exiting: bool = False
    highlighted: bool = False

    @property
    def url(self) -> str:
        return self.subscription.url

    @property
    def title(self) -> str:
        return self.subscription.title


class SubscriptionStore:
    """Sole owner of the subscription collection

    Entries keep insertion order; rendering reads them through iteration and
    never mutates them. Flag setters ignore urls that are no longer present,
    since late completions can arrive after an entry was removed.
    """

    def __init__(self):
        self._entries: "OrderedDict[str, SubscriptionEntry]" = OrderedDict()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, url):
        return url in self._entries

    def __iter__(self) -> Iterator[SubscriptionEntry]:
        return iter(list(self._entries.values()))

    def get(self, url: str) -> Optional[SubscriptionEntry]:
        return self._entries.get(url)

    def urls(self):
        return list(self._entries)

    def insert(self, subscription: Subscription) -> bool:
        """Insert if absent; an existing url is highlighted instead of updated"""
        if subscription.url in self._entries:
            logger.info(f"Already subscribed to {subscription.url}, highlighting")
            self.highlight(subscription.url)
            return False
        self._entries[subscription.url] = SubscriptionEntry(subscription)
        return True

    def remove(self, url: str) -> Optional[Subscription]:
        entry = self._entries.pop(url, None)
        if entry is None:
            logger.debug(f"Remove ignored, {url} not in store")
            return None
        return entry.subscription

    def replace_all(self, subscriptions: Iterable[Subscription]):
        self._entries.clear()
        for subscription in subscriptions:
            self._entries.setdefault(subscription.url, SubscriptionEntry(subscription))

    def highlight(self, url: str):
        self._set(url, highlighted=True)

    def clear_highlight(self, url: str):
        self._set(url, highlighted=False)

    def mark_refreshing(self, url: str, refreshing: bool = True):
        self._set(url, refreshing=refreshing)

    def mark_pending_delete(self, url: str):
        self._set(url, pending_delete=True, delete_disabled=True)

    def revert_pending_delete(self, url: str):
        self._set(url, pending_delete=False, delete_disabled=False, exiting=False)

    def mark_exiting(self, url: str):
        self._set(url, exiting=True)

    def _set(self, url: str, **flags):
        entry = self._entries.get(url)
        if entry is None:
            return
        for name, value in flags.items():
            setattr(entry, name, value)
