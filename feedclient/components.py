"""FastHTML components - pure renderings of client state"""

from datetime import datetime
from typing import Callable, Optional
from urllib.parse import quote

from fasthtml.common import *
from monsterui.all import *

from .controller import AddFeedForm, SyncController
from .models import FeedItem
from .notifier import Notification, Notifier
from .sanitizer import inert_markup
from .session import ContentPane, PaneKind
from .store import SubscriptionEntry, SubscriptionStore

# =============================================================================
# CONFIGURATION - element ids and styling used by the page and its swaps
# =============================================================================

class ElementIDs:
    """DOM element identifiers targeted by out-of-band swaps"""
    FEED_LIST = 'feed-list'
    FEED_CONTENT = 'feed-content'
    FEED_TITLE = 'current-feed-title'
    ADD_FORM = 'add-feed-form'
    TOASTS = 'toast-container'
    LIVE = 'live-sync'

class Styling:
    """CSS classes for list entries and the content pane"""
    FEED_ENTRY = 'feed-item flex items-center justify-between p-3 cursor-pointer hover:bg-secondary'
    ACTIVE = 'active bg-secondary'
    REFRESHING = 'refreshing'
    PENDING_DELETE = 'pending-delete opacity-50'
    EXITING = 'exiting'
    HIGHLIGHT = 'highlight'
    ARTICLE = 'feed-item-entry rounded-lg border border-border p-6 mb-6'
    PANE_MESSAGE = 'text-center p-8'

TOAST_STYLES = """
.toast-container { position: fixed; top: 1rem; right: 1rem; z-index: 60; display: flex; flex-direction: column; gap: .5rem; }
.toast { padding: .75rem 1rem; border-radius: .5rem; color: white; display: flex; gap: 1rem; align-items: center; }
.toast-success { background: #16a34a; } .toast-error { background: #dc2626; }
.toast-warning { background: #d97706; } .toast-info { background: #2563eb; }
.feed-item.refreshing .feed-title::after { content: " ..."; }
.feed-item.highlight { outline: 2px solid #facc15; }
.feed-item.exiting { opacity: 0; transition: opacity .3s ease; }
.feed-content .themed { color: inherit; background-color: transparent; }
.feed-content img { max-width: 100%; height: auto; }
"""


def format_published(dt: Optional[datetime]) -> str:
    """Item timestamp in local time, e.g. 'January 2, 2006 at 3:04 PM'"""
    if dt is None:
        return "Unknown date"
    local = dt.astimezone()
    hour = local.hour % 12 or 12
    return f"{local:%B} {local.day}, {local.year} at {hour}:{local:%M} {local:%p}"


def format_refreshed(dt: Optional[datetime]) -> str:
    if dt is None:
        return ""
    return f"Updated {dt.astimezone():%H:%M:%S}"


def _with_url(path: str, url: str) -> str:
    return f"{path}?url={quote(url, safe='')}"


def SubscriptionItem(entry: SubscriptionEntry, selected: bool = False, export_href: str = "#"):
    """One subscription row with its RSS export link and delete button"""
    cls = [Styling.FEED_ENTRY]
    if selected:
        cls.append(Styling.ACTIVE)
    if entry.refreshing:
        cls.append(Styling.REFRESHING)
    if entry.pending_delete:
        cls.append(Styling.PENDING_DELETE)
    if entry.exiting:
        cls.append(Styling.EXITING)
    if entry.highlighted:
        cls.append(Styling.HIGHLIGHT)

    return Li(
        DivLAligned(
            UkIcon('rss', cls="flex-none"),
            Span(entry.title, cls="feed-title"),
            cls="gap-3 min-w-0"
        ),
        DivLAligned(
            A("RSS", href=export_href, target="_blank", rel="noopener noreferrer",
              onclick="event.stopPropagation()", cls="text-xs hover:underline"),
            Button(
                UkIcon('trash-2'),
                hx_post=_with_url("/ui/delete", entry.url),
                hx_confirm="Are you sure you want to remove this feed subscription?",
                hx_swap="none",
                onclick="event.stopPropagation()",
                disabled=entry.delete_disabled,
                title="Delete Feed",
                cls="delete-feed p-1 rounded hover:bg-secondary"
            ),
            cls="gap-2 flex-none"
        ),
        cls=" ".join(cls),
        data_url=entry.url,
        hx_get=_with_url("/ui/select", entry.url),
        hx_swap="none"
    )


def SubscriptionList(store: SubscriptionStore, selected: Optional[str] = None,
                     export_url: Optional[Callable[[str], str]] = None, oob: bool = False):
    """The subscription list, rendered from the store alone"""
    export_url = export_url or (lambda url: _with_url("/export", url))
    entries = [SubscriptionItem(entry, entry.url == selected, export_url(entry.url)) for entry in store]
    if not entries:
        entries = [Li(P("No subscriptions yet", cls=TextPresets.muted_sm), cls="p-3 empty-list")]
    attrs = {"hx_swap_oob": "true"} if oob else {}
    return Ul(*entries, id=ElementIDs.FEED_LIST, cls="divide-y divide-border", **attrs)


def FeedEntry(item: FeedItem):
    """One feed item: outbound title link, local timestamp, sanitized body with scripting disabled"""
    title = A(item.title, href=item.link, target="_blank", rel="noopener noreferrer",
              cls="hover:text-blue-400") if item.link else Span(item.title)
    return Article(
        H3(title, cls="text-xl font-semibold mb-3"),
        Div(Time(format_published(item.published_at)), cls="feed-item-meta text-sm text-muted-foreground mb-4"),
        Div(NotStr(inert_markup(item.body)), cls="feed-content prose max-w-none break-words"),
        cls=Styling.ARTICLE
    )


def FeedPane(pane: ContentPane, oob: bool = False):
    """Content pane: header plus items or one of the placeholder messages"""
    if pane.kind is PaneKind.ITEMS:
        body = Div(*[FeedEntry(item) for item in pane.items], cls="max-w-4xl mx-auto")
    else:
        message_cls = {
            PaneKind.ERROR: 'text-red-500',
            PaneKind.SLOW: 'text-yellow-600',
        }.get(pane.kind, 'text-muted-foreground')
        body = P(pane.message, cls=f"{Styling.PANE_MESSAGE} {message_cls} pane-{pane.kind.value}")

    attrs = {"hx_swap_oob": "true"} if oob else {}
    return Section(
        DivFullySpaced(
            H2(pane.title, id=ElementIDs.FEED_TITLE, cls="text-lg font-semibold"),
            Small(format_refreshed(pane.refreshed_at), cls="feed-freshness text-muted-foreground")
        ),
        body,
        id=ElementIDs.FEED_CONTENT,
        data_state=pane.kind.value,
        cls="p-4",
        **attrs
    )


def ToastItem(notification: Notification):
    return Div(
        Span(notification.message),
        Button("×", hx_post=f"/ui/toasts/{notification.id}/dismiss", hx_swap="none",
               cls="toast-dismiss", title="Dismiss"),
        cls=f"toast toast-{notification.level.value}",
        role="alert",
        data_toast_id=str(notification.id)
    )


def ToastStack(notifier: Notifier, oob: bool = False):
    attrs = {"hx_swap_oob": "true"} if oob else {}
    return Div(*[ToastItem(n) for n in notifier.active], cls="toast-container", id=ElementIDs.TOASTS, **attrs)


def AddFeedFormView(form: AddFeedForm, oob: bool = False):
    attrs = {"hx_swap_oob": "true"} if oob else {}
    return Form(
        DivLAligned(
            Input(placeholder="Enter RSS URL", name="feed_url", value=form.value, cls="flex-1 mr-2"),
            Button(UkIcon('plus'), type="submit", disabled=not form.submit_enabled, cls="px-2 add-feed-button"),
        ),
        hx_post="/ui/feeds",
        hx_swap="none",
        id=ElementIDs.ADD_FORM,
        cls="p-4",
        **attrs
    )


def LiveFragments(controller: SyncController):
    """Out-of-band swaps that bring the page up to date with the controller"""
    return (
        SubscriptionList(controller.store, controller.session.selected, controller.export_url, oob=True),
        FeedPane(controller.session.pane, oob=True),
        AddFeedFormView(controller.form, oob=True),
        ToastStack(controller.notifier, oob=True),
    )


def AppShell(controller: SyncController):
    """Full page: sidebar with form and list, content pane, toasts"""
    return Div(
        Aside(
            H3("Feeds", cls="p-3"),
            AddFeedFormView(controller.form),
            SubscriptionList(controller.store, controller.session.selected, controller.export_url),
            cls="border-r overflow-y-auto"
        ),
        Main(FeedPane(controller.session.pane), cls="overflow-y-auto"),
        ToastStack(controller.notifier),
        Div(id=ElementIDs.LIVE, hx_get="/ui/refresh", hx_trigger="every 1s", hx_swap="none"),
        id="app-root",
        cls="grid min-h-dvh lg:grid-cols-[20rem_1fr]"
    )
