"""Feed subscription client built with FastHTML and MonsterUI"""

import asyncio
import logging
import os
from typing import Optional

import httpx
from fasthtml.common import *
from monsterui.all import *

from .components import TOAST_STYLES, AppShell, LiveFragments
from .config import ClientConfig
from .controller import SyncController
from .service import FeedServiceClient

# Configure logging level from environment variable
log_level = getattr(logging, os.environ.get('LOG_LEVEL', 'INFO').upper(), logging.INFO)
logging.basicConfig(level=log_level)
logger = logging.getLogger(__name__)

# =============================================================================
# ARCHITECTURAL DECISIONS
# =============================================================================
# One SyncController per process holds all client state; routes only record
# intents and answer with the current rendering.
#
# Intents run as background tasks, so a request never waits on the feed
# service. Late completions (slow loads, settles after a watchdog fired)
# reach the page through /ui/refresh, polled every second, which answers
# with out-of-band swaps of the list, pane, form and toasts.
# =============================================================================


def build_controller(config: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> SyncController:
    client = httpx.AsyncClient(
        base_url=config.service_url,
        timeout=config.http_timeout,
        transport=transport,
        headers={'User-Agent': 'Feed Subscription Client/1.0'}
    )
    return SyncController(FeedServiceClient(client=client), config)


def create_app(config: Optional[ClientConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
    """FastHTML app hosting one subscription client"""
    config = config or ClientConfig.from_env()

    async def lifespan(app):
        controller = build_controller(config, transport)
        app.state.controller = controller
        logger.info(f"Feed client starting against {config.service_url}")
        await controller.hydrate()
        if config.default_feeds:
            controller.spawn(controller.seed_default_feeds())
        yield
        await controller.shutdown()
        logger.info("Feed client shutdown complete")

    app, rt = fast_app(
        title="Feed Reader",
        hdrs=Theme.blue.headers() + [
            Style(TOAST_STYLES),
            # Feed bodies are swapped in live; htmx must not run script tags from them
            Meta(name="htmx-config", content='{"allowScriptTags": false}'),
        ],
        lifespan=lifespan
    )

    def current() -> SyncController:
        return app.state.controller

    @app.get('/')
    def index():
        """Full page"""
        return Title("Feed Reader"), AppShell(current())

    @app.post('/ui/feeds')
    async def add_feed(feed_url: str = ""):
        """Subscribe intent from the add-feed form"""
        controller = current()
        controller.spawn(controller.submit_add(feed_url))
        # Let the intent run up to its first network wait
        await asyncio.sleep(0)
        return LiveFragments(controller)

    @app.get('/ui/select')
    async def select_feed(url: str):
        controller = current()
        controller.spawn(controller.select(url))
        await asyncio.sleep(0)
        return LiveFragments(controller)

    @app.post('/ui/delete')
    async def delete_feed(url: str):
        """Delete intent; the browser already asked for confirmation"""
        controller = current()
        controller.spawn(controller.delete(url, confirmed=True))
        await asyncio.sleep(0)
        return LiveFragments(controller)

    @app.post('/ui/toasts/{notification_id}/dismiss')
    def dismiss_toast(notification_id: int):
        controller = current()
        controller.notifier.dismiss(notification_id)
        return LiveFragments(controller)

    @app.get('/ui/refresh')
    def refresh():
        return LiveFragments(current())

    return app


app = create_app()
