"""Feed loading: rendering, empty/error states, watchdog overlay, stale loads"""

import asyncio
from unittest.mock import patch

import pytest

from feedclient.session import EMPTY_MESSAGE, ERROR_MESSAGE, PLACEHOLDER_TITLE, LoadState, PaneKind

A = "https://a.test/feed"
B = "https://b.test/feed"

ITEM = {
    "Title": "Styled post",
    "Link": "https://a.test/post",
    "PublishedAt": "2024-05-01T10:00:00Z",
    "Description": '<p style="color:#000;margin:0">Text <img src="x.png"></p>',
}


@pytest.fixture
async def subscribed(controller, fake_service):
    fake_service.add_feed(A, "Feed A", items=[ITEM])
    fake_service.add_feed(B, "Feed B", items=[{"Title": "B post", "Link": "https://b.test/post"}])
    await controller.hydrate()
    return controller


def errors(controller):
    return [n.message for n in controller.notifier.active if n.level.value == "error"]


class TestFeedLoading:

    async def test_render_sanitizes_and_stamps_freshness(self, subscribed):
        state = await subscribed.select(A)

        pane = subscribed.session.pane
        assert state is LoadState.RENDERED
        assert pane.kind is PaneKind.ITEMS
        assert pane.title == "Feed A"
        assert pane.refreshed_at is not None
        assert "color" not in pane.items[0].body
        assert "margin:0" in pane.items[0].body
        assert not subscribed.store.get(A).refreshing

    async def test_post_render_pass_normalizes_images(self, subscribed):
        await subscribed.select(A)
        await asyncio.sleep(0)

        pane = subscribed.session.pane
        assert pane.media_normalized
        assert "max-width:100%" in pane.items[0].body

    async def test_post_render_failure_keeps_rendered_pane(self, subscribed):
        with patch.object(subscribed.session.sanitizer, "normalize_media", side_effect=RuntimeError("bad markup")):
            await subscribed.select(A)
            await asyncio.sleep(0)

        pane = subscribed.session.pane
        assert pane.kind is PaneKind.ITEMS
        assert not pane.media_normalized

    async def test_empty_feed_shows_explicit_message(self, subscribed, fake_service):
        """Test: Items: [] → explicit empty-state message, not a blank pane"""
        fake_service.add_feed(A, "Feed A", items=[])

        await subscribed.select(A)

        assert subscribed.session.pane.kind is PaneKind.EMPTY
        assert subscribed.session.pane.message == EMPTY_MESSAGE

    async def test_every_selection_fetches_fresh(self, subscribed, fake_service):
        """Test: select A, B, A → three independent fetches"""
        for url in (A, B, A):
            await subscribed.select(url)

        assert fake_service.requests_for("GET", "/feed") == [A, B, A]
        assert subscribed.session.pane.title == "Feed A"

    async def test_failure_shows_error_pane_and_one_notification(self, subscribed, fake_service):
        fake_service.fail("GET", "/feed", status=502, error="upstream feed timed out")

        state = await subscribed.select(A)

        assert state is LoadState.FAILED
        assert subscribed.session.pane.kind is PaneKind.ERROR
        assert subscribed.session.pane.message == ERROR_MESSAGE
        assert errors(subscribed) == ["Error loading feed: upstream feed timed out"]
        assert not subscribed.store.get(A).refreshing

    async def test_malformed_items_fail_cleanly(self, subscribed, fake_service):
        """Test: feed with a null item → error pane, one notification, refreshing cleared"""
        fake_service.add_feed(A, "Feed A", items=[None])

        state = await subscribed.select(A)

        assert state is LoadState.FAILED
        assert subscribed.session.pane.kind is PaneKind.ERROR
        assert errors(subscribed) == ["Error loading feed: unexpected response from the feed service"]
        assert not subscribed.store.get(A).refreshing

    async def test_selecting_unknown_url_is_ignored(self, subscribed, fake_service):
        assert await subscribed.select("https://unknown.test/feed") is None
        assert fake_service.requests_for("GET", "/feed") == []

    async def test_loading_marks_entry_refreshing(self, subscribed, fake_service):
        gate = fake_service.hold("GET", "/feed")
        task = subscribed.spawn(subscribed.select(A))
        await asyncio.sleep(0.01)

        assert subscribed.store.get(A).refreshing
        assert subscribed.session.pane.kind is PaneKind.LOADING
        assert subscribed.session.pane.title == "Feed A"

        gate.set()
        await task
        assert not subscribed.store.get(A).refreshing

    @pytest.mark.slow_service
    async def test_watchdog_overlay_then_late_result_overwrites(self, subscribed, fake_service):
        gate = fake_service.hold("GET", "/feed")
        task = subscribed.spawn(subscribed.select(A))

        await asyncio.sleep(0.1)
        assert subscribed.session.pane.kind is PaneKind.SLOW
        assert subscribed.session.state is LoadState.LOADING
        assert errors(subscribed) == []

        gate.set()
        await task
        assert subscribed.session.pane.kind is PaneKind.ITEMS

    async def test_stale_response_is_discarded(self, subscribed, fake_service):
        """Test: slow load of A, then B renders → A's late response never repaints"""
        gate = fake_service.hold("GET", "/feed", url=A)
        stale = subscribed.spawn(subscribed.select(A))
        await asyncio.sleep(0.01)

        await subscribed.select(B)
        gate.set()
        await stale

        assert subscribed.session.selected == B
        assert subscribed.session.pane.title == "Feed B"
        assert not subscribed.store.get(A).refreshing

    async def test_stale_failure_is_silent(self, subscribed, fake_service):
        gate = fake_service.hold("GET", "/feed", url=A)
        fake_service.fail("GET", "/feed", status=500, error="late failure", url=A)
        stale = subscribed.spawn(subscribed.select(A))
        await asyncio.sleep(0.01)

        await subscribed.select(B)
        gate.set()
        await stale

        assert errors(subscribed) == []
        assert subscribed.session.state is LoadState.RENDERED

    async def test_reselect_keeps_refreshing_until_newest_load_settles(self, subscribed, fake_service):
        first_gate = fake_service.hold("GET", "/feed", url=A)
        first = subscribed.spawn(subscribed.select(A))
        await asyncio.sleep(0.01)
        second = subscribed.spawn(subscribed.select(A))
        await asyncio.sleep(0.01)

        # Both loads wait on the same gate; release after the second is issued
        first_gate.set()
        await first
        await second
        assert not subscribed.store.get(A).refreshing
        assert subscribed.session.state is LoadState.RENDERED

    async def test_reset_discards_in_flight_load(self, subscribed, fake_service):
        gate = fake_service.hold("GET", "/feed")
        task = subscribed.spawn(subscribed.select(A))
        await asyncio.sleep(0.01)

        subscribed.session.reset()
        gate.set()
        await task

        assert subscribed.session.selected is None
        assert subscribed.session.pane.kind is PaneKind.PLACEHOLDER
        assert subscribed.session.pane.title == PLACEHOLDER_TITLE
