"""
Tests for per-game message fan-out.
"""

import pytest

from monopoly_core.broadcast import GAME_CLOSED, GAME_UPDATE, GameBroadcaster


@pytest.mark.asyncio
async def test_publish_reaches_game_subscribers_only():
    broadcaster = GameBroadcaster()
    first = broadcaster.subscribe("g1")
    second = broadcaster.subscribe("g1")
    other = broadcaster.subscribe("g2")

    delivered = broadcaster.publish("g1", GAME_UPDATE, 3, {"phase": "rolling"})

    assert delivered == 2
    message = first.get_nowait()
    assert message == {"type": GAME_UPDATE, "game_id": "g1", "sequence": 3, "data": {"phase": "rolling"}}
    assert second.get_nowait() == message
    assert other.empty()


@pytest.mark.asyncio
async def test_initial_message_is_queued_first():
    broadcaster = GameBroadcaster()
    q = broadcaster.subscribe("g1", initial={"type": GAME_UPDATE, "sequence": 0})

    broadcaster.publish("g1", GAME_UPDATE, 1, {})

    assert q.get_nowait()["sequence"] == 0
    assert q.get_nowait()["sequence"] == 1


@pytest.mark.asyncio
async def test_slow_subscriber_is_dropped():
    broadcaster = GameBroadcaster(max_queue_size=1)
    slow = broadcaster.subscribe("g1")

    assert broadcaster.publish("g1", GAME_UPDATE, 1, {}) == 1
    assert broadcaster.publish("g1", GAME_UPDATE, 2, {}) == 0

    assert broadcaster.subscriber_count("g1") == 0
    assert slow.get_nowait()["sequence"] == 1


@pytest.mark.asyncio
async def test_unsubscribe_and_close():
    broadcaster = GameBroadcaster()
    q = broadcaster.subscribe("g1")
    broadcaster.subscribe("g1")

    broadcaster.unsubscribe("g1", q)
    assert broadcaster.subscriber_count("g1") == 1

    assert len(broadcaster.close_game("g1")) == 1
    assert broadcaster.subscriber_count("g1") == 0
    assert broadcaster.publish("g1", GAME_UPDATE, 1, {}) == 0


@pytest.mark.asyncio
async def test_close_game_sends_closing_message():
    broadcaster = GameBroadcaster(max_queue_size=1)
    q = broadcaster.subscribe("g1")
    broadcaster.publish("g1", GAME_UPDATE, 1, {})

    broadcaster.close_game("g1")

    message = q.get_nowait()
    assert message["type"] == GAME_CLOSED
    assert message["sequence"] is None
    assert q.empty()
