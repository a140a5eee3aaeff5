"""Tests for status notification fan-out."""
import pytest

from app.services.status_broker import StatusBroker


class _FakeObserver:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages = []

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.messages.append(data)


@pytest.mark.asyncio
async def test_publish_reaches_only_that_video():
    broker = StatusBroker()
    watcher, other = _FakeObserver(), _FakeObserver()
    await broker.subscribe("vid-1", watcher)
    await broker.subscribe("vid-2", other)

    delivered = await broker.publish("vid-1", "downloading")

    assert delivered == 1
    assert watcher.messages == [{"type": "status", "status": "downloading"}]
    assert other.messages == []


@pytest.mark.asyncio
async def test_publish_without_observers():
    assert await StatusBroker().publish("vid-1", "completed") == 0


@pytest.mark.asyncio
async def test_failed_observer_is_dropped():
    broker = StatusBroker()
    healthy, broken = _FakeObserver(), _FakeObserver(fail=True)
    await broker.subscribe("vid-1", healthy)
    await broker.subscribe("vid-1", broken)

    assert await broker.publish("vid-1", "transcribing") == 1
    assert await broker.observer_count("vid-1") == 1

    await broker.publish("vid-1", "analyzing")
    assert [m["status"] for m in healthy.messages] == ["transcribing", "analyzing"]


@pytest.mark.asyncio
async def test_unsubscribe_prunes_empty_entries():
    broker = StatusBroker()
    observer = _FakeObserver()
    await broker.subscribe("vid-1", observer)

    await broker.unsubscribe("vid-1", observer)
    await broker.unsubscribe("vid-1", observer)

    assert await broker.observer_count("vid-1") == 0
    assert await broker.publish("vid-1", "completed") == 0
    assert observer.messages == []
