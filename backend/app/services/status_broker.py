"""Per-video status notification fan-out."""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)


class StatusObserver(Protocol):
    """Anything that accepts JSON payloads, e.g. a FastAPI WebSocket."""

    async def send_json(self, data: Any) -> None:
        ...


class StatusBroker:
    """
    In-memory registry of observers keyed by video id.

    Delivery is best-effort: an observer whose send fails is logged and
    dropped, and publishing never raises.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._observers: Dict[str, Set[StatusObserver]] = defaultdict(set)

    async def subscribe(self, video_id: str, observer: StatusObserver) -> None:
        async with self._lock:
            self._observers[video_id].add(observer)
            count = len(self._observers[video_id])
        logger.info(f"Client connected to video {video_id}. Total clients: {count}")

    async def unsubscribe(self, video_id: str, observer: StatusObserver) -> None:
        async with self._lock:
            observers = self._observers.get(video_id)
            if not observers:
                return
            observers.discard(observer)
            if not observers:
                self._observers.pop(video_id, None)

    async def observer_count(self, video_id: str) -> int:
        async with self._lock:
            return len(self._observers.get(video_id, ()))

    async def publish(self, video_id: str, status: str) -> int:
        """
        Send a status message to every observer of a video.

        Returns:
            Number of observers that received the message
        """
        async with self._lock:
            observers = list(self._observers.get(video_id, ()))
        if not observers:
            return 0

        message = {"type": "status", "status": status}
        failed = []
        for observer in observers:
            try:
                await observer.send_json(message)
            except Exception as e:
                logger.warning(f"Status delivery for video {video_id} failed, dropping observer: {e}")
                failed.append(observer)

        for observer in failed:
            await self.unsubscribe(video_id, observer)

        return len(observers) - len(failed)
