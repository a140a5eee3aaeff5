"""Background task runner using asyncio."""
import asyncio
import logging
import traceback
from typing import Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class TaskRunner:
    """Runs one background task per key (a video id) and tracks it until it ends."""

    def __init__(self):
        self._running_tasks: Dict[str, asyncio.Task] = {}

    def start(
        self,
        key: str,
        handler: Callable[..., Awaitable],
        **kwargs
    ) -> bool:
        """
        Start a background task.

        Args:
            key: Identifier of the task, usually the video id
            handler: Coroutine function to run
            **kwargs: Arguments to pass to the handler

        Returns:
            True if the task started, False if one is already running for key
        """
        if key in self._running_tasks:
            logger.warning(f"Task {key} is already running")
            return False

        task = asyncio.create_task(self._run(key, handler, **kwargs))
        self._running_tasks[key] = task
        return True

    async def _run(
        self,
        key: str,
        handler: Callable[..., Awaitable],
        **kwargs
    ):
        """Run a handler; escaped errors are logged, never raised."""
        try:
            await handler(**kwargs)
            logger.info(f"Task {key} finished")
        except asyncio.CancelledError:
            logger.info(f"Task {key} was cancelled")
            raise
        except Exception as e:
            logger.error(f"Task {key} failed: {e}\n{traceback.format_exc()}")
        finally:
            self._running_tasks.pop(key, None)

    def is_running(self, key: str) -> bool:
        """Check if a task is currently running."""
        return key in self._running_tasks

    async def wait(self, key: str):
        """Wait for a task to finish, if it is running."""
        task = self._running_tasks.get(key)
        if task:
            await asyncio.gather(task, return_exceptions=True)

    async def shutdown(self):
        """Cancel all running tasks."""
        tasks = list(self._running_tasks.values())
        for task in tasks:
            task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._running_tasks.clear()
