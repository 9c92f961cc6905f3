# vanishchat/core/scheduler.py

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Job = Callable[[], Union[None, Awaitable[None]]]


class RecurringTask:
    """
    Runs ``job`` every ``interval`` seconds on the running event loop.

    The job may be sync or async. An exception from one run is logged and the
    loop carries on with the next tick. ``start`` and ``stop`` are idempotent.
    """

    def __init__(self, name: str, interval: float, job: Job):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._job = job
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.info("Started %s (every %ss)", self.name, self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped %s", self.name)

    async def run_once(self) -> None:
        result = self._job()
        if inspect.isawaitable(result):
            await result

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s run failed", self.name)
            await asyncio.sleep(self.interval)
