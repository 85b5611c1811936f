"""
Background Dispatch - Fire-and-forget side effects.

The state machine hands its side effects (snapshot writes, queue
writes, live progress pushes) to a dispatcher so the caller never waits
on I/O. Jobs are plain callables or coroutine functions that close over
data captured at dispatch time; they never read the live session.

Implementations:
- InlineDispatcher: runs each job immediately (tests, CLI)
- ThreadedDispatcher: one worker thread with its own event loop, jobs
  run strictly in submission order

After close() the dispatcher is no longer alive and queued jobs are
skipped, so nothing touches state owned by a torn-down session.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable
import asyncio
import inspect
import logging
import threading

logger = logging.getLogger(__name__)

Job = Callable[[], Any]


class Dispatcher(ABC):
    """Abstract fire-and-forget job runner."""

    def __init__(self):
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    @abstractmethod
    def submit(self, job: Job, name: str = "job"):
        pass

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for submitted jobs to finish. Returns False on timeout."""
        return True

    def close(self, timeout: float | None = None):
        self._alive = False


class InlineDispatcher(Dispatcher):
    """
    Runs jobs in the caller's thread.

    Plain jobs finish before submit() returns. Coroutine jobs are driven
    with asyncio.run, or scheduled as a task when the caller is already
    inside a running event loop.
    """

    def __init__(self):
        super().__init__()
        self._tasks: set[asyncio.Task] = set()

    def submit(self, job: Job, name: str = "job"):
        if not self._alive:
            logger.debug("Dispatcher closed, dropping %s", name)
            return
        try:
            result = job()
        except Exception:
            logger.exception("Background %s failed", name)
            return
        if not inspect.isawaitable(result):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(_logged(result, name))
            return
        task = loop.create_task(_logged(result, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


class ThreadedDispatcher(Dispatcher):
    """
    Runs jobs on a private event-loop thread.

    Usage:
        dispatcher = ThreadedDispatcher()
        dispatcher.submit(lambda: snapshots.save_payload(data, streak), "snapshot")
        ...
        dispatcher.close(timeout=1.0)
    """

    def __init__(self, name: str = "truthhunt-dispatch"):
        super().__init__()
        self._loop = asyncio.new_event_loop()
        self._queue: asyncio.Queue | None = None
        self._pending = 0
        self._idle = threading.Condition()
        self._started = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)
        self._thread.start()
        self._started.wait()

    def _run_loop(self):
        asyncio.set_event_loop(self._loop)
        self._queue = asyncio.Queue()
        self._loop.create_task(self._worker())
        self._started.set()
        self._loop.run_forever()
        self._loop.close()

    async def _worker(self):
        while True:
            job, name = await self._queue.get()
            try:
                if self._alive:
                    result = job()
                    if inspect.isawaitable(result):
                        await result
                else:
                    logger.debug("Dispatcher closed, skipping %s", name)
            except Exception:
                logger.exception("Background %s failed", name)
            finally:
                with self._idle:
                    self._pending -= 1
                    self._idle.notify_all()

    def submit(self, job: Job, name: str = "job"):
        if not self._alive:
            logger.debug("Dispatcher closed, dropping %s", name)
            return
        with self._idle:
            self._pending += 1
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (job, name))

    def drain(self, timeout: float | None = None) -> bool:
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def close(self, timeout: float | None = None):
        """Let queued jobs finish (bounded by timeout), then stop the loop."""
        if not self._thread.is_alive():
            self._alive = False
            return
        self.drain(timeout)
        self._alive = False
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)


async def _logged(awaitable, name: str):
    try:
        return await awaitable
    except Exception:
        logger.exception("Background %s failed", name)
