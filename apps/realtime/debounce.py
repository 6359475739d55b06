import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Hashable, Optional, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Per-key trailing debounce on the running event loop.

    Every ``call`` for a key cancels the pending one and restarts the timer,
    so a burst fires the callback once, ``delay`` seconds after its last
    event, with the arguments of that last call. Coroutine callbacks run as
    tasks; errors are logged and not raised.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._handles: Dict[Hashable, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()

    def call(self, key: Hashable, callback: Callable[..., Any], *args: Any) -> None:
        loop = asyncio.get_running_loop()
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()
        self._handles[key] = loop.call_later(self.delay, self._fire, key, callback, args)

    def _fire(self, key: Hashable, callback: Callable[..., Any], args: tuple) -> None:
        self._handles.pop(key, None)
        try:
            result = callback(*args)
        except Exception:
            logger.exception("Debounced callback for %r failed", key)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced task failed", exc_info=exc)

    def pending(self, key: Optional[Hashable] = None) -> bool:
        if key is None:
            return bool(self._handles)
        return key in self._handles

    def cancel(self, key: Hashable) -> None:
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        """
        Wait for callbacks that already fired and are still running.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
