import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from PyQt6 import QtCore

Callback = Callable[[], None]


class Scheduler(ABC):
    """
    Deferred-callback facility. Handles are opaque; cancel() must be idempotent.
    """

    @abstractmethod
    def schedule(self, delay: float, callback: Callback) -> int:
        pass

    @abstractmethod
    def cancel(self, handle: int) -> None:
        pass

    @abstractmethod
    def is_pending(self, handle: int) -> bool:
        pass


class QtScheduler(Scheduler):
    """
    One QTimer.singleShot per scheduled callback, driven by the Qt event loop.
    A cancelled handle is forgotten, so its timer fires into nothing.
    """

    def __init__(self) -> None:
        self._callbacks: Dict[int, Callback] = {}
        self._ids = itertools.count(1)

    def schedule(self, delay: float, callback: Callback) -> int:
        handle = next(self._ids)
        self._callbacks[handle] = callback
        QtCore.QTimer.singleShot(max(0, int(round(delay * 1000))), lambda: self._fire(handle))
        return handle

    def _fire(self, handle: int) -> None:
        callback = self._callbacks.pop(handle, None)
        if callback is None:
            return
        callback()

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def is_pending(self, handle: int) -> bool:
        return handle in self._callbacks


class ManualScheduler(Scheduler):
    """
    Virtual clock. Nothing fires until advance() moves time past a due point.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: List[Tuple[float, int]] = []
        self._callbacks: Dict[int, Callback] = {}
        self._ids = itertools.count(1)

    def schedule(self, delay: float, callback: Callback) -> int:
        handle = next(self._ids)
        self._callbacks[handle] = callback
        heapq.heappush(self._queue, (self.now + max(0.0, delay), handle))
        return handle

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def is_pending(self, handle: int) -> bool:
        return handle in self._callbacks

    @property
    def pending_count(self) -> int:
        return len(self._callbacks)

    def advance(self, seconds: float) -> float:
        """
        Run every callback due within the next ``seconds``, in due order, and return the new time.
        """
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, handle = heapq.heappop(self._queue)
            callback = self._callbacks.pop(handle, None)
            if callback is None:
                continue
            self.now = due
            callback()
        self.now = target
        return self.now


class StateContext:
    """
    Scratch space for one live state instance.

    Created when the state is entered and closed when it exits. Holds the time
    spent in the state, at most one pending deferred callback, and any data the
    state needs for its lifetime (``data``).
    """

    def __init__(self, name: str, agent: Any, scheduler: Scheduler) -> None:
        self.name = name
        self.agent = agent
        self.since_enter = 0.0
        self.data: Dict[str, Any] = {}
        self.closed = False
        self._scheduler = scheduler
        self._pending: Optional[int] = None
        self._token: Optional[object] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def tick(self, dt: float) -> None:
        self.since_enter += dt

    def every(self, period: float) -> bool:
        """
        Gate that opens at most once per period: resets the accumulator when it opens.
        """
        if self.since_enter >= period:
            self.since_enter = 0.0
            return True
        return False

    def schedule_once(self, callback: Callback, delay: float) -> None:
        if self.closed:
            logging.warning("Ignoring callback scheduled on closed state '%s'.", self.name)
            return
        self.cancel_pending()

        token = object()

        def fire() -> None:
            if self.closed or self._token is not token:
                return
            self._pending = None
            self._token = None
            callback()

        self._token = token
        self._pending = self._scheduler.schedule(delay, fire)

    def cancel_pending(self) -> None:
        if self._pending is not None:
            self._scheduler.cancel(self._pending)
        self._pending = None
        self._token = None

    def close(self) -> None:
        self.cancel_pending()
        self.closed = True
        self.data.clear()
