import logging
from typing import Callable, Optional, Tuple

from PyQt6 import QtCore, QtGui

from .geometry import Vector2


class PointerTracker:
    """
    Last seen pointer position, shared by every duck in the process.

    Created lazily by listen(); ducks get it injected and only read it.
    """

    _instance: Optional["PointerTracker"] = None

    @classmethod
    def listen(cls) -> "PointerTracker":
        if cls._instance is None:
            cls._instance = cls()
            logging.debug("Pointer tracker created.")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        self._position = Vector2(float(x), float(y))

    @property
    def position(self) -> Vector2:
        return self._position

    @property
    def x(self) -> float:
        return self._position.x

    @property
    def y(self) -> float:
        return self._position.y

    def move_to(self, x: float, y: float) -> None:
        self._position = Vector2(float(x), float(y))


class CursorPoller(QtCore.QObject):
    """
    Desktop Qt has no global pointer-move event, so sample QCursor.pos() on a timer
    and push it into the tracker, translated into container coordinates.
    """

    def __init__(
        self,
        tracker: PointerTracker,
        origin: Tuple[int, int] = (0, 0),
        interval_ms: int = 16,
        cursor_pos: Callable[[], QtCore.QPoint] = QtGui.QCursor.pos,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.tracker = tracker
        self.origin = origin
        self._cursor_pos = cursor_pos
        self.timer = QtCore.QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.poll)

    def poll(self) -> None:
        pos = self._cursor_pos()
        self.tracker.move_to(pos.x() - self.origin[0], pos.y() - self.origin[1])

    def start(self) -> None:
        self.poll()
        self.timer.start()

    def stop(self) -> None:
        self.timer.stop()
