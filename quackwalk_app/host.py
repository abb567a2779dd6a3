import logging
import math
import time
from typing import Callable, List, Optional

from PyQt6 import QtCore

from .duck import Duck

DEFAULT_UPDATES_PER_SECOND = 60.0


def frame_interval_ms(updates_per_second: float) -> int:
    """
    Shortest whole-millisecond tick strictly longer than the ducks' rate gate.
    Anything shorter fails the gate and only every second tick gets processed.
    """
    return math.floor(1000.0 / updates_per_second) + 1


class TickDriver(QtCore.QObject):
    """
    Render clock for the ducks: one repeating QTimer steps every live duck with
    a monotonic timestamp. Departed ducks are dropped after each tick.
    """

    def __init__(
        self,
        interval_ms: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        parent=None,
        updates_per_second: float = DEFAULT_UPDATES_PER_SECOND,
    ) -> None:
        super().__init__(parent)
        self.clock = clock
        self.ducks: List[Duck] = []
        self.timer = QtCore.QTimer(self)
        self.timer.setTimerType(QtCore.Qt.TimerType.PreciseTimer)
        self.timer.setInterval(interval_ms if interval_ms is not None else frame_interval_ms(updates_per_second))
        self.timer.timeout.connect(self.tick)

    @property
    def interval_ms(self) -> int:
        return self.timer.interval()

    @property
    def running(self) -> bool:
        return self.timer.isActive()

    def add(self, duck: Duck) -> Duck:
        if not duck.spawned:
            duck.spawn(self.clock())
        self.ducks.append(duck)
        if not self.timer.isActive():
            self.timer.start()
        return duck

    def tick(self) -> None:
        now = self.clock()
        for duck in list(self.ducks):
            try:
                duck.step(now)
            except Exception as exc:
                logging.error("Duck %s failed during update, removing it: %s", duck.id, exc)
                duck.depart()
        self.ducks = [duck for duck in self.ducks if not duck.departed]
        if not self.ducks:
            self.timer.stop()

    def depart_all(self) -> None:
        for duck in self.ducks:
            duck.depart()
        self.ducks = []
        self.timer.stop()
