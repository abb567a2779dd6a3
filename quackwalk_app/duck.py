import logging
import math
import random
import time
import uuid
from typing import Iterable, List, Optional, Tuple

from .animation import FrameAnimator, sprite_cell
from .config import DuckOptions
from .geometry import Vector2, clamp_to_bounds, dist_squared, step_toward
from .pointer import PointerTracker
from .renderer import QtRenderer, Renderer
from .states import INITIAL_STATE, State, StateMachine, build_states
from .timers import QtScheduler, Scheduler

# Ducks sit above everything else they share a container with.
STACK_TOP = 2**31 - 1
HISTORY_LIMIT = 10


class Duck:
    """
    One roaming duck.

    The host calls step() with a monotonic timestamp (seconds) on every render
    tick. Behaviour and animation only advance once at least 1/updatesPerSecond
    has passed since the last processed tick; the real elapsed time is used as dt.
    depart() ends the duck for good: timers are cancelled, the visual detached,
    and later ticks are ignored.
    """

    def __init__(
        self,
        options: Optional[DuckOptions] = None,
        renderer: Optional[Renderer] = None,
        pointer: Optional[PointerTracker] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        states: Optional[Iterable[State]] = None,
    ) -> None:
        self.options = options or DuckOptions()
        self.renderer = renderer or QtRenderer()
        self.scheduler = scheduler or QtScheduler()
        self.pointer = pointer or PointerTracker.listen()
        self.random = rng or random.Random()
        self.id = uuid.uuid4().hex[:8]

        self.half_width = self.options.width / 2
        self.half_height = self.options.height / 2
        self.scale = self.options.sprite_scale

        self.machine = StateMachine(
            states if states is not None else build_states(self.random),
            agent=self,
            scheduler=self.scheduler,
        )
        self.machine.add_listener(self._on_state_changed)
        self.animator = FrameAnimator(self.machine.definition(INITIAL_STATE).clip)
        self.sprite_offset = (0.0, 0.0)

        self.position = Vector2()
        self.visual = None
        self.last_timestamp: Optional[float] = None
        self.spawned = False
        self.departed = False
        self.state_history: List[Tuple[str, Optional[str], str]] = []

    def __repr__(self) -> str:
        return f"<Duck {self.id} state={self.state} at ({self.position.x:.0f}, {self.position.y:.0f})>"

    @property
    def state(self) -> Optional[str]:
        return self.machine.current

    @property
    def footprint(self) -> Tuple[float, float]:
        return self.half_width * self.scale, self.half_height * self.scale

    @property
    def proximity_radius(self) -> float:
        return self.options.mouse_proximity + self.scale * max(self.half_width, self.half_height)

    def spawn(self, timestamp: float) -> "Duck":
        """
        Create and attach the visual, drop the duck somewhere in its container and enter the first state.
        """
        if self.departed:
            raise RuntimeError(f"duck {self.id} has departed and cannot be spawned again")
        if self.spawned:
            return self

        self.visual = self.renderer.create_visual(self.options)
        self.renderer.set_stack_order(self.visual, STACK_TOP)
        self.renderer.attach(self.visual, self.options.container)

        width, height = self.renderer.container_size(self.options.container)
        self.move_to(Vector2(self.random.random() * width, self.random.random() * height))

        self.spawned = True
        self.last_timestamp = timestamp
        self.machine.start()
        logging.info("Duck %s spawned at (%.0f, %.0f).", self.id, self.position.x, self.position.y)
        return self

    def step(self, timestamp: float) -> bool:
        """
        Process one host tick. Returns True when the tick passed the rate gate.
        """
        if self.departed or not self.spawned:
            return False

        elapsed = timestamp - self.last_timestamp
        if elapsed < self.options.update_interval:
            return False
        self.last_timestamp = timestamp

        context = self.machine.context
        self.machine.update(elapsed)
        if self.departed:
            return True
        # A fresh clip starts on its first frame; it only begins counting on the next tick.
        if self.machine.context is context and self.animator.advance(elapsed):
            self._render_frame()
        return True

    def change_state(self, name: str) -> None:
        self.machine.change_state(name)

    def depart(self) -> None:
        """
        Leave for good. Safe to call more than once.
        """
        if self.departed:
            return
        self.departed = True
        try:
            self.machine.stop()
        finally:
            if self.visual is not None:
                visual, self.visual = self.visual, None
                self.renderer.detach(visual)
        logging.info("Duck %s departed.", self.id)

    def is_near_pointer(self) -> bool:
        radius = self.proximity_radius
        return dist_squared(self.position, self.pointer.position) <= radius * radius

    def move_toward(self, destination: Vector2, max_distance: float) -> None:
        self.move_to(step_toward(self.position, destination, max_distance))

    def move_to(self, point: Vector2) -> None:
        bounds = self.renderer.container_size(self.options.container)
        self.position = clamp_to_bounds(point, self.footprint, bounds)
        if self.visual is not None:
            half_w, half_h = self.footprint
            self.renderer.set_position(
                self.visual,
                math.ceil(self.position.x - half_w),
                math.ceil(self.position.y - half_h),
            )

    def _render_frame(self) -> None:
        column, row = sprite_cell(self.animator.frame, self.options.sprite_cols)
        self.sprite_offset = (
            -column * self.options.width * self.scale,
            -row * self.options.height * self.scale,
        )
        if self.visual is not None:
            self.renderer.set_sprite_offset(self.visual, *self.sprite_offset)

    def _on_state_changed(self, previous: Optional[str], current: str) -> None:
        self.animator.play(self.machine.definition(current).clip)
        self._render_frame()

        self.state_history.append((time.strftime("%H:%M:%S"), previous, current))
        if len(self.state_history) > HISTORY_LIMIT:
            self.state_history.pop(0)

        if self.options.debug:
            logging.info("Duck %s: %s -> %s", self.id, previous, current)
            if self.visual is not None:
                self.renderer.set_label(self.visual, current)
