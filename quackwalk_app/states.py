import logging
import random
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from .animation import AnimationClip
from .geometry import Vector2
from .random_pool import NO_TRANSITION, RandomPool
from .timers import Scheduler, StateContext

if TYPE_CHECKING:  # pragma: no cover - avoids circular imports at runtime
    from .duck import Duck

IDLE = "idle"
ALERT = "alert"
SLEEPING = "sleeping"
QUACK = "quack"
WALKING = "walking"

INITIAL_STATE = IDLE


class UnknownStateError(KeyError):
    pass


class State:
    """
    One behavioural mode. Definitions are shared and hold no per-visit data;
    everything that lives for a single visit goes in the StateContext passed to each hook.
    """

    name = ""
    clip = AnimationClip((0,), (1.0,))

    def enter(self, ctx: StateContext) -> None:
        pass

    def update(self, ctx: StateContext, dt: float) -> None:
        pass

    def exit(self, ctx: StateContext) -> None:
        pass


class IdleState(State):
    name = IDLE
    clip = AnimationClip((0, 1), (2.0, 0.1))
    decision_period = 5.0

    def __init__(self, rng: Callable[[], float] = random.random) -> None:
        self.pool = RandomPool(
            [(SLEEPING, 25), (QUACK, 35), (WALKING, 5), (NO_TRANSITION, 35)],
            rng=rng,
        )

    def update(self, ctx, dt):
        duck: "Duck" = ctx.agent
        if not duck.is_near_pointer():
            duck.change_state(ALERT)
            return
        if ctx.every(self.decision_period):
            choice = self.pool.pull()
            if choice is not NO_TRANSITION:
                duck.change_state(choice)


class AlertState(State):
    name = ALERT
    clip = AnimationClip((1,), (1.0,))
    wander_delay = 1.0

    def enter(self, ctx):
        duck: "Duck" = ctx.agent
        ctx.schedule_once(lambda: duck.change_state(WALKING), self.wander_delay)

    def update(self, ctx, dt):
        duck: "Duck" = ctx.agent
        if duck.is_near_pointer():
            duck.change_state(IDLE)


class SleepingState(State):
    name = SLEEPING
    clip = AnimationClip.uniform((8, 9, 10, 11), 0.5)
    decision_period = 5.0

    def __init__(self, rng: Callable[[], float] = random.random) -> None:
        self.pool = RandomPool([(IDLE, 60), (NO_TRANSITION, 40)], rng=rng)

    def update(self, ctx, dt):
        duck: "Duck" = ctx.agent
        if not duck.is_near_pointer():
            duck.change_state(IDLE)
            return
        if ctx.every(self.decision_period):
            choice = self.pool.pull()
            if choice is not NO_TRANSITION:
                duck.change_state(choice)


class QuackState(State):
    name = QUACK
    clip = AnimationClip((12, 13, 14), (0.1, 0.2, 0.2))
    duration = 0.5

    def enter(self, ctx):
        duck: "Duck" = ctx.agent
        ctx.schedule_once(lambda: duck.change_state(IDLE), self.duration)


class WalkingState(State):
    name = WALKING
    clip = AnimationClip.uniform((4, 5, 6, 7), 0.05)

    def __init__(self, uniform: Callable[[float, float], float] = random.uniform) -> None:
        self.uniform = uniform

    def enter(self, ctx):
        duck: "Duck" = ctx.agent
        spread = duck.options.jitter
        ctx.data["jitter"] = Vector2(self.uniform(-spread, spread), self.uniform(-spread, spread))

    def update(self, ctx, dt):
        duck: "Duck" = ctx.agent
        if duck.is_near_pointer():
            duck.change_state(IDLE)
            return
        destination = duck.pointer.position + ctx.data["jitter"]
        duck.move_toward(destination, duck.options.speed * dt)


def build_states(rng: Optional[random.Random] = None) -> List[State]:
    """
    The duck's full set of states, all drawing from one random source.
    """
    rng = rng or random.Random()
    return [
        IdleState(rng.random),
        AlertState(),
        SleepingState(rng.random),
        QuackState(),
        WalkingState(rng.uniform),
    ]


Listener = Callable[[Optional[str], str], None]


class StateMachine:
    """
    Runs one state at a time. Each visit gets a fresh StateContext; leaving a
    state always cancels its pending callback and closes the context, even when
    the exit hook raises.
    """

    def __init__(
        self,
        states: Iterable[State],
        agent: "Duck",
        scheduler: Scheduler,
        initial: str = INITIAL_STATE,
    ) -> None:
        self._states: Dict[str, State] = {state.name: state for state in states}
        if initial not in self._states:
            raise UnknownStateError(f"unknown initial state {initial!r}")
        self.agent = agent
        self.scheduler = scheduler
        self.initial = initial
        self.current: Optional[str] = None
        self.context: Optional[StateContext] = None
        self.stopped = False
        self._listeners: List[Listener] = []

    @property
    def names(self) -> List[str]:
        return list(self._states)

    @property
    def current_state(self) -> Optional[State]:
        if self.current is None:
            return None
        return self._states[self.current]

    def definition(self, name: str) -> State:
        try:
            return self._states[name]
        except KeyError:
            raise UnknownStateError(f"unknown state {name!r}") from None

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        if self.current is not None or self.stopped:
            return
        self._enter(self.initial)
        self._notify(None, self.initial)

    def change_state(self, target: str) -> None:
        if target not in self._states:
            raise UnknownStateError(f"unknown state {target!r}")
        if self.stopped:
            logging.debug("Ignoring transition to '%s' on a stopped machine.", target)
            return

        previous = self.current
        self._exit_current()
        self._enter(target)
        # An enter hook may already have moved on; that nested change notified for itself.
        if self.current == target:
            self._notify(previous, target)

    def update(self, dt: float) -> None:
        if self.stopped or self.context is None:
            return
        ctx = self.context
        ctx.tick(dt)
        self._states[ctx.name].update(ctx, dt)

    def stop(self) -> None:
        if self.stopped:
            return
        self.stopped = True
        self._exit_current()

    def _enter(self, name: str) -> None:
        ctx = StateContext(name, self.agent, self.scheduler)
        self.current = name
        self.context = ctx
        self._states[name].enter(ctx)

    def _exit_current(self) -> None:
        ctx = self.context
        if ctx is None:
            return
        self.context = None
        try:
            self._states[ctx.name].exit(ctx)
        finally:
            ctx.close()

    def _notify(self, previous: Optional[str], current: str) -> None:
        for listener in self._listeners:
            listener(previous, current)
