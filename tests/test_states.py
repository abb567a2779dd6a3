import pytest

from quackwalk_app.geometry import Vector2
from quackwalk_app.random_pool import NO_TRANSITION
from quackwalk_app.states import (
    ALERT,
    IDLE,
    QUACK,
    SLEEPING,
    WALKING,
    AlertState,
    IdleState,
    QuackState,
    SleepingState,
    State,
    StateMachine,
    UnknownStateError,
    WalkingState,
    build_states,
)
from quackwalk_app.timers import ManualScheduler


class RecordingState(State):
    def __init__(self, name, log, delay=None, target=None):
        self.name = name
        self.log = log
        self.delay = delay
        self.target = target

    def enter(self, ctx):
        self.log.append(("enter", self.name, id(ctx)))
        if self.delay is not None:
            ctx.schedule_once(lambda: self.log.append(("fired", self.name)), self.delay)

    def exit(self, ctx):
        self.log.append(("exit", self.name, id(ctx)))


class ExplodingExitState(State):
    name = "fragile"

    def enter(self, ctx):
        ctx.schedule_once(lambda: None, 1.0)

    def exit(self, ctx):
        raise RuntimeError("exit failed")


def make_machine(states, scheduler=None):
    return StateMachine(states, agent=None, scheduler=scheduler or ManualScheduler(), initial=states[0].name)


def test_exit_runs_exactly_once_per_enter():
    log = []
    machine = make_machine([RecordingState("a", log), RecordingState("b", log), RecordingState("c", log)])

    machine.start()
    for target in ["b", "c", "a", "a", "b"]:
        machine.change_state(target)
    machine.stop()

    enters = [entry[2] for entry in log if entry[0] == "enter"]
    exits = [entry[2] for entry in log if entry[0] == "exit"]
    assert sorted(enters) == sorted(exits)
    assert len(enters) == 6
    # every exit happens before the next enter
    kinds = [entry[0] for entry in log]
    assert kinds == ["enter", "exit"] * 6


def test_timer_from_enter_never_fires_after_early_transition():
    log = []
    scheduler = ManualScheduler()
    machine = make_machine([RecordingState("a", log, delay=1.0), RecordingState("b", log)], scheduler)
    machine.start()

    scheduler.advance(0.5)
    machine.change_state("b")
    scheduler.advance(5.0)

    assert ("fired", "a") not in log
    assert scheduler.pending_count == 0


def test_timer_fires_while_state_is_active():
    log = []
    scheduler = ManualScheduler()
    machine = make_machine([RecordingState("a", log, delay=1.0)], scheduler)
    machine.start()

    scheduler.advance(1.0)
    assert ("fired", "a") in log


def test_unknown_target_fails_loudly_and_leaves_machine_intact():
    log = []
    machine = make_machine([RecordingState("a", log), RecordingState("b", log)])
    machine.start()
    context = machine.context

    with pytest.raises(UnknownStateError):
        machine.change_state("flying")

    assert machine.current == "a"
    assert machine.context is context
    assert not context.closed


def test_unknown_initial_state_is_rejected():
    with pytest.raises(UnknownStateError):
        StateMachine([RecordingState("a", [])], agent=None, scheduler=ManualScheduler(), initial="zzz")


def test_exit_hook_failure_still_cancels_timer():
    scheduler = ManualScheduler()
    machine = make_machine([ExplodingExitState(), RecordingState("b", [])], scheduler)
    machine.start()
    context = machine.context

    with pytest.raises(RuntimeError):
        machine.change_state("b")

    assert context.closed
    assert scheduler.pending_count == 0


def test_listeners_see_every_change():
    seen = []
    machine = make_machine([RecordingState("a", []), RecordingState("b", [])])
    machine.add_listener(lambda previous, current: seen.append((previous, current)))

    machine.start()
    machine.change_state("b")

    assert seen == [(None, "a"), ("a", "b")]


def test_stop_exits_and_ignores_later_transitions():
    log = []
    machine = make_machine([RecordingState("a", log), RecordingState("b", log)])
    machine.start()

    machine.stop()
    machine.stop()
    machine.change_state("b")
    machine.update(1.0)

    assert [entry[0] for entry in log] == ["enter", "exit"]
    assert machine.stopped
    assert machine.context is None


def test_update_accumulates_time_in_context():
    machine = make_machine([RecordingState("a", [])])
    machine.start()
    machine.update(0.25)
    machine.update(0.5)
    assert machine.context.since_enter == pytest.approx(0.75)


def test_build_states_covers_the_duck_states():
    names = [state.name for state in build_states()]
    assert names == [IDLE, ALERT, SLEEPING, QUACK, WALKING]


def test_state_clips_match_sprite_layout():
    assert IdleState.clip.frames == (0, 1)
    assert IdleState.clip.holds == (2.0, 0.1)
    assert AlertState.clip.frames == (1,)
    assert SleepingState.clip.frames == (8, 9, 10, 11)
    assert SleepingState.clip.holds == (0.5,) * 4
    assert QuackState.clip.holds == (0.1, 0.2, 0.2)
    assert WalkingState.clip.holds == (0.05,) * 4


def test_idle_pool_weights():
    pool = IdleState().pool
    assert pool.probabilities() == {
        SLEEPING: pytest.approx(0.25),
        QUACK: pytest.approx(0.35),
        WALKING: pytest.approx(0.05),
        NO_TRANSITION: pytest.approx(0.35),
    }


def _duck_states(idle_draw=0.0, sleep_draw=0.99, jitter=lambda low, high: 0.0):
    return [
        IdleState(lambda: idle_draw),
        AlertState(),
        SleepingState(lambda: sleep_draw),
        QuackState(),
        WalkingState(jitter),
    ]


def test_idle_draws_every_five_seconds_when_pointer_is_near(make_duck, pointer):
    duck = make_duck(states=_duck_states(idle_draw=0.0)).spawn(0.0)
    pointer.move_to(*duck.position)

    for second in range(1, 5):
        duck.step(float(second))
        assert duck.state == IDLE

    duck.step(5.0)
    assert duck.state == SLEEPING


def test_idle_no_transition_draw_keeps_idle_and_restarts_period(make_duck, pointer):
    duck = make_duck(states=_duck_states(idle_draw=0.99)).spawn(0.0)
    pointer.move_to(*duck.position)

    duck.step(5.0)
    assert duck.state == IDLE
    assert duck.machine.context.since_enter == 0.0


def test_idle_goes_alert_when_pointer_is_far(make_duck):
    duck = make_duck(states=_duck_states()).spawn(0.0)
    duck.step(0.1)
    assert duck.state == ALERT


def test_alert_returns_to_idle_and_cancels_wander_timer(make_duck, pointer, scheduler):
    duck = make_duck().spawn(0.0)
    duck.step(0.1)
    assert duck.state == ALERT
    assert scheduler.pending_count == 1

    pointer.move_to(*duck.position)
    duck.step(0.2)
    assert duck.state == IDLE
    assert scheduler.pending_count == 0

    scheduler.advance(2.0)
    assert duck.state == IDLE


def test_sleeping_stays_on_no_transition_and_wakes_when_pointer_leaves(make_duck, pointer):
    duck = make_duck(states=_duck_states(sleep_draw=0.99)).spawn(0.0)
    pointer.move_to(*duck.position)
    duck.change_state(SLEEPING)

    duck.step(5.0)
    assert duck.state == SLEEPING

    pointer.move_to(10_000, 10_000)
    duck.step(5.1)
    assert duck.state == IDLE


def test_sleeping_wakes_on_idle_draw(make_duck, pointer):
    duck = make_duck(states=_duck_states(sleep_draw=0.1)).spawn(0.0)
    pointer.move_to(*duck.position)
    duck.change_state(SLEEPING)

    duck.step(5.0)
    assert duck.state == IDLE


def test_quack_returns_to_idle_after_half_a_second(make_duck, scheduler):
    duck = make_duck().spawn(0.0)
    duck.change_state(QUACK)

    scheduler.advance(0.49)
    assert duck.state == QUACK
    scheduler.advance(0.02)
    assert duck.state == IDLE


def test_walking_jitter_is_sampled_on_enter(make_duck):
    duck = make_duck(states=_duck_states(jitter=lambda low, high: high)).spawn(0.0)
    duck.change_state(WALKING)
    assert duck.machine.context.data["jitter"] == Vector2(32.0, 32.0)


def test_walking_jitter_stays_within_range(make_duck):
    duck = make_duck(seed=99).spawn(0.0)
    for _ in range(50):
        duck.change_state(WALKING)
        jitter = duck.machine.context.data["jitter"]
        assert -32.0 <= jitter.x <= 32.0
        assert -32.0 <= jitter.y <= 32.0
        duck.change_state(IDLE)


def test_walking_heads_for_pointer_plus_jitter(make_duck, pointer):
    duck = make_duck(states=_duck_states(jitter=lambda low, high: high)).spawn(0.0)
    duck.move_to(Vector2(100.0, 100.0))
    pointer.move_to(400.0, 100.0)
    duck.change_state(WALKING)

    duck.step(0.1)

    # jitter (32, 32) puts the target at (432, 132): x dominates, so x moves the full 25px
    assert duck.state == WALKING
    assert duck.position.x == pytest.approx(125.0)
    assert duck.position.y == pytest.approx(100.0 + 32.0 / 332.0 * 25.0)
