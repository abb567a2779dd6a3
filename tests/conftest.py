import os
import random

import pytest
from PyQt6.QtCore import QCoreApplication

from quackwalk_app.config import DuckOptions
from quackwalk_app.duck import Duck
from quackwalk_app.pointer import PointerTracker
from quackwalk_app.renderer import Renderer
from quackwalk_app.timers import ManualScheduler


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    """
    Ensure a Qt core application exists for QTimer and QSettings.
    """
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class FakeRenderer(Renderer):
    """
    Records every call so tests can assert on what a duck asked the screen to do.
    """

    def __init__(self, size=(800.0, 600.0)):
        self.size = size
        self.calls = []
        self.attached = set()
        self.detached = []
        self._next_handle = 0

    def create_visual(self, options):
        self._next_handle += 1
        self.calls.append(("create_visual", self._next_handle))
        return self._next_handle

    def set_position(self, handle, x, y):
        self.calls.append(("set_position", handle, x, y))

    def set_sprite_offset(self, handle, dx, dy):
        self.calls.append(("set_sprite_offset", handle, dx, dy))

    def set_stack_order(self, handle, value):
        self.calls.append(("set_stack_order", handle, value))

    def attach(self, handle, container):
        self.calls.append(("attach", handle, container))
        self.attached.add(handle)

    def detach(self, handle):
        if handle not in self.attached:
            raise AssertionError(f"handle {handle} detached twice or never attached")
        self.attached.discard(handle)
        self.detached.append(handle)
        self.calls.append(("detach", handle))

    def container_size(self, container):
        return self.size

    def set_label(self, handle, text):
        self.calls.append(("set_label", handle, text))

    def last(self, name):
        for call in reversed(self.calls):
            if call[0] == name:
                return call
        return None


@pytest.fixture(autouse=True)
def fresh_pointer_tracker():
    PointerTracker.reset()
    yield
    PointerTracker.reset()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def pointer():
    return PointerTracker(10_000, 10_000)


@pytest.fixture
def make_duck(renderer, scheduler, pointer):
    def factory(options=None, seed=1, **kwargs):
        return Duck(
            options or DuckOptions(),
            renderer=renderer,
            pointer=pointer,
            scheduler=scheduler,
            rng=random.Random(seed),
            **kwargs,
        )

    return factory
