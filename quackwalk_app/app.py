import logging
import platform
import sys
import traceback
from typing import Dict, List, Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from .animation import sprite_cell
from .config import DuckOptions, load_options
from .core import CRASH_LOG_FILE, PROJECT_VERSION, configure_logging
from .duck import Duck
from .host import TickDriver
from .pointer import CursorPoller, PointerTracker
from .renderer import QtRenderer, Renderer, resolve_screen, sprite_sheet_path
from .settings_store import SettingsManager
from .timers import QtScheduler, Scheduler


def exception_handler(exctype, value, tb):
    error_message = "".join(traceback.format_exception(exctype, value, tb))

    system_info = (
        f"System Information:\n"
        f"OS: {platform.system()} {platform.release()} ({platform.version()})\n"
        f"Machine: {platform.machine()}\n"
        f"Processor: {platform.processor()}\n"
        f"Python Version: {platform.python_version()}\n\n"
    )

    with open(CRASH_LOG_FILE, "w", encoding="utf-8") as crash_log:
        crash_log.write(system_info)
        crash_log.write(error_message)

    logging.error(system_info + error_message)

    if QtWidgets.QApplication.instance() is not None:
        msg = QtWidgets.QMessageBox()
        msg.setIcon(QtWidgets.QMessageBox.Icon.Critical)
        msg.setWindowTitle("Error!")
        msg.setText(f"The application encountered an error: \n{value}")
        msg.setDetailedText(system_info + error_message)
        msg.exec()
    else:
        logging.error("An error occurred before QApplication was initialized:")
        logging.error(system_info + error_message)

    sys.exit(1)


class Pond(QtCore.QObject):
    """
    Owns the shared pieces (pointer, scheduler, renderer, tick driver) and spawns ducks into them.
    """

    def __init__(
        self,
        options: DuckOptions,
        parent=None,
        renderer: Optional[Renderer] = None,
        scheduler: Optional[Scheduler] = None,
        driver: Optional[TickDriver] = None,
        track_cursor: bool = True,
    ) -> None:
        super().__init__(parent)
        self.options = options
        self.pointer = PointerTracker.listen()
        self.scheduler = scheduler or QtScheduler()
        self.renderer = renderer or QtRenderer()
        self.driver = driver or TickDriver(parent=self, updates_per_second=options.updates_per_second)
        self._lifetimes: Dict[str, int] = {}

        self.poller = None
        if track_cursor:
            screen = resolve_screen(options.container)
            origin = screen.geometry().topLeft() if screen is not None else QtCore.QPoint(0, 0)
            self.poller = CursorPoller(self.pointer, origin=(origin.x(), origin.y()), parent=self)
            self.poller.start()

    @property
    def ducks(self) -> List[Duck]:
        return list(self.driver.ducks)

    def start(self) -> Optional[Duck]:
        if not self.options.spawn:
            logging.info("Startup duck disabled by the spawn option.")
            return None
        return self.spawn()

    def spawn(self, lifetime_ms: Optional[int] = None) -> Duck:
        duck = Duck(
            self.options,
            renderer=self.renderer,
            pointer=self.pointer,
            scheduler=self.scheduler,
        )
        self.driver.add(duck)
        if lifetime_ms is not None and lifetime_ms > 0:
            self._lifetimes[duck.id] = self.scheduler.schedule(lifetime_ms / 1000.0, lambda: self._expire(duck))
        return duck

    def spawn_for_click(self) -> Optional[Duck]:
        if self.options.click is None:
            return None
        return self.spawn(self.options.click)

    def _expire(self, duck: Duck) -> None:
        self._lifetimes.pop(duck.id, None)
        duck.depart()

    def remove_all(self) -> None:
        for handle in self._lifetimes.values():
            self.scheduler.cancel(handle)
        self._lifetimes.clear()
        self.driver.depart_all()

    def shutdown(self) -> None:
        if self.poller is not None:
            self.poller.stop()
        self.remove_all()


class SystemTrayIcon(QtWidgets.QSystemTrayIcon):
    def __init__(self, pond: Pond, parent=None):
        super().__init__(tray_icon(pond.options), parent)
        self.pond = pond
        self.setToolTip(f"QuackWalk {PROJECT_VERSION}")
        self.setup_menu()
        self.activated.connect(self.icon_activated)

    def setup_menu(self):
        menu = QtWidgets.QMenu()

        spawn_action = menu.addAction("Spawn duck")
        spawn_action.triggered.connect(lambda: self.pond.spawn())

        remove_action = menu.addAction("Remove all ducks")
        remove_action.triggered.connect(self.pond.remove_all)

        menu.addSeparator()

        exit_action = menu.addAction("Quit")
        exit_action.triggered.connect(QtWidgets.QApplication.instance().quit)

        self.setContextMenu(menu)

    def icon_activated(self, reason):
        if reason == QtWidgets.QSystemTrayIcon.ActivationReason.Trigger:
            self.pond.spawn_for_click()


def tray_icon(options: DuckOptions) -> QtGui.QIcon:
    """
    First idle frame of the sprite sheet, or a plain square when the sheet is missing.
    """
    sheet = QtGui.QPixmap(sprite_sheet_path(options.sprite))
    if sheet.isNull():
        logging.error("Tray icon: sprite sheet unavailable, using a placeholder.")
        placeholder = QtGui.QPixmap(options.width, options.height)
        placeholder.fill(QtGui.QColor(128, 0, 128))
        return QtGui.QIcon(placeholder)
    column, row = sprite_cell(0, options.sprite_cols)
    return QtGui.QIcon(sheet.copy(column * options.width, row * options.height, options.width, options.height))


def main(argv: Optional[List[str]] = None):
    configure_logging()
    argv = list(sys.argv if argv is None else argv)
    options = load_options(SettingsManager(), argv[1:])
    logging.info("QuackWalk %s starting with %s", PROJECT_VERSION, options)

    app = QtWidgets.QApplication(argv)
    app.setQuitOnLastWindowClosed(False)
    sys.excepthook = exception_handler

    pond = Pond(options)
    pond.start()

    tray = None
    if QtWidgets.QSystemTrayIcon.isSystemTrayAvailable():
        tray = SystemTrayIcon(pond)
        tray.show()
    else:
        logging.warning("System tray not available; click-spawning is disabled.")

    app.aboutToQuit.connect(pond.shutdown)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
