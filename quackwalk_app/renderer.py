import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from PyQt6 import QtCore, QtGui, QtWidgets
from PyQt6.QtCore import Qt

from .config import DuckOptions
from .core import resource_path

# Shown when the sprite sheet cannot be loaded.
PLACEHOLDER_COLOR = QtGui.QColor(128, 0, 128)


class Renderer(ABC):
    """
    What a duck needs from whatever puts it on screen. Handles are opaque to the duck.
    """

    @abstractmethod
    def create_visual(self, options: DuckOptions) -> Any:
        pass

    @abstractmethod
    def set_position(self, handle: Any, x: float, y: float) -> None:
        pass

    @abstractmethod
    def set_sprite_offset(self, handle: Any, dx: float, dy: float) -> None:
        pass

    @abstractmethod
    def set_stack_order(self, handle: Any, value: int) -> None:
        pass

    @abstractmethod
    def attach(self, handle: Any, container: Optional[str]) -> None:
        pass

    @abstractmethod
    def detach(self, handle: Any) -> None:
        pass

    @abstractmethod
    def container_size(self, container: Optional[str]) -> Tuple[float, float]:
        pass

    def set_label(self, handle: Any, text: str) -> None:
        pass


def sprite_sheet_path(sprite: str) -> str:
    if os.path.isabs(sprite) or os.path.exists(sprite):
        return sprite
    return resource_path(os.path.join("assets", sprite))


def resolve_screen(container: Optional[str]) -> Optional[QtGui.QScreen]:
    if container:
        for screen in QtGui.QGuiApplication.screens():
            if screen.name() == container:
                return screen
        logging.warning("Screen '%s' not found, using the primary screen.", container)
    return QtGui.QGuiApplication.primaryScreen()


class SpriteWindow(QtWidgets.QWidget):
    """
    Frameless, click-through window that shows one cell of the sprite sheet.
    """

    def __init__(self, options: DuckOptions) -> None:
        super().__init__()
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
            | Qt.WindowType.WindowTransparentForInput
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating)

        self.scale = options.sprite_scale
        self.offset = QtCore.QPointF(0, 0)
        self.origin = QtCore.QPoint(0, 0)
        self.label = ""
        self.stack_order = 0
        self.sheet = self.load_sheet(sprite_sheet_path(options.sprite))
        self.resize(int(round(options.width * self.scale)), int(round(options.height * self.scale)))

    def load_sheet(self, path: str) -> Optional[QtGui.QPixmap]:
        if not os.path.exists(path):
            logging.error("Sprite sheet not found: %s", path)
            return None
        sheet = QtGui.QPixmap(path)
        if sheet.isNull():
            logging.error("Failed to load sprite sheet: %s", path)
            return None
        if self.scale != 1:
            sheet = sheet.scaled(
                int(round(sheet.width() * self.scale)),
                int(round(sheet.height() * self.scale)),
                Qt.AspectRatioMode.IgnoreAspectRatio,
                Qt.TransformationMode.FastTransformation,
            )
        return sheet

    def paintEvent(self, event):
        painter = QtGui.QPainter(self)
        try:
            if self.sheet is not None:
                painter.drawPixmap(self.offset, self.sheet)
            else:
                painter.fillRect(self.rect(), PLACEHOLDER_COLOR)
            if self.label:
                painter.setPen(QtGui.QPen(QtGui.QColor("yellow"), 1))
                painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, self.label)
        finally:
            painter.end()


class QtRenderer(Renderer):
    def create_visual(self, options: DuckOptions) -> SpriteWindow:
        return SpriteWindow(options)

    def set_position(self, handle: SpriteWindow, x: float, y: float) -> None:
        handle.move(handle.origin.x() + int(x), handle.origin.y() + int(y))

    def set_sprite_offset(self, handle: SpriteWindow, dx: float, dy: float) -> None:
        handle.offset = QtCore.QPointF(dx, dy)
        handle.update()

    def set_stack_order(self, handle: SpriteWindow, value: int) -> None:
        # Top-level windows have no z-index; the highest order is simply raised last.
        handle.stack_order = value
        handle.raise_()

    def attach(self, handle: SpriteWindow, container: Optional[str]) -> None:
        screen = resolve_screen(container)
        if screen is not None:
            handle.origin = screen.geometry().topLeft()
        handle.show()

    def detach(self, handle: SpriteWindow) -> None:
        handle.hide()
        handle.close()
        handle.deleteLater()

    def container_size(self, container: Optional[str]) -> Tuple[float, float]:
        screen = resolve_screen(container)
        if screen is None:
            logging.warning("No screen available; assuming 1920x1080.")
            return 1920.0, 1080.0
        geometry = screen.geometry()
        return float(geometry.width()), float(geometry.height())

    def set_label(self, handle: SpriteWindow, text: str) -> None:
        handle.label = text
        handle.update()
