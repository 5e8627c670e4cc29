from PyQt5.QtCore import QEvent, Qt
from PyQt5.QtGui import QKeySequence

from signdesk.core.annotations import PointerDevice, PointerEvent


def to_page_point(pos, zoom: float):
    """Convert a widget position to page pixel coordinates."""
    return pos.x() / zoom, pos.y() / zoom


def pointer_from_mouse(event, zoom: float = 1.0) -> PointerEvent:
    x, y = to_page_point(event.localPos(), zoom)
    # Touch screens synthesize mouse events for unhandled touches
    if event.source() == Qt.MouseEventSynthesizedBySystem:
        device = PointerDevice.TOUCH
    else:
        device = PointerDevice.MOUSE
    return PointerEvent(x, y, device)


def pointer_from_tablet(event, zoom: float = 1.0) -> PointerEvent:
    x, y = to_page_point(event.posF(), zoom)
    return PointerEvent(x, y, PointerDevice.PEN)


def pointer_from_touch(event, zoom: float = 1.0) -> PointerEvent:
    points = event.touchPoints()
    x, y = to_page_point(points[0].pos(), zoom) if points else (0.0, 0.0)
    return PointerEvent(x, y, PointerDevice.TOUCH, touch_points=len(points))


class UserInputHandler:
    """
    Handles keyboard, mouse, tablet and touch input for the markup editor.
    """
    def __init__(self, editor):
        """
        Initializes the handler with a reference to the editor.

        Args:
            editor (AnnotationEditor): The editor window owning the controller.
        """
        self.editor = editor

    @property
    def controller(self):
        return self.editor.controller

    def handle_key_press(self, event):
        """
        Handles key press events for the editor.
        """
        if event.matches(QKeySequence.Undo):
            self.controller.undo()
            event.accept()
        elif event.matches(QKeySequence.Save):
            self.editor.save()
            event.accept()
        elif event.key() == Qt.Key_PageDown:
            self.controller.next_page()
            event.accept()
        elif event.key() == Qt.Key_PageUp:
            self.controller.previous_page()
            event.accept()
        elif event.key() == Qt.Key_Escape:
            self.controller.finish_text_edit()
            event.accept()
        else:
            event.ignore()

    def handle_mouse_press(self, event) -> bool:
        """
        Returns:
            bool: True if the active tool consumed the press.
        """
        if event.button() != Qt.LeftButton:
            return False
        return self.controller.pointer_down(pointer_from_mouse(event, self.editor.zoom))

    def handle_mouse_move(self, event) -> bool:
        if not event.buttons() & Qt.LeftButton:
            return False
        return self.controller.pointer_move(pointer_from_mouse(event, self.editor.zoom))

    def handle_mouse_release(self, event) -> bool:
        if event.button() != Qt.LeftButton:
            return False
        return self.controller.pointer_up(pointer_from_mouse(event, self.editor.zoom))

    def handle_tablet(self, event) -> bool:
        """
        Routes a stylus event. Pen input always drives the active tool.

        Returns:
            bool: True if the tool consumed the event.
        """
        pointer = pointer_from_tablet(event, self.editor.zoom)
        kind = event.type()
        if kind == QEvent.TabletPress:
            return self.controller.pointer_down(pointer)
        if kind == QEvent.TabletMove:
            return self.controller.pointer_move(pointer)
        if kind == QEvent.TabletRelease:
            return self.controller.pointer_up(pointer)
        return False

    def handle_touch(self, event) -> bool:
        """
        Routes a touch event. Evaluated per event so a session can mix touch
        scrolling with pen drawing.

        Returns:
            bool: True if the tool consumed the event; False means scroll.
        """
        pointer = pointer_from_touch(event, self.editor.zoom)
        kind = event.type()
        if kind == QEvent.TouchBegin:
            return self.controller.pointer_down(pointer)
        if kind == QEvent.TouchUpdate:
            return self.controller.pointer_move(pointer)
        if kind in (QEvent.TouchEnd, QEvent.TouchCancel):
            return self.controller.pointer_up(pointer)
        return False
