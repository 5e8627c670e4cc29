from PyQt5.QtCore import QEvent, QPointF, Qt
from PyQt5.QtGui import QKeyEvent, QMouseEvent

from signdesk.controllers.input_handler import UserInputHandler, pointer_from_mouse
from signdesk.core.annotations import PointerDevice


class FakeController:
    def __init__(self):
        self.calls = []

    def pointer_down(self, event):
        self.calls.append(('down', event))
        return True

    def pointer_move(self, event):
        self.calls.append(('move', event))
        return True

    def pointer_up(self, event):
        self.calls.append(('up', event))
        return True

    def undo(self):
        self.calls.append(('undo', None))

    def next_page(self):
        self.calls.append(('next', None))

    def previous_page(self):
        self.calls.append(('previous', None))

    def finish_text_edit(self):
        self.calls.append(('finish', None))


class FakeEditor:
    def __init__(self, zoom=2.0):
        self.controller = FakeController()
        self.zoom = zoom
        self.saved = False

    def save(self):
        self.saved = True


def _mouse(kind, x, y, button=Qt.LeftButton, buttons=Qt.LeftButton):
    return QMouseEvent(kind, QPointF(x, y), button, buttons, Qt.NoModifier)


def test_mouse_position_is_mapped_to_page_pixels(qapp):
    pointer = pointer_from_mouse(_mouse(QEvent.MouseButtonPress, 40, 60), zoom=2.0)

    assert (pointer.x, pointer.y) == (20, 30)
    assert pointer.device is PointerDevice.MOUSE
    assert pointer.touch_points == 1


def test_left_button_gesture_reaches_controller(qapp):
    editor = FakeEditor()
    handler = UserInputHandler(editor)

    assert handler.handle_mouse_press(_mouse(QEvent.MouseButtonPress, 10, 10))
    assert handler.handle_mouse_move(_mouse(QEvent.MouseMove, 20, 20, Qt.NoButton))
    assert handler.handle_mouse_release(_mouse(QEvent.MouseButtonRelease, 30, 30, buttons=Qt.NoButton))

    assert [name for name, _ in editor.controller.calls] == ['down', 'move', 'up']
    assert editor.controller.calls[-1][1].pos == (15, 15)


def test_other_buttons_are_ignored(qapp):
    editor = FakeEditor()
    handler = UserInputHandler(editor)

    assert not handler.handle_mouse_press(_mouse(QEvent.MouseButtonPress, 10, 10, Qt.RightButton, Qt.RightButton))
    assert not handler.handle_mouse_move(_mouse(QEvent.MouseMove, 10, 10, Qt.NoButton, Qt.NoButton))
    assert editor.controller.calls == []


def test_key_shortcuts(qapp):
    editor = FakeEditor()
    handler = UserInputHandler(editor)

    undo = QKeyEvent(QEvent.KeyPress, Qt.Key_Z, Qt.ControlModifier)
    handler.handle_key_press(undo)
    assert undo.isAccepted()

    save = QKeyEvent(QEvent.KeyPress, Qt.Key_S, Qt.ControlModifier)
    handler.handle_key_press(save)
    assert editor.saved

    for key in (Qt.Key_PageDown, Qt.Key_PageUp, Qt.Key_Escape):
        handler.handle_key_press(QKeyEvent(QEvent.KeyPress, key, Qt.NoModifier))

    assert [name for name, _ in editor.controller.calls] == ['undo', 'next', 'previous', 'finish']


def test_unhandled_key_is_ignored(qapp):
    handler = UserInputHandler(FakeEditor())
    event = QKeyEvent(QEvent.KeyPress, Qt.Key_A, Qt.NoModifier)
    handler.handle_key_press(event)
    assert not event.isAccepted()
