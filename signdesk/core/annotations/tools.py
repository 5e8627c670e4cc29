"""
Tool-mode dispatch for the markup editor.

The controller turns pointer gestures into annotation objects on the
attached scene. It never touches rendering; the caller repaints after
each handled event.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from signdesk.config import Settings, get_settings

from .geometry import Point, arrow_head_segments, circle_from_drag
from .models import (
    AnnotationObject,
    AnnotationScene,
    Arrow,
    Circle,
    Color,
    HighlightStroke,
    Stroke,
    TextBox,
    Tool,
    parse_color,
)

logger = logging.getLogger(__name__)


class PointerDevice(Enum):
    MOUSE = "mouse"
    PEN = "pen"
    TOUCH = "touch"


@dataclass(frozen=True)
class PointerEvent:
    """A pointer sample in page pixel coordinates."""
    x: float
    y: float
    device: PointerDevice = PointerDevice.MOUSE
    touch_points: int = 1

    @property
    def pos(self) -> Point:
        return self.x, self.y


ObjectCallback = Callable[[AnnotationObject], None]


class ToolController:
    """
    Configures the active tool and routes pointer events to it.

    Callbacks:
        on_object_added: a gesture finished and produced an object
        on_object_removed: the eraser removed an object
        on_object_modified: a text box edit was committed
    """

    def __init__(self, scene: Optional[AnnotationScene] = None,
                 on_object_added: Optional[ObjectCallback] = None,
                 on_object_removed: Optional[ObjectCallback] = None,
                 on_object_modified: Optional[ObjectCallback] = None,
                 touch_scrolls: bool = True,
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.scene = scene
        self.on_object_added = on_object_added
        self.on_object_removed = on_object_removed
        self.on_object_modified = on_object_modified
        self.touch_scrolls = touch_scrolls

        self.tool = Tool.PEN
        self.color: Color = parse_color(self.settings.pen_color)
        self.width: float = self.settings.pen_width

        # Gesture state
        self._points: List[Point] = []
        self._anchor: Optional[Point] = None
        self._shape: Optional[Union[Circle, Arrow]] = None
        self._text_armed = False
        self.editing_text: Optional[TextBox] = None
        self._text_before_edit: Optional[str] = None
        self._scroll_device: Optional[PointerDevice] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def attach(self, scene: Optional[AnnotationScene]) -> None:
        """Bind to a new live scene (or None while a page is loading)."""
        self._abort_gesture()
        self.finish_text_edit()
        self.scene = scene
        self._text_armed = self.tool is Tool.TEXT

    def set_tool(self, tool: Tool, color=None, width: Optional[float] = None) -> None:
        """
        Activate ``tool``. Exactly one tool is active at a time.

        Args:
            tool: Tool to activate
            color: Optional ``#RRGGBB`` string or RGB tuple
            width: Optional stroke width for pen and shapes
        """
        self._abort_gesture()
        self.finish_text_edit()

        self.tool = tool
        if color is not None:
            self.color = parse_color(color)
        if width is not None:
            self.width = float(width)

        # Text places one box per activation
        self._text_armed = tool is Tool.TEXT
        logger.debug("Active tool: %s", tool.value)

    @property
    def text_armed(self) -> bool:
        return self._text_armed

    @property
    def is_scrolling(self) -> bool:
        return self._scroll_device is not None

    @property
    def is_drawing(self) -> bool:
        return bool(self._points) or self._shape is not None

    # ------------------------------------------------------------------
    # Pointer dispatch
    # ------------------------------------------------------------------

    def pointer_down(self, event: PointerEvent) -> bool:
        """
        Start a gesture.

        Returns:
            True if the active tool consumed the event, False if it should
            scroll the page instead
        """
        if self._routes_to_scroll(event):
            self._scroll_device = event.device
            return False
        if self.scene is None:
            return False

        if self.tool in (Tool.PEN, Tool.HIGHLIGHTER):
            self._points = [event.pos]
        elif self.tool is Tool.TEXT:
            return self._place_text(event)
        elif self.tool is Tool.CIRCLE:
            self._start_circle(event)
        elif self.tool is Tool.ARROW:
            self._start_arrow(event)
        elif self.tool is Tool.ERASER:
            return self._erase_at(event)
        return True

    def pointer_move(self, event: PointerEvent) -> bool:
        if event.device is self._scroll_device or self.scene is None:
            return False

        if self._points:
            self._points.append(event.pos)
        elif isinstance(self._shape, Circle):
            self._update_circle(event)
        elif isinstance(self._shape, Arrow):
            self._shape.x2, self._shape.y2 = event.pos
        else:
            return False
        return True

    def pointer_up(self, event: PointerEvent) -> bool:
        if event.device is self._scroll_device:
            # Tool comes back once the scrolling contact lifts
            self._scroll_device = None
            return False
        if self.scene is None:
            return False

        if self._points:
            self._finish_stroke(event)
        elif isinstance(self._shape, Circle):
            self._update_circle(event)
            self._finish_shape()
        elif isinstance(self._shape, Arrow):
            self._finish_arrow(event)
        else:
            return False
        return True

    def _routes_to_scroll(self, event: PointerEvent) -> bool:
        if self.tool is Tool.PAN:
            return True
        if event.touch_points >= 2:
            return True
        return self.touch_scrolls and event.device is PointerDevice.TOUCH

    # ------------------------------------------------------------------
    # Freehand
    # ------------------------------------------------------------------

    def _finish_stroke(self, event: PointerEvent) -> None:
        self._points.append(event.pos)
        points, self._points = self._points, []

        if self.tool is Tool.HIGHLIGHTER:
            stroke = HighlightStroke(
                points=points,
                color=self.color,
                width=self.settings.highlighter_width,
                opacity=self.settings.highlighter_opacity,
            )
        else:
            stroke = Stroke(points=points, color=self.color, width=self.width)
        self._add(stroke)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _place_text(self, event: PointerEvent) -> bool:
        if not self._text_armed:
            return False
        if self.scene.object_at(event.x, event.y) is not None:
            # Clicking an existing object selects it instead
            return False

        box = TextBox(
            x=event.x,
            y=event.y,
            text=self.settings.text_placeholder,
            width=self.settings.text_box_width,
            font_size=self.settings.text_font_size,
            color=self.color,
        )
        self._text_armed = False
        self._add(box)

        self.editing_text = box
        self._text_before_edit = box.text
        return True

    def update_text(self, text: str) -> None:
        if self.editing_text is not None:
            self.editing_text.text = text

    def finish_text_edit(self) -> Optional[TextBox]:
        """Leave edit mode. A changed text is reported as a modification."""
        box, before = self.editing_text, self._text_before_edit
        self.editing_text = None
        self._text_before_edit = None

        if box is not None and box.text != before and self.on_object_modified:
            self.on_object_modified(box)
        return box

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------

    def _start_circle(self, event: PointerEvent) -> None:
        self._anchor = event.pos
        self._shape = Circle(
            center_x=event.x,
            center_y=event.y,
            radius=0.0,
            color=self.color,
            stroke_width=self.width,
            selectable=False,
        )
        self.scene.add(self._shape)

    def _update_circle(self, event: PointerEvent) -> None:
        cx, cy, radius, scale_x, scale_y = circle_from_drag(self._anchor, event.pos)
        shape = self._shape
        shape.center_x, shape.center_y = cx, cy
        shape.radius, shape.scale_x, shape.scale_y = radius, scale_x, scale_y

    def _start_arrow(self, event: PointerEvent) -> None:
        self._anchor = event.pos
        self._shape = Arrow(
            x1=event.x,
            y1=event.y,
            x2=event.x,
            y2=event.y,
            color=self.color,
            stroke_width=self.width,
            selectable=False,
        )
        self.scene.add(self._shape)

    def _finish_arrow(self, event: PointerEvent) -> None:
        arrow = self._shape
        arrow.x2, arrow.y2 = event.pos
        arrow.head = list(arrow_head_segments(
            self._anchor,
            event.pos,
            length=self.settings.arrow_head_length,
            spread_deg=self.settings.arrow_head_angle_deg,
        ))
        self._finish_shape()

    def _finish_shape(self) -> None:
        shape, self._shape, self._anchor = self._shape, None, None

        degenerate = (
            shape.radius == 0 if isinstance(shape, Circle)
            else (shape.x1, shape.y1) == (shape.x2, shape.y2)
        )
        if degenerate:
            # A click without a drag leaves nothing behind
            self.scene.remove(shape)
            return

        shape.selectable = True
        self._notify(self.on_object_added, shape)

    def _abort_gesture(self) -> None:
        if self._shape is not None and self.scene is not None:
            self.scene.remove(self._shape)
        self._shape = None
        self._anchor = None
        self._points = []
        self._scroll_device = None

    # ------------------------------------------------------------------
    # Eraser
    # ------------------------------------------------------------------

    def _erase_at(self, event: PointerEvent) -> bool:
        target = self.scene.object_at(event.x, event.y)
        if target is None:
            return False
        self.scene.remove(target)
        self._notify(self.on_object_removed, target)
        return True

    # ------------------------------------------------------------------

    def _add(self, obj: AnnotationObject) -> None:
        self.scene.add(obj)
        self._notify(self.on_object_added, obj)

    @staticmethod
    def _notify(callback: Optional[ObjectCallback], obj: AnnotationObject) -> None:
        if callback is not None:
            callback(obj)
