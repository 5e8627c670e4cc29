"""
Vector markup objects and the per-page scene that owns them.

Coordinates are page pixels at the render scale the page was shown at,
never normalized.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

from .geometry import Point, Segment, ellipse_params, hit_tolerance, point_near_segment

SCENE_SCHEMA_VERSION = 1

Color = Tuple[int, int, int]  # RGB (0-255)


class Tool(Enum):
    """Input behaviors available in the markup editor."""
    PAN = "pan"
    PEN = "pen"
    HIGHLIGHTER = "highlighter"
    TEXT = "text"
    CIRCLE = "circle"
    ARROW = "arrow"
    ERASER = "eraser"


class AnnotationKind(Enum):
    STROKE = "stroke"
    HIGHLIGHT = "highlight"
    TEXT = "text"
    CIRCLE = "circle"
    ARROW = "arrow"


def parse_color(value: Union[str, Sequence[int]]) -> Color:
    """
    Normalize a color given as ``#RRGGBB`` or an RGB sequence.

    Raises:
        ValueError: If the value is not a valid color
    """
    if isinstance(value, str):
        text = value.strip().lstrip('#')
        if len(text) != 6:
            raise ValueError(f"Invalid color: {value!r}")
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)

    r, g, b = (int(c) for c in value)
    return r, g, b


def color_to_hex(color: Color) -> str:
    return "#{:02X}{:02X}{:02X}".format(*color)


def _points_from(data: Sequence[Sequence[float]]) -> List[Point]:
    return [(float(p[0]), float(p[1])) for p in data]


def _segment_from(data: Sequence[Sequence[float]]) -> Segment:
    return (float(data[0][0]), float(data[0][1])), (float(data[1][0]), float(data[1][1]))


@dataclass
class Stroke:
    """Freehand pen stroke captured during one gesture."""
    points: List[Point]
    color: Color = (255, 0, 0)
    width: float = 4.0

    kind: ClassVar[AnnotationKind] = AnnotationKind.STROKE

    def contains_point(self, x: float, y: float) -> bool:
        if not self.points:
            return False
        tolerance = hit_tolerance(self.width)
        if len(self.points) == 1:
            px, py = self.points[0]
            return point_near_segment(x, y, px, py, px, py, tolerance)

        for p1, p2 in zip(self.points, self.points[1:]):
            if point_near_segment(x, y, p1[0], p1[1], p2[0], p2[1], tolerance):
                return True
        return False

    def scaled(self, sx: float, sy: float) -> "Stroke":
        data = self.to_dict()
        data['points'] = [[px * sx, py * sy] for px, py in self.points]
        data['width'] = self.width * (sx + sy) / 2
        return type(self).from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind.value,
            'points': [[x, y] for x, y in self.points],
            'color': list(self.color),
            'width': self.width,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stroke":
        return cls(
            points=_points_from(data.get('points', [])),
            color=parse_color(data['color']),
            width=float(data.get('width', 4.0)),
        )


@dataclass
class HighlightStroke(Stroke):
    """Pen stroke rendered with a translucent color."""
    opacity: float = 0.3

    kind: ClassVar[AnnotationKind] = AnnotationKind.HIGHLIGHT

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['opacity'] = self.opacity
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HighlightStroke":
        return cls(
            points=_points_from(data.get('points', [])),
            color=parse_color(data['color']),
            width=float(data.get('width', 20.0)),
            opacity=float(data.get('opacity', 0.3)),
        )


@dataclass
class TextBox:
    """Editable text block anchored at its top-left corner."""
    x: float
    y: float
    text: str = ""
    width: float = 200.0
    font_size: float = 20.0
    color: Color = (255, 0, 0)

    kind: ClassVar[AnnotationKind] = AnnotationKind.TEXT

    @property
    def height(self) -> float:
        lines = max(1, self.text.count('\n') + 1)
        return lines * self.font_size * 1.2

    def contains_point(self, x: float, y: float) -> bool:
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height

    def scaled(self, sx: float, sy: float) -> "TextBox":
        return TextBox(
            x=self.x * sx,
            y=self.y * sy,
            text=self.text,
            width=self.width * sx,
            font_size=self.font_size * sy,
            color=self.color,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind.value,
            'x': self.x,
            'y': self.y,
            'text': self.text,
            'width': self.width,
            'font_size': self.font_size,
            'color': list(self.color),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextBox":
        return cls(
            x=float(data['x']),
            y=float(data['y']),
            text=data.get('text', ""),
            width=float(data.get('width', 200.0)),
            font_size=float(data.get('font_size', 20.0)),
            color=parse_color(data['color']),
        )


@dataclass
class Circle:
    """
    Ellipse stored as a circle radius with independent axis scales.

    The drawn semi-axes are ``radius * scale_x`` and ``radius * scale_y``.
    """
    center_x: float
    center_y: float
    radius: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    color: Color = (255, 0, 0)
    stroke_width: float = 4.0
    selectable: bool = True

    kind: ClassVar[AnnotationKind] = AnnotationKind.CIRCLE

    @property
    def radius_x(self) -> float:
        return self.radius * self.scale_x

    @property
    def radius_y(self) -> float:
        return self.radius * self.scale_y

    def contains_point(self, x: float, y: float) -> bool:
        # Bounding-box hit, like a selectable canvas object
        pad = self.stroke_width / 2.0
        return (abs(x - self.center_x) <= self.radius_x + pad
                and abs(y - self.center_y) <= self.radius_y + pad)

    def scaled(self, sx: float, sy: float) -> "Circle":
        radius, scale_x, scale_y = ellipse_params(self.radius_x * sx, self.radius_y * sy)
        return Circle(
            center_x=self.center_x * sx,
            center_y=self.center_y * sy,
            radius=radius,
            scale_x=scale_x,
            scale_y=scale_y,
            color=self.color,
            stroke_width=self.stroke_width * (sx + sy) / 2,
            selectable=self.selectable,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind.value,
            'center_x': self.center_x,
            'center_y': self.center_y,
            'radius': self.radius,
            'scale_x': self.scale_x,
            'scale_y': self.scale_y,
            'color': list(self.color),
            'stroke_width': self.stroke_width,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Circle":
        return cls(
            center_x=float(data['center_x']),
            center_y=float(data['center_y']),
            radius=float(data.get('radius', 0.0)),
            scale_x=float(data.get('scale_x', 1.0)),
            scale_y=float(data.get('scale_y', 1.0)),
            color=parse_color(data['color']),
            stroke_width=float(data.get('stroke_width', 4.0)),
        )


@dataclass
class Arrow:
    """Main line from (x1, y1) to the tip (x2, y2) plus two head segments."""
    x1: float
    y1: float
    x2: float
    y2: float
    color: Color = (255, 0, 0)
    stroke_width: float = 4.0
    head: List[Segment] = field(default_factory=list)
    selectable: bool = True

    kind: ClassVar[AnnotationKind] = AnnotationKind.ARROW

    @property
    def segments(self) -> List[Segment]:
        return [((self.x1, self.y1), (self.x2, self.y2))] + list(self.head)

    def contains_point(self, x: float, y: float) -> bool:
        tolerance = hit_tolerance(self.stroke_width)
        return any(
            point_near_segment(x, y, a[0], a[1], b[0], b[1], tolerance)
            for a, b in self.segments
        )

    def scaled(self, sx: float, sy: float) -> "Arrow":
        return Arrow(
            x1=self.x1 * sx,
            y1=self.y1 * sy,
            x2=self.x2 * sx,
            y2=self.y2 * sy,
            color=self.color,
            stroke_width=self.stroke_width * (sx + sy) / 2,
            head=[((a[0] * sx, a[1] * sy), (b[0] * sx, b[1] * sy)) for a, b in self.head],
            selectable=self.selectable,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind.value,
            'x1': self.x1,
            'y1': self.y1,
            'x2': self.x2,
            'y2': self.y2,
            'color': list(self.color),
            'stroke_width': self.stroke_width,
            'head': [[list(a), list(b)] for a, b in self.head],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Arrow":
        return cls(
            x1=float(data['x1']),
            y1=float(data['y1']),
            x2=float(data['x2']),
            y2=float(data['y2']),
            color=parse_color(data['color']),
            stroke_width=float(data.get('stroke_width', 4.0)),
            head=[_segment_from(seg) for seg in data.get('head', [])],
        )


AnnotationObject = Union[Stroke, HighlightStroke, TextBox, Circle, Arrow]

_OBJECT_TYPES: Dict[str, Type] = {
    cls.kind.value: cls for cls in (Stroke, HighlightStroke, TextBox, Circle, Arrow)
}


def annotation_from_dict(data: Dict[str, Any]) -> AnnotationObject:
    """Create the matching annotation object from its dictionary form."""
    try:
        cls = _OBJECT_TYPES[data['type']]
    except KeyError:
        raise ValueError(f"Unknown annotation type: {data.get('type')!r}")
    return cls.from_dict(data)


@dataclass
class AnnotationScene:
    """Ordered markup objects bound to one page's pixel space."""
    page_number: int  # 1-based
    width: int
    height: int
    objects: List[AnnotationObject] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.objects)

    @property
    def is_empty(self) -> bool:
        return not self.objects

    def add(self, obj: AnnotationObject) -> None:
        self.objects.append(obj)

    def remove(self, obj: AnnotationObject) -> bool:
        """Remove ``obj`` by identity. Returns True if it was in the scene."""
        for index, candidate in enumerate(self.objects):
            if candidate is obj:
                del self.objects[index]
                return True
        return False

    def object_at(self, x: float, y: float) -> Optional[AnnotationObject]:
        """Return the topmost object under the point, or None."""
        for obj in reversed(self.objects):
            if obj.contains_point(x, y):
                return obj
        return None

    def clear(self) -> None:
        self.objects.clear()

    def rescaled(self, width: int, height: int) -> "AnnotationScene":
        """Return a copy whose objects are mapped into a raster of a new size."""
        if (width, height) == (self.width, self.height) or not self.width or not self.height:
            return AnnotationScene(self.page_number, width, height, list(self.objects))

        sx = width / self.width
        sy = height / self.height
        return AnnotationScene(
            self.page_number, width, height, [obj.scaled(sx, sy) for obj in self.objects]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': SCENE_SCHEMA_VERSION,
            'page': self.page_number,
            'width': self.width,
            'height': self.height,
            'objects': [obj.to_dict() for obj in self.objects],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotationScene":
        data = _migrate_scene(data)
        return cls(
            page_number=int(data['page']),
            width=int(data['width']),
            height=int(data['height']),
            objects=[annotation_from_dict(obj) for obj in data.get('objects', [])],
        )

    def serialize(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def deserialize(cls, payload: str) -> "AnnotationScene":
        return cls.from_dict(json.loads(payload))


def _migrate_scene(data: Dict[str, Any]) -> Dict[str, Any]:
    version = data.get('version', SCENE_SCHEMA_VERSION)
    if version != SCENE_SCHEMA_VERSION:
        raise ValueError(f"Unsupported scene version: {version}")
    return data
