"""
Page markup: vector scene, tools, per-page store and undo.
"""
from .models import (
    AnnotationKind,
    AnnotationObject,
    AnnotationScene,
    Arrow,
    Circle,
    HighlightStroke,
    Stroke,
    TextBox,
    Tool,
    annotation_from_dict,
    parse_color,
)
from .persistence import AnnotationPersistence
from .store import AnnotationStore, SessionState
from .tools import PointerDevice, PointerEvent, ToolController
from .undo_redo import UndoHistory

__all__ = [
    'AnnotationKind',
    'AnnotationObject',
    'AnnotationScene',
    'Arrow',
    'Circle',
    'HighlightStroke',
    'Stroke',
    'TextBox',
    'Tool',
    'annotation_from_dict',
    'parse_color',
    'AnnotationPersistence',
    'AnnotationStore',
    'SessionState',
    'PointerDevice',
    'PointerEvent',
    'ToolController',
    'UndoHistory',
]
