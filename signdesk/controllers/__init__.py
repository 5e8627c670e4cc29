"""
Controllers connecting the markup core to Qt widgets.
"""
from .annotation_controller import AnnotationController
from .input_handler import UserInputHandler

__all__ = [
    'AnnotationController',
    'UserInputHandler',
]
