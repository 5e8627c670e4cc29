"""
Core business logic for SignDesk.
"""
from .errors import (
    CorruptDocumentError,
    ExportFailure,
    InputError,
    InvalidTransition,
    OutOfTurn,
    PageOutOfRange,
    RenderFailure,
    SignDeskError,
    StorageFailure,
)

__all__ = [
    "SignDeskError",
    "InputError",
    "PageOutOfRange",
    "OutOfTurn",
    "InvalidTransition",
    "RenderFailure",
    "CorruptDocumentError",
    "ExportFailure",
    "StorageFailure",
]
