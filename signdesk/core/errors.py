"""
Error taxonomy shared by the markup, signature and workflow layers.
"""
from typing import Optional


class SignDeskError(Exception):
    """Base class for all recoverable and fatal SignDesk errors."""


class InputError(SignDeskError):
    """User input failed validation. No state was changed."""


class PageOutOfRange(InputError):
    """A page number outside ``[1, total_pages]`` was requested."""

    def __init__(self, page_number: int, total_pages: int):
        super().__init__(f"Page {page_number} is outside 1..{total_pages}")
        self.page_number = page_number
        self.total_pages = total_pages


class OutOfTurn(SignDeskError):
    """A signer acted while another signer holds the turn."""

    def __init__(self, signer_order: int, current_signer_order: Optional[int]):
        super().__init__(
            f"Signer {signer_order} cannot act; current signer is {current_signer_order}"
        )
        self.signer_order = signer_order
        self.current_signer_order = current_signer_order


class InvalidTransition(SignDeskError):
    """The requested workflow transition is not allowed from the current status."""


class RenderFailure(SignDeskError):
    """A page could not be decoded or rasterized."""

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


class CorruptDocumentError(RenderFailure):
    """The source document is unreadable. Fatal for the editing session."""


class ExportFailure(SignDeskError):
    """Compositing the annotated document failed."""


class StorageFailure(SignDeskError):
    """A collaborator I/O call (blob storage, workflow record) failed."""
