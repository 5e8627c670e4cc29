"""
Contracts for the services the workflow core calls but does not own.
"""
from dataclasses import dataclass
from typing import Any, Dict, Protocol


@dataclass(frozen=True)
class UserRef:
    id: str
    name: str
    role: str


class BlobStorage(Protocol):
    def store(self, data: bytes, content_type: str) -> str:
        """Persist ``data`` and return a reference to it."""

    def fetch(self, ref: str) -> bytes:
        ...

    def remove(self, ref: str) -> None:
        ...


class IdentityProvider(Protocol):
    def current_user(self) -> UserRef:
        ...


class Notifier(Protocol):
    def notify(self, user_id: str, kind: str, message: str) -> None:
        """Fire-and-forget delivery."""


class WorkflowRepository(Protocol):
    def update_document_status(self, document_id: str, update: Dict[str, Any]) -> None:
        """
        Persist a document's workflow record. Either fully applied or raises
        StorageFailure.
        """
