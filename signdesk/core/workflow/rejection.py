"""
Coordinates one reject action: which files can be marked up, which were,
and the bundle handed to the state machine.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import List, Optional, Sequence
from urllib.parse import urlparse

from signdesk.core.errors import InputError

from .collaborators import BlobStorage
from .models import Decision, RejectionBundle, WorkflowDocument
from .state_machine import ApprovalStateMachine

logger = logging.getLogger(__name__)

PAGE_DESCRIBED_EXTENSIONS = ('.pdf',)
MAIN_KEY = 'main'


def is_page_described(ref: str) -> bool:
    """True if ``ref`` names a document format whose pages can be rasterized."""
    path = urlparse(ref).path or ref
    return PurePosixPath(path).suffix.lower() in PAGE_DESCRIBED_EXTENSIONS


class RejectionStep(Enum):
    SELECT = "select"        # choose a file or enter the reason
    ANNOTATE = "annotate"    # a file is open in the markup editor


@dataclass
class ArtifactEntry:
    key: str
    ref: str
    is_main: bool
    eligible: bool
    annotated_ref: Optional[str] = None

    @property
    def name(self) -> str:
        return PurePosixPath(urlparse(self.ref).path or self.ref).name

    @property
    def annotated(self) -> bool:
        return self.annotated_ref is not None


class RejectionCoordinator:
    """
    Drives a single rejection through file markup to the workflow.

    Annotated files are uploaded as they are saved; cancelling removes
    those uploads and returns to the initial step.
    """

    def __init__(self, state_machine: ApprovalStateMachine, storage: BlobStorage,
                 signer_order: int, main_ref: str, attachment_refs: Sequence[str] = ()):
        self.state_machine = state_machine
        self.storage = storage
        self.signer_order = signer_order

        self.entries: List[ArtifactEntry] = [
            ArtifactEntry(MAIN_KEY, main_ref, True, is_page_described(main_ref))
        ]
        for index, ref in enumerate(attachment_refs):
            self.entries.append(ArtifactEntry(f"attachment-{index}", ref, False, is_page_described(ref)))

        self.step = RejectionStep.SELECT
        self.active_key: Optional[str] = None
        self.reason = ""

    # ------------------------------------------------------------------

    def entry(self, key: str) -> ArtifactEntry:
        for entry in self.entries:
            if entry.key == key:
                return entry
        raise InputError(f"No file {key!r} in this document")

    @property
    def eligible_entries(self) -> List[ArtifactEntry]:
        return [e for e in self.entries if e.eligible]

    @property
    def annotated_entries(self) -> List[ArtifactEntry]:
        return [e for e in self.entries if e.annotated]

    def open_for_annotation(self, key: str) -> bytes:
        """
        Fetch a file for the markup editor.

        Raises:
            InputError: Unknown or non page-described file
            StorageFailure: Fetch failed
        """
        entry = self.entry(key)
        if not entry.eligible:
            raise InputError(f"{entry.name} cannot be annotated")

        data = self.storage.fetch(entry.ref)
        self.active_key = key
        self.step = RejectionStep.ANNOTATE
        return data

    def attach_annotated(self, key: str, pdf_bytes: bytes) -> str:
        """
        Upload the annotated export of ``key`` and mark it annotated.

        A previous upload for the same file is replaced.
        """
        entry = self.entry(key)
        if not entry.eligible:
            raise InputError(f"{entry.name} cannot be annotated")

        ref = self.storage.store(pdf_bytes, 'application/pdf')
        previous, entry.annotated_ref = entry.annotated_ref, ref
        if previous is not None:
            self._remove_blob(previous)

        self.active_key = None
        self.step = RejectionStep.SELECT
        return ref

    def close_editor(self) -> None:
        """Leave the editor without saving the open file."""
        self.active_key = None
        self.step = RejectionStep.SELECT

    # ------------------------------------------------------------------

    def set_reason(self, reason: str) -> None:
        self.reason = reason or ""

    @property
    def can_submit(self) -> bool:
        return bool(self.reason.strip())

    def build_bundle(self, reason: str) -> RejectionBundle:
        main = self.entries[0]
        return RejectionBundle(
            reason=reason.strip(),
            main_artifact_ref=main.annotated_ref,
            attachment_refs=[e.annotated_ref for e in self.entries[1:] if e.annotated],
        )

    def reject(self, reason: Optional[str] = None) -> WorkflowDocument:
        """
        Forward the rejection with whichever files were annotated.

        Raises:
            InputError: Empty reason; nothing changes
            OutOfTurn, InvalidTransition, StorageFailure: From the state machine;
                annotated uploads are kept for a retry
        """
        if reason is not None and not reason.strip():
            raise InputError("A rejection reason is required")
        if reason is not None:
            self.set_reason(reason)
        if not self.can_submit:
            raise InputError("A rejection reason is required")

        bundle = self.build_bundle(self.reason)
        document = self.state_machine.act(self.signer_order, Decision.REJECT, bundle.reason, bundle)

        logger.info(
            "Rejected %s with %d annotated file(s)",
            document.document_id, len(self.annotated_entries),
        )
        self._reset(remove_uploads=False)
        return document

    def cancel(self) -> None:
        """Drop every pending annotation and return to the initial step."""
        self._reset(remove_uploads=True)

    def _reset(self, remove_uploads: bool) -> None:
        for entry in self.entries:
            if remove_uploads and entry.annotated_ref is not None:
                self._remove_blob(entry.annotated_ref)
            entry.annotated_ref = None
        self.active_key = None
        self.reason = ""
        self.step = RejectionStep.SELECT

    def _remove_blob(self, ref: str) -> None:
        try:
            self.storage.remove(ref)
        except Exception as e:
            logger.warning("Could not remove annotated upload %s: %s", ref, e)
