"""
Sequential approval state machine.

draft -> pending_sign -> approved (in progress) ... -> completed
pending_sign | approved -> rejected -> draft (resubmission)
"""
import copy
import logging
from typing import Callable, Optional, Sequence

from signdesk.core.errors import InputError, InvalidTransition, OutOfTurn
from signdesk.core.signatures.models import Signer, validate_signer_orders

from .collaborators import IdentityProvider, Notifier, WorkflowRepository
from .models import (
    ACTIONABLE_STATUSES,
    Decision,
    DocumentStatus,
    RejectionBundle,
    SignatureRecord,
    WorkflowDocument,
)

logger = logging.getLogger(__name__)


class ApprovalStateMachine:
    """
    Drives one document through its ordered signer chain.

    Every transition is computed on a copy, persisted through the
    repository, and only then applied; a repository failure leaves the
    in-memory record untouched.
    """

    def __init__(self, document: WorkflowDocument, repository: WorkflowRepository,
                 notifier: Optional[Notifier] = None,
                 identity: Optional[IdentityProvider] = None):
        self.document = document
        self.repository = repository
        self.notifier = notifier
        self.identity = identity

    @property
    def status(self) -> DocumentStatus:
        return self.document.status

    @property
    def current_signer_order(self) -> Optional[int]:
        return self.document.current_signer_order

    def display_status(self) -> str:
        """Status as shown to observers: an approval short of the last signer is in progress."""
        if self.document.status is DocumentStatus.APPROVED:
            return "in_progress"
        return self.document.status.value

    def next_signer_order(self, after: int) -> Optional[int]:
        for order in self.document.orders:
            if order > after:
                return order
        return None

    # ------------------------------------------------------------------
    # Draft phase
    # ------------------------------------------------------------------

    def set_signers(self, signers: Sequence[Signer]) -> WorkflowDocument:
        """
        Replace the signer chain. Only allowed while drafting.

        Raises:
            InvalidTransition: Outside draft
            InputError: On duplicate or non-positive orders
        """
        self._require_status(DocumentStatus.DRAFT, "change signers")
        validate_signer_orders(signers)
        return self._commit(lambda doc: setattr(doc, 'signers', sorted(signers, key=lambda s: s.order)))

    def assign_number(self, doc_number: str) -> WorkflowDocument:
        """
        Give the draft its document number. Re-assigning is a no-op.

        Raises:
            InvalidTransition: Outside draft
            InputError: Empty number
        """
        self._require_status(DocumentStatus.DRAFT, "assign a number")
        if not doc_number or not doc_number.strip():
            raise InputError("Document number is required")
        if self.document.doc_number:
            logger.debug("Document %s already numbered %s", self.document.document_id, self.document.doc_number)
            return self.document

        return self._commit(lambda doc: setattr(doc, 'doc_number', doc_number.strip()))

    def submit(self) -> WorkflowDocument:
        """
        Send the draft to its first signer.

        Raises:
            InvalidTransition: Not a draft, no signers, or no document number
        """
        self._require_status(DocumentStatus.DRAFT, "submit")
        if not self.document.signers:
            raise InvalidTransition("A document without signers cannot leave draft")
        if not self.document.doc_number:
            raise InvalidTransition("Assign a document number before submitting")

        def apply(doc: WorkflowDocument):
            doc.status = DocumentStatus.PENDING_SIGN
            doc.current_signer_order = doc.orders[0]

        document = self._commit(apply)
        self._notify_current_signer()
        return document

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def act(self, signer_order: int, decision: Decision, comment: str = "",
            bundle: Optional[RejectionBundle] = None) -> WorkflowDocument:
        """
        Apply a signer's decision.

        Args:
            signer_order: Order of the acting signer
            decision: Approve or reject
            comment: Signer's comment; the rejection reason when no bundle is given
            bundle: Rejection bundle carrying annotated artifacts

        Raises:
            InvalidTransition: Document is not awaiting a signature
            OutOfTurn: ``signer_order`` does not hold the turn
            InputError: Rejection without a reason
        """
        doc = self.document
        if doc.status not in ACTIONABLE_STATUSES:
            raise InvalidTransition(f"Document is {doc.status.value}; no signer may act")
        if signer_order != doc.current_signer_order:
            logger.warning(
                "Out-of-turn action on %s: signer %s tried to act, current signer is %s",
                doc.document_id, signer_order, doc.current_signer_order,
            )
            raise OutOfTurn(signer_order, doc.current_signer_order)

        signer = doc.signer(signer_order)
        actor_id = self._actor_id(signer)

        if decision is Decision.APPROVE:
            return self._approve(signer_order, actor_id, comment)

        if bundle is None:
            bundle = RejectionBundle(reason=comment, rejected_by=actor_id)
        elif bundle.rejected_by is None:
            bundle.rejected_by = actor_id
        return self._reject(signer_order, actor_id, comment or bundle.reason, bundle)

    def approve(self, signer_order: int, comment: str = "") -> WorkflowDocument:
        return self.act(signer_order, Decision.APPROVE, comment)

    def reject(self, signer_order: int, bundle: RejectionBundle) -> WorkflowDocument:
        return self.act(signer_order, Decision.REJECT, bundle.reason, bundle)

    def _approve(self, signer_order: int, actor_id: str, comment: str) -> WorkflowDocument:
        next_order = self.next_signer_order(signer_order)

        def apply(doc: WorkflowDocument):
            doc.signatures.append(SignatureRecord(signer_order, actor_id, Decision.APPROVE, comment))
            if next_order is None:
                doc.status = DocumentStatus.COMPLETED
                doc.current_signer_order = None
            else:
                doc.status = DocumentStatus.APPROVED
                doc.current_signer_order = next_order

        document = self._commit(apply)
        if next_order is None:
            logger.info("Document %s completed", document.document_id)
            self._send(document.author_id, "completed", f"Document {document.doc_number} has been fully signed")
        else:
            self._notify_current_signer()
        return document

    def _reject(self, signer_order: int, actor_id: str, comment: str,
                bundle: RejectionBundle) -> WorkflowDocument:
        def apply(doc: WorkflowDocument):
            doc.signatures.append(SignatureRecord(signer_order, actor_id, Decision.REJECT, comment))
            doc.status = DocumentStatus.REJECTED
            doc.current_signer_order = None
            doc.rejection = bundle
            doc.revision_count += 1

        document = self._commit(apply)
        logger.info("Document %s rejected by signer %d", document.document_id, signer_order)
        self._send(document.author_id, "rejected", f"Document {document.doc_number} was rejected: {bundle.reason}")
        return document

    # ------------------------------------------------------------------
    # Resubmission
    # ------------------------------------------------------------------

    def resubmit(self) -> WorkflowDocument:
        """
        Return a rejected document to draft for another round.

        Clears the rejection bundle and the document number and resets the
        turn to order 1.

        Raises:
            InvalidTransition: Document is not rejected
        """
        self._require_status(DocumentStatus.REJECTED, "resubmit")

        def apply(doc: WorkflowDocument):
            doc.status = DocumentStatus.DRAFT
            doc.current_signer_order = 1
            doc.rejection = None
            doc.doc_number = None
            doc.signatures = []

        return self._commit(apply)

    # ------------------------------------------------------------------

    def _require_status(self, status: DocumentStatus, action: str) -> None:
        if self.document.status is not status:
            raise InvalidTransition(
                f"Cannot {action} while document is {self.document.status.value}"
            )

    def _actor_id(self, signer: Optional[Signer]) -> str:
        if self.identity is not None:
            return self.identity.current_user().id
        return signer.user_id if signer else ""

    def _commit(self, apply: Callable[[WorkflowDocument], None]) -> WorkflowDocument:
        candidate = copy.deepcopy(self.document)
        apply(candidate)
        # StorageFailure propagates with the in-memory record unchanged
        self.repository.update_document_status(candidate.document_id, candidate.to_dict())
        self.document = candidate
        return candidate

    def _notify_current_signer(self) -> None:
        signer = self.document.signer(self.document.current_signer_order)
        if signer is not None:
            self._send(signer.user_id, "sign_request",
                       f"Document {self.document.doc_number} is waiting for your signature")

    def _send(self, user_id: Optional[str], kind: str, message: str) -> None:
        if self.notifier is None or not user_id:
            return
        try:
            self.notifier.notify(user_id, kind, message)
        except Exception as e:
            logger.warning("Notification %s to %s failed: %s", kind, user_id, e)
