"""
Typed workflow records: document status, signatures and rejection bundles.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from signdesk.core.errors import InputError
from signdesk.core.signatures.models import Signer

WORKFLOW_SCHEMA_VERSION = 1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentStatus(Enum):
    DRAFT = "draft"
    PENDING_SIGN = "pending_sign"
    APPROVED = "approved"      # some signers have approved, more remain
    REJECTED = "rejected"
    COMPLETED = "completed"    # final signer approved


ACTIONABLE_STATUSES = (DocumentStatus.PENDING_SIGN, DocumentStatus.APPROVED)


class Decision(Enum):
    APPROVE = "approve"
    REJECT = "reject"


def _check_version(data: Dict[str, Any], kind: str) -> Dict[str, Any]:
    version = data.get('version', WORKFLOW_SCHEMA_VERSION)
    if version != WORKFLOW_SCHEMA_VERSION:
        raise ValueError(f"Unsupported {kind} version: {version}")
    return data


@dataclass
class RejectionBundle:
    """Reason plus the annotated artifacts attached to one reject action."""
    reason: str
    main_artifact_ref: Optional[str] = None
    attachment_refs: List[str] = field(default_factory=list)
    rejected_by: Optional[str] = None
    rejected_at: str = field(default_factory=_now)

    def __post_init__(self):
        if not self.reason or not self.reason.strip():
            raise InputError("A rejection reason is required")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': WORKFLOW_SCHEMA_VERSION,
            'reason': self.reason,
            'main_artifact_ref': self.main_artifact_ref,
            'attachment_refs': list(self.attachment_refs),
            'rejected_by': self.rejected_by,
            'rejected_at': self.rejected_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RejectionBundle":
        data = _check_version(data, 'rejection bundle')
        return cls(
            reason=data['reason'],
            main_artifact_ref=data.get('main_artifact_ref'),
            attachment_refs=list(data.get('attachment_refs', [])),
            rejected_by=data.get('rejected_by'),
            rejected_at=data.get('rejected_at') or _now(),
        )


@dataclass
class SignatureRecord:
    """One signer's recorded decision."""
    signer_order: int
    user_id: str
    decision: Decision
    comment: str = ""
    signed_at: str = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signer_order': self.signer_order,
            'user_id': self.user_id,
            'decision': self.decision.value,
            'comment': self.comment,
            'signed_at': self.signed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignatureRecord":
        return cls(
            signer_order=int(data['signer_order']),
            user_id=str(data['user_id']),
            decision=Decision(data['decision']),
            comment=data.get('comment', ''),
            signed_at=data.get('signed_at') or _now(),
        )


@dataclass
class WorkflowDocument:
    """
    A document's approval record.

    ``current_signer_order`` is None once the document is rejected or
    completed.
    """
    document_id: str
    signers: List[Signer] = field(default_factory=list)
    status: DocumentStatus = DocumentStatus.DRAFT
    current_signer_order: Optional[int] = 1
    doc_number: Optional[str] = None
    author_id: Optional[str] = None
    rejection: Optional[RejectionBundle] = None
    revision_count: int = 0
    signatures: List[SignatureRecord] = field(default_factory=list)

    def signer(self, order: int) -> Optional[Signer]:
        for signer in self.signers:
            if signer.order == order:
                return signer
        return None

    @property
    def orders(self) -> List[int]:
        return sorted({s.order for s in self.signers})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': WORKFLOW_SCHEMA_VERSION,
            'document_id': self.document_id,
            'signers': [s.to_dict() for s in self.signers],
            'status': self.status.value,
            'current_signer_order': self.current_signer_order,
            'doc_number': self.doc_number,
            'author_id': self.author_id,
            'rejection': self.rejection.to_dict() if self.rejection else None,
            'revision_count': self.revision_count,
            'signatures': [r.to_dict() for r in self.signatures],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowDocument":
        data = _check_version(data, 'workflow document')
        rejection = data.get('rejection')
        return cls(
            document_id=str(data['document_id']),
            signers=[Signer.from_dict(s) for s in data.get('signers', [])],
            status=DocumentStatus(data.get('status', DocumentStatus.DRAFT.value)),
            current_signer_order=data.get('current_signer_order'),
            doc_number=data.get('doc_number'),
            author_id=data.get('author_id'),
            rejection=RejectionBundle.from_dict(rejection) if rejection else None,
            revision_count=int(data.get('revision_count', 0)),
            signatures=[SignatureRecord.from_dict(r) for r in data.get('signatures', [])],
        )
