"""
Approval workflow: signer turns, rejection and resubmission.
"""
from .collaborators import BlobStorage, IdentityProvider, Notifier, UserRef, WorkflowRepository
from .models import (
    ACTIONABLE_STATUSES,
    Decision,
    DocumentStatus,
    RejectionBundle,
    SignatureRecord,
    WorkflowDocument,
)
from .rejection import ArtifactEntry, RejectionCoordinator, RejectionStep, is_page_described
from .state_machine import ApprovalStateMachine

__all__ = [
    'BlobStorage',
    'IdentityProvider',
    'Notifier',
    'UserRef',
    'WorkflowRepository',
    'ACTIONABLE_STATUSES',
    'Decision',
    'DocumentStatus',
    'RejectionBundle',
    'SignatureRecord',
    'WorkflowDocument',
    'ArtifactEntry',
    'RejectionCoordinator',
    'RejectionStep',
    'is_page_described',
    'ApprovalStateMachine',
]
