"""
Local implementations of the workflow's external collaborators.
"""
from .identity import StaticIdentity
from .json_repository import JsonWorkflowRepository
from .local_storage import LocalBlobStorage
from .notifier import LoggingNotifier

__all__ = [
    'StaticIdentity',
    'JsonWorkflowRepository',
    'LocalBlobStorage',
    'LoggingNotifier',
]
