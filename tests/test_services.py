import logging

import pytest

from signdesk.core.errors import StorageFailure
from signdesk.core.signatures import Signer
from signdesk.core.workflow import UserRef, WorkflowDocument
from signdesk.services import JsonWorkflowRepository, LocalBlobStorage, LoggingNotifier, StaticIdentity


def test_blob_round_trip(settings):
    storage = LocalBlobStorage(settings=settings)
    ref = storage.store(b'%PDF-1.7', 'application/pdf')

    assert ref.startswith('file://')
    assert ref.endswith('.pdf')
    assert storage.fetch(ref) == b'%PDF-1.7'

    storage.remove(ref)
    with pytest.raises(StorageFailure):
        storage.fetch(ref)
    # Removing twice is harmless
    storage.remove(ref)


def test_blob_rejects_foreign_refs(tmp_path):
    storage = LocalBlobStorage(root=tmp_path)
    with pytest.raises(StorageFailure):
        storage.fetch('https://example.com/a.pdf')


def test_repository_round_trip(settings):
    repository = JsonWorkflowRepository(settings=settings)
    document = WorkflowDocument('doc-9', signers=[Signer(1, 'u1', 'หนึ่ง', 'director')], doc_number='ศธ 9')

    repository.update_document_status('doc-9', document.to_dict())

    assert repository.load_document('doc-9') == document
    assert repository.load_document('missing') is None
    assert 'หนึ่ง' in repository.path.read_text(encoding='utf-8')


def test_repository_reports_unreadable_file(tmp_path):
    path = tmp_path / 'workflow.json'
    path.write_text('{broken', encoding='utf-8')

    with pytest.raises(StorageFailure):
        JsonWorkflowRepository(path=path).load_document('doc')


def test_logging_notifier(caplog):
    with caplog.at_level(logging.INFO, logger='signdesk.services.notifier'):
        LoggingNotifier().notify('u1', 'sign_request', 'please sign')
    assert 'please sign' in caplog.text


def test_static_identity():
    user = UserRef('u1', 'One', 'clerk')
    assert StaticIdentity(user).current_user() is user
    assert StaticIdentity().current_user().id
