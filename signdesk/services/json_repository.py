"""
Workflow records kept in a single JSON file.
"""
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from signdesk.config import Settings, get_settings
from signdesk.core.errors import StorageFailure
from signdesk.core.workflow.models import WorkflowDocument
from signdesk.utils.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class JsonWorkflowRepository:
    """
    Document id -> workflow record.

    Each update rewrites the file through a temp file and rename, so a
    record is either fully written or not at all.
    """

    def __init__(self, path: Optional[Path] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.path = Path(path) if path is not None else settings.data_dir / 'workflow.json'
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return read_json(self.path)
        except (OSError, ValueError) as e:
            raise StorageFailure(f"Cannot read workflow records: {e}") from e

    def update_document_status(self, document_id: str, update: Dict[str, Any]) -> None:
        with self._lock:
            records = self._read_all()
            records[document_id] = update
            try:
                write_json_atomic(self.path, records)
            except OSError as e:
                raise StorageFailure(f"Cannot write workflow record {document_id}: {e}") from e
        logger.debug("Stored workflow record %s (%s)", document_id, update.get('status'))

    def load_document(self, document_id: str) -> Optional[WorkflowDocument]:
        with self._lock:
            record = self._read_all().get(document_id)
        return WorkflowDocument.from_dict(record) if record is not None else None
