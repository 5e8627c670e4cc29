"""
Handles persistence of unsaved markup drafts to/from JSON files.
"""
import hashlib
import logging
from pathlib import Path
from typing import Dict, Optional

from signdesk.config import Settings, get_settings
from signdesk.utils.storage import read_json, write_json_atomic

from .store import AnnotationStore

logger = logging.getLogger(__name__)

DRAFT_SCHEMA_VERSION = 1


class AnnotationPersistence:
    """Saves an AnnotationStore's pages so a failed export survives a restart."""

    def __init__(self, drafts_dir: Optional[Path] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.drafts_dir = drafts_dir or settings.data_dir / 'drafts'

    def get_json_path(self, document_ref: str) -> Path:
        """
        Get the JSON file path for a given source document.

        Args:
            document_ref: Blob reference or path of the source PDF

        Returns:
            Path to the corresponding draft file
        """
        ref_hash = hashlib.md5(document_ref.encode('utf-8')).hexdigest()
        return self.drafts_dir / f"{ref_hash}.json"

    def save_draft(self, document_ref: str, store: AnnotationStore) -> Path:
        """
        Write every stored page of ``store`` to the draft file.

        Raises:
            OSError: If the file cannot be written
        """
        path = self.get_json_path(document_ref)
        data = {
            'version': DRAFT_SCHEMA_VERSION,
            'document_ref': document_ref,
            'total_pages': store.total_pages,
            'pages': {str(page): payload for page, payload in store.snapshots().items()},
        }

        write_json_atomic(path, data)
        logger.info("Saved markup draft for %s (%d pages)", document_ref, len(data['pages']))
        return path

    def load_draft(self, document_ref: str) -> Dict[int, str]:
        """
        Load page snapshots saved for ``document_ref``.

        Returns:
            Mapping of page number to scene snapshot; empty if no usable draft
        """
        path = self.get_json_path(document_ref)
        if not path.exists():
            return {}

        try:
            data = read_json(path)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable draft %s: %s", path, e)
            return {}

        if data.get('version') != DRAFT_SCHEMA_VERSION:
            logger.warning("Ignoring draft %s with version %r", path, data.get('version'))
            return {}
        if data.get('document_ref') != document_ref:
            logger.warning("Draft %s belongs to a different document: %s", path, data.get('document_ref'))
            return {}

        return {int(page): payload for page, payload in data.get('pages', {}).items()}

    def delete_draft(self, document_ref: str) -> None:
        path = self.get_json_path(document_ref)
        if path.exists():
            path.unlink()

    def has_draft(self, document_ref: str) -> bool:
        return self.get_json_path(document_ref).exists()
