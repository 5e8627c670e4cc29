import logging
from typing import List

from PyQt5.QtCore import QThread, pyqtSignal

from signdesk.core.annotations.models import AnnotationScene
from signdesk.core.document.pdf_exporter import AnnotationExporter, ExportCancelled
from signdesk.core.errors import SignDeskError

logger = logging.getLogger(__name__)

STATUS_EXPORTING = "Exporting annotations..."


class ExportWorker(QThread):
    """Worker thread for flattening markup into the PDF without freezing the UI."""

    # Signals
    exported = pyqtSignal(int, object)  # token, output bytes
    failed = pyqtSignal(int, str)  # token, message
    progress = pyqtSignal(str)  # status message
    page_progress = pyqtSignal(int, int)  # current, total pages

    def __init__(self, source: bytes, scenes: List[AnnotationScene], token: int,
                 exporter: AnnotationExporter = None, parent=None):
        super().__init__(parent)
        self.source = source
        self.scenes = scenes
        self.token = token
        self.exporter = exporter or AnnotationExporter()
        self._cancelled = False

    def cancel(self):
        """Stop between pages and suppress any result."""
        self._cancelled = True

    def run(self):
        """Execute the export in a background thread."""
        self.progress.emit(STATUS_EXPORTING)
        try:
            output = self.exporter.export_scenes(
                self.source,
                self.scenes,
                progress=self._on_page_progress,
                is_cancelled=lambda: self._cancelled,
            )
        except ExportCancelled:
            logger.info("Export cancelled")
            return
        except SignDeskError as e:
            if not self._cancelled:
                self.failed.emit(self.token, str(e))
            return

        if not self._cancelled:
            self.exported.emit(self.token, output)

    def _on_page_progress(self, current, total):
        """Handle page-level progress updates."""
        self.page_progress.emit(current, total)
