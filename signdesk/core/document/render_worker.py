"""
Background worker for page rasterization.
"""
from PyQt5.QtCore import QThread, pyqtSignal

from signdesk.core.errors import SignDeskError

from .pdf_reader import PageRasterSource


class RenderWorker(QThread):
    """Renders one page off the UI thread. Results carry the switch token that asked for them."""

    # Signals
    rendered = pyqtSignal(int, object)  # token, PageRaster
    failed = pyqtSignal(int, int, str)  # token, page_number, message

    def __init__(self, source: PageRasterSource, page_number: int, token: int, parent=None):
        super().__init__(parent)
        self._source = source
        self.page_number = page_number
        self.token = token
        self._cancelled = False

    def cancel(self):
        """Drop the result of this render."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def run(self):
        try:
            raster = self._source.render_page(self.page_number)
        except SignDeskError as e:
            if not self._cancelled:
                self.failed.emit(self.token, self.page_number, str(e))
            return

        if not self._cancelled:
            self.rendered.emit(self.token, raster)
