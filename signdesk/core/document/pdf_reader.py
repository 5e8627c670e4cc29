"""
PDF decoding and page rasterization.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import fitz  # PyMuPDF
from PyQt5.QtGui import QImage

from signdesk.config import Settings, get_settings
from signdesk.core.errors import CorruptDocumentError, PageOutOfRange, RenderFailure

logger = logging.getLogger(__name__)


@dataclass
class PageRaster:
    """RGB raster of one page at a given render scale."""
    page_number: int  # 1-based
    width: int
    height: int
    scale: float
    samples: bytes
    stride: int

    def to_qimage(self) -> QImage:
        """Build a QImage that owns a copy of the pixel data."""
        img = QImage(self.samples, self.width, self.height, self.stride, QImage.Format_RGB888)
        return img.copy()


class PageRasterSource:
    """
    Renders pages of an in-memory PDF to fixed-size rasters.

    Access to the underlying document is serialized so background render
    workers can share one source.
    """

    def __init__(self, data: bytes, scale: Optional[float] = None,
                 settings: Optional[Settings] = None):
        """
        Decode ``data`` as a PDF.

        Raises:
            CorruptDocumentError: If the bytes are not a readable PDF
        """
        settings = settings or get_settings()
        self.scale = scale if scale is not None else settings.render_scale
        self.data = data
        self._lock = threading.Lock()

        try:
            self.doc: Optional[fitz.Document] = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise CorruptDocumentError(f"Error loading PDF: {e}") from e

        if self.doc.needs_pass:
            self.close()
            raise CorruptDocumentError("PDF is password protected")
        if self.doc.page_count == 0:
            self.close()
            raise CorruptDocumentError("PDF has no pages")

    @property
    def page_count(self) -> int:
        return self.doc.page_count if self.doc else 0

    def _matrix(self) -> fitz.Matrix:
        return fitz.Matrix(self.scale, self.scale)

    def _check_page(self, page_number: int) -> None:
        if self.doc is None:
            raise RenderFailure("Document is closed", page_number)
        if not 1 <= page_number <= self.page_count:
            raise PageOutOfRange(page_number, self.page_count)

    def page_size(self, page_number: int) -> Tuple[int, int]:
        """
        Get the raster size of a page at the render scale.

        Args:
            page_number: 1-based page number

        Returns:
            Tuple of (width, height) in pixels
        """
        self._check_page(page_number)
        with self._lock:
            rect = self.doc.load_page(page_number - 1).rect
        irect = (rect * self._matrix()).irect
        return irect.width, irect.height

    def render_page(self, page_number: int) -> PageRaster:
        """
        Render a single page to an RGB raster.

        Raises:
            PageOutOfRange: If the page does not exist
            RenderFailure: If PyMuPDF fails to rasterize the page
        """
        self._check_page(page_number)

        try:
            with self._lock:
                page = self.doc.load_page(page_number - 1)
                pix = page.get_pixmap(matrix=self._matrix(), alpha=False)
        except Exception as e:
            logger.error("Error rendering page %d: %s", page_number, e)
            raise RenderFailure(f"Error rendering page {page_number}: {e}", page_number) from e

        return PageRaster(
            page_number=page_number,
            width=pix.width,
            height=pix.height,
            scale=self.scale,
            samples=bytes(pix.samples),
            stride=pix.stride,
        )

    def close(self) -> None:
        with self._lock:
            if self.doc is not None:
                self.doc.close()
                self.doc = None
