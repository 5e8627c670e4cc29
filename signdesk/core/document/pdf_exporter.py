import logging
from typing import Callable, Iterable, Optional

import fitz  # PyMuPDF

from signdesk.core.annotations.models import AnnotationScene
from signdesk.core.annotations.store import AnnotationStore
from signdesk.core.errors import ExportFailure

from .rasterizer import SceneRasterizer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ExportCancelled(Exception):
    """Raised inside an export when the caller asked it to stop."""


class AnnotationExporter:
    """Flattens page markup into a copy of the source PDF."""

    def __init__(self, rasterizer: Optional[SceneRasterizer] = None):
        self.rasterizer = rasterizer or SceneRasterizer()

    def export(self, source: bytes, store: AnnotationStore,
               progress: Optional[ProgressCallback] = None) -> bytes:
        """
        Produce the annotated document for every page stored in ``store``.

        Args:
            source: Source PDF bytes
            store: Store holding the session's page scenes
            progress: Optional ``(done, total)`` callback

        Returns:
            New PDF bytes, or ``source`` itself when no page carries markup

        Raises:
            ExportFailure: If the document cannot be opened, overlaid or saved
        """
        return self.export_scenes(source, store.scenes_with_markup(), progress)

    def export_scenes(self, source: bytes, scenes: Iterable[AnnotationScene],
                      progress: Optional[ProgressCallback] = None,
                      is_cancelled: Optional[Callable[[], bool]] = None) -> bytes:
        """
        Overlay each non-empty scene on its page as a full-page transparent image.

        Raises:
            ExportFailure: On any PDF or raster error
            ExportCancelled: If ``is_cancelled`` returns True between pages
        """
        marked = [scene for scene in scenes if not scene.is_empty]
        if not marked:
            logger.info("No markup to export; returning the source document")
            return source

        try:
            doc = fitz.open(stream=source, filetype="pdf")
        except Exception as e:
            raise ExportFailure(f"Cannot open source document: {e}") from e

        try:
            total = len(marked)
            for done, scene in enumerate(marked):
                if is_cancelled is not None and is_cancelled():
                    raise ExportCancelled()
                if progress is not None:
                    progress(done, total)

                if not 1 <= scene.page_number <= doc.page_count:
                    raise ExportFailure(
                        f"Markup refers to page {scene.page_number} of a {doc.page_count}-page document"
                    )
                self._overlay_page(doc.load_page(scene.page_number - 1), scene)

            if progress is not None:
                progress(total, total)

            output = doc.tobytes(garbage=4, deflate=True)
        except (ExportFailure, ExportCancelled):
            raise
        except Exception as e:
            logger.error("Failed to export annotations to PDF: %s", e)
            raise ExportFailure(f"Failed to export annotations to PDF: {e}") from e
        finally:
            doc.close()

        logger.info("Exported %d annotated page(s)", len(marked))
        return output

    def _overlay_page(self, page: fitz.Page, scene: AnnotationScene) -> None:
        """Place the scene raster over the page at full page size, preserving content below."""
        png = self.rasterizer.render_png(scene)
        page.insert_image(page.rect, stream=png, overlay=True, keep_proportion=False)
