"""
Controller for a markup editing session over one PDF.
"""
import logging
from typing import List, Optional

from PyQt5.QtCore import QObject, QThread, pyqtSignal

from signdesk.config import Settings, get_settings
from signdesk.core.annotations import (
    AnnotationObject,
    AnnotationPersistence,
    AnnotationScene,
    AnnotationStore,
    PointerEvent,
    Tool,
    ToolController,
)
from signdesk.core.document import AnnotationExporter, PageRaster, PageRasterSource, RenderWorker
from signdesk.core.errors import ExportFailure, InputError, RenderFailure
from signdesk.core.export import STATUS_EXPORTING, ExportWorker

logger = logging.getLogger(__name__)


class AnnotationController(QObject):
    """
    Owns the page source, the annotation store and the active tool.

    Page renders and exports run on worker threads. Each carries a token;
    results whose token is no longer current are dropped, so a late render
    never lands on another page and a closed session never reports an
    export.
    """

    # Signals
    document_opened = pyqtSignal(int)  # total pages
    page_loading = pyqtSignal(int)  # page number
    page_ready = pyqtSignal(int, object)  # page number, PageRaster
    scene_changed = pyqtSignal()
    undo_available = pyqtSignal(bool)
    render_failed = pyqtSignal(int, str)  # page number, message
    export_status = pyqtSignal(str)  # status message
    export_progress = pyqtSignal(int, int)  # current, total pages
    export_finished = pyqtSignal(object)  # annotated PDF bytes
    export_failed = pyqtSignal(str)

    def __init__(self, settings: Optional[Settings] = None,
                 persistence: Optional[AnnotationPersistence] = None,
                 exporter: Optional[AnnotationExporter] = None,
                 use_threads: bool = True, parent=None):
        super().__init__(parent)
        self.settings = settings or get_settings()
        self.persistence = persistence or AnnotationPersistence(settings=self.settings)
        self.exporter = exporter or AnnotationExporter()
        self.use_threads = use_threads

        self.source: Optional[PageRasterSource] = None
        self.store: Optional[AnnotationStore] = None
        self.document_ref: Optional[str] = None
        self.tools = ToolController(
            on_object_added=self._on_scene_edited,
            on_object_removed=self._on_scene_edited,
            on_object_modified=self._on_scene_edited,
            settings=self.settings,
        )

        self.current_raster: Optional[PageRaster] = None
        self.last_good_page: Optional[int] = None
        self.failed_page: Optional[int] = None

        self._render_worker: Optional[RenderWorker] = None
        self._export_worker: Optional[ExportWorker] = None
        self._export_token = 0
        self._threads: List[QThread] = []

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.source is not None

    @property
    def live_scene(self) -> Optional[AnnotationScene]:
        return self.store.live_scene if self.store else None

    @property
    def current_page(self) -> Optional[int]:
        return self.store.live_page if self.store else None

    @property
    def total_pages(self) -> int:
        return self.source.page_count if self.source else 0

    def open_document(self, data: bytes, document_ref: Optional[str] = None,
                      restore_draft: bool = True) -> None:
        """
        Start a session on ``data`` and load its first page.

        Args:
            data: Source PDF bytes
            document_ref: Stable reference used to key saved drafts
            restore_draft: Replay a draft left by an earlier failed export

        Raises:
            CorruptDocumentError: The document cannot be decoded; no session is opened
        """
        self.close()

        source = PageRasterSource(data, settings=self.settings)
        self.source = source
        self.document_ref = document_ref
        self.store = AnnotationStore(source.page_count, self.settings.undo_limit)

        if restore_draft and document_ref and self.persistence.has_draft(document_ref):
            draft = self.persistence.load_draft(document_ref)
            valid = {p: payload for p, payload in draft.items() if 1 <= p <= source.page_count}
            self.store.load_snapshots(valid)
            logger.info("Restored markup draft for %s (%d pages)", document_ref, len(valid))

        logger.info("Opened document with %d pages", source.page_count)
        self.document_opened.emit(source.page_count)
        self.go_to_page(1)

    def close(self) -> None:
        """End the session. In-flight renders and exports are dropped."""
        if self.source is None:
            return

        self.tools.attach(None)
        self._export_token += 1
        for worker in list(self._threads):
            worker.cancel()
        for worker in list(self._threads):
            worker.wait()
        self._threads.clear()
        self._render_worker = None
        self._export_worker = None

        self.store.close()
        self.store = None
        self.source.close()
        self.source = None
        self.current_raster = None
        self.last_good_page = None
        self.failed_page = None

    # ------------------------------------------------------------------
    # Page navigation
    # ------------------------------------------------------------------

    def go_to_page(self, page_number: int) -> int:
        """
        Save the live page and load ``page_number``.

        Raises:
            PageOutOfRange: Nothing changes

        Returns:
            The switch token
        """
        if self.store is None:
            raise InputError("No document is open")
        self.store.validate_page(page_number)

        # Commits a pending text edit to the outgoing page
        self.tools.attach(None)
        if self._render_worker is not None:
            self._render_worker.cancel()

        token = self.store.begin_switch(page_number)
        self.page_loading.emit(page_number)

        if not self.use_threads:
            try:
                raster = self.source.render_page(page_number)
            except RenderFailure as e:
                self._on_render_failed(token, page_number, str(e))
            else:
                self._on_page_rendered(token, raster)
            return token

        worker = RenderWorker(self.source, page_number, token)
        worker.rendered.connect(self._on_page_rendered)
        worker.failed.connect(self._on_render_failed)
        self._start(worker)
        self._render_worker = worker
        return token

    def next_page(self) -> None:
        page = self.current_page or self.store.pending_page
        if page is not None and page < self.total_pages:
            self.go_to_page(page + 1)

    def previous_page(self) -> None:
        page = self.current_page or self.store.pending_page
        if page is not None and page > 1:
            self.go_to_page(page - 1)

    def retry(self) -> None:
        """Request the page whose render failed again."""
        if self.failed_page is not None:
            self.go_to_page(self.failed_page)

    def _on_page_rendered(self, token: int, raster: PageRaster) -> None:
        if self.store is None:
            return
        scene = self.store.complete_switch(token, raster.width, raster.height)
        if scene is None:
            return

        self.current_raster = raster
        self.last_good_page = raster.page_number
        if self.failed_page == raster.page_number:
            self.failed_page = None
        self.tools.attach(scene)

        self.page_ready.emit(raster.page_number, raster)
        self.scene_changed.emit()
        self.undo_available.emit(self.store.can_undo())

    def _on_render_failed(self, token: int, page_number: int, message: str) -> None:
        if self.store is None or not self.store.is_current(token):
            return

        logger.error("Render of page %d failed: %s", page_number, message)
        self.failed_page = page_number

        # Fall back before listeners run; a retry from a slot supersedes it
        if self.last_good_page is not None and self.last_good_page != page_number:
            self.go_to_page(self.last_good_page)
        self.render_failed.emit(page_number, message)

    # ------------------------------------------------------------------
    # Tools and input
    # ------------------------------------------------------------------

    def set_tool(self, tool: Tool, color=None, width: Optional[float] = None) -> None:
        self.tools.set_tool(tool, color, width)
        self.scene_changed.emit()

    def pointer_down(self, event: PointerEvent) -> bool:
        handled = self.tools.pointer_down(event)
        if handled:
            self.scene_changed.emit()
        return handled

    def pointer_move(self, event: PointerEvent) -> bool:
        handled = self.tools.pointer_move(event)
        if handled:
            self.scene_changed.emit()
        return handled

    def pointer_up(self, event: PointerEvent) -> bool:
        handled = self.tools.pointer_up(event)
        if handled:
            self.scene_changed.emit()
        return handled

    def update_text(self, text: str) -> None:
        self.tools.update_text(text)
        self.scene_changed.emit()

    def finish_text_edit(self) -> None:
        self.tools.finish_text_edit()

    def undo(self) -> bool:
        """
        Step the live page back one edit.

        Returns:
            True if an earlier state was restored
        """
        if self.store is None or self.store.live_scene is None:
            return False

        self.tools.finish_text_edit()
        restored = self.store.can_undo()
        scene = self.store.undo()
        self.tools.attach(scene)

        self.scene_changed.emit()
        self.undo_available.emit(self.store.can_undo())
        return restored

    def can_undo(self) -> bool:
        return self.store is not None and self.store.can_undo()

    def has_markup(self) -> bool:
        return self.store is not None and self.store.has_markup()

    def _on_scene_edited(self, obj: AnnotationObject) -> None:
        self.store.record()
        self.undo_available.emit(self.store.can_undo())

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self) -> int:
        """
        Flatten every annotated page into a copy of the source.

        Completion is reported through ``export_finished`` or
        ``export_failed``. The markup is kept either way.

        Returns:
            The export token
        """
        if self.source is None:
            raise ExportFailure("No document is open")

        self.tools.finish_text_edit()
        scenes = self.store.scenes_with_markup()

        if self._export_worker is not None:
            self._export_worker.cancel()
        self._export_token += 1
        token = self._export_token

        if not self.use_threads:
            self.export_status.emit(STATUS_EXPORTING)
            try:
                output = self.exporter.export_scenes(self.source.data, scenes, progress=self.export_progress.emit)
            except ExportFailure as e:
                self._on_export_failed(token, str(e))
            else:
                self._on_exported(token, output)
            return token

        worker = ExportWorker(self.source.data, scenes, token, exporter=self.exporter)
        worker.progress.connect(self.export_status)
        worker.page_progress.connect(self.export_progress)
        worker.exported.connect(self._on_exported)
        worker.failed.connect(self._on_export_failed)
        self._start(worker)
        self._export_worker = worker
        return token

    def _on_exported(self, token: int, output: bytes) -> None:
        if token != self._export_token or self.source is None:
            return
        self._export_worker = None

        if self.document_ref and self.persistence.has_draft(self.document_ref):
            self.persistence.delete_draft(self.document_ref)
        self.export_finished.emit(output)

    def _on_export_failed(self, token: int, message: str) -> None:
        if token != self._export_token or self.source is None:
            return
        self._export_worker = None

        logger.error("Export failed: %s", message)
        if self.document_ref:
            try:
                self.persistence.save_draft(self.document_ref, self.store)
            except OSError as e:
                logger.error("Could not save markup draft: %s", e)
        self.export_failed.emit(message)

    # ------------------------------------------------------------------

    def _start(self, worker) -> None:
        self._threads.append(worker)
        worker.finished.connect(lambda: self._forget(worker))
        worker.start()

    def _forget(self, worker) -> None:
        if worker in self._threads:
            self._threads.remove(worker)
        if worker is self._render_worker:
            self._render_worker = None
