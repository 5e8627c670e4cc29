"""
Markup editor window: page canvas, tool bar and save flow.
"""
import logging
from pathlib import Path
from typing import Optional

from PyQt5.QtCore import QEvent, QPoint, Qt
from PyQt5.QtGui import QColor, QImage, QPainter
from PyQt5.QtWidgets import (
    QAction, QActionGroup, QColorDialog, QFileDialog, QInputDialog,
    QLabel, QMainWindow, QMessageBox, QScrollArea, QToolBar, QWidget
)

from signdesk.config import Settings, get_settings
from signdesk.controllers import AnnotationController, UserInputHandler
from signdesk.core.annotations import Tool
from signdesk.core.annotations.models import color_to_hex
from signdesk.core.document import PageRaster, SceneRasterizer
from signdesk.core.errors import CorruptDocumentError

logger = logging.getLogger(__name__)

TOOL_LABELS = [
    (Tool.PAN, "Pan"),
    (Tool.PEN, "Pen"),
    (Tool.HIGHLIGHTER, "Highlighter"),
    (Tool.TEXT, "Text"),
    (Tool.CIRCLE, "Circle"),
    (Tool.ARROW, "Arrow"),
    (Tool.ERASER, "Eraser"),
]


def annotated_output_path(source_path) -> Path:
    """``report.pdf`` -> ``report_annotated.pdf`` beside the source."""
    path = Path(source_path)
    return path.with_name(f"{path.stem}_annotated{path.suffix or '.pdf'}")


class PageCanvas(QWidget):
    """Paints the page raster and its live scene and forwards input."""

    def __init__(self, editor: "AnnotationEditor", parent=None):
        super().__init__(parent)
        self.editor = editor
        self.image: Optional[QImage] = None
        self.rasterizer = SceneRasterizer()
        self._pan_origin: Optional[QPoint] = None

        self.setAttribute(Qt.WA_AcceptTouchEvents)
        self.setMouseTracking(False)

    def set_page(self, raster: PageRaster):
        self.image = raster.to_qimage()
        zoom = self.editor.zoom
        self.setFixedSize(int(raster.width * zoom), int(raster.height * zoom))
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#808080"))
        if self.image is not None:
            zoom = self.editor.zoom
            painter.save()
            painter.scale(zoom, zoom)
            painter.drawImage(0, 0, self.image)
            painter.restore()

            scene = self.editor.controller.live_scene
            if scene is not None:
                self.rasterizer.paint(painter, scene, zoom)
        painter.end()

    # Mouse

    def mousePressEvent(self, event):
        if not self.editor.input_handler.handle_mouse_press(event):
            self._begin_pan(event.globalPos())
        self.editor.after_pointer_down()

    def mouseMoveEvent(self, event):
        if self._pan_origin is not None:
            self._pan_to(event.globalPos())
        else:
            self.editor.input_handler.handle_mouse_move(event)

    def mouseReleaseEvent(self, event):
        self.editor.input_handler.handle_mouse_release(event)
        self._pan_origin = None

    # Stylus and touch

    def tabletEvent(self, event):
        self.editor.input_handler.handle_tablet(event)
        if event.type() == QEvent.TabletPress:
            self.editor.after_pointer_down()
        event.accept()

    def event(self, event):
        if event.type() in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd, QEvent.TouchCancel):
            handled = self.editor.input_handler.handle_touch(event)
            points = event.touchPoints()
            if not handled and points:
                if event.type() == QEvent.TouchBegin:
                    self._begin_pan(points[0].screenPos().toPoint())
                elif event.type() == QEvent.TouchUpdate and self._pan_origin is not None:
                    self._pan_to(points[0].screenPos().toPoint())
            if event.type() in (QEvent.TouchEnd, QEvent.TouchCancel):
                self._pan_origin = None
            elif event.type() == QEvent.TouchBegin:
                self.editor.after_pointer_down()
            event.accept()
            return True
        return super().event(event)

    def _begin_pan(self, global_pos: QPoint):
        if self.editor.controller.tools.is_scrolling:
            self._pan_origin = global_pos

    def _pan_to(self, global_pos: QPoint):
        delta = global_pos - self._pan_origin
        self._pan_origin = global_pos
        area = self.editor.scroll_area
        area.horizontalScrollBar().setValue(area.horizontalScrollBar().value() - delta.x())
        area.verticalScrollBar().setValue(area.verticalScrollBar().value() - delta.y())


class AnnotationEditor(QMainWindow):
    """Standalone editor: open a PDF, mark it up, save ``<name>_annotated.pdf``."""

    def __init__(self, file_path: Optional[str] = None, settings: Optional[Settings] = None,
                 controller: Optional[AnnotationController] = None):
        super().__init__()
        self.settings = settings or get_settings()
        self.controller = controller or AnnotationController(settings=self.settings, parent=self)
        self.input_handler = UserInputHandler(self)
        self.zoom = 1.0
        self.file_path: Optional[Path] = None

        self.setWindowTitle(self.settings.app_name)
        self._setup_ui()
        self._connect_signals()

        if file_path:
            self.load_file(file_path)

    def _setup_ui(self):
        self.canvas = PageCanvas(self)
        self.scroll_area = QScrollArea(self)
        self.scroll_area.setWidget(self.canvas)
        self.scroll_area.setAlignment(Qt.AlignCenter)
        self.setCentralWidget(self.scroll_area)

        toolbar = QToolBar("Tools", self)
        self.addToolBar(toolbar)

        open_action = QAction("Open", self)
        open_action.triggered.connect(self.open_file_dialog)
        toolbar.addAction(open_action)

        self.save_action = QAction("Save", self)
        self.save_action.triggered.connect(self.save)
        toolbar.addAction(self.save_action)
        toolbar.addSeparator()

        self.tool_group = QActionGroup(self)
        self.tool_group.setExclusive(True)
        self.tool_actions = {}
        for tool, label in TOOL_LABELS:
            action = QAction(label, self)
            action.setCheckable(True)
            action.triggered.connect(lambda checked, t=tool: self.set_tool(t))
            self.tool_group.addAction(action)
            toolbar.addAction(action)
            self.tool_actions[tool] = action
        self.tool_actions[self.controller.tools.tool].setChecked(True)

        color_action = QAction("Color", self)
        color_action.triggered.connect(self._choose_color)
        toolbar.addAction(color_action)
        toolbar.addSeparator()

        self.undo_action = QAction("Undo", self)
        self.undo_action.setEnabled(False)
        self.undo_action.triggered.connect(self.controller.undo)
        toolbar.addAction(self.undo_action)
        toolbar.addSeparator()

        prev_action = QAction("◀", self)
        prev_action.triggered.connect(self.controller.previous_page)
        toolbar.addAction(prev_action)
        self.page_label = QLabel(" - / - ", self)
        toolbar.addWidget(self.page_label)
        next_action = QAction("▶", self)
        next_action.triggered.connect(self.controller.next_page)
        toolbar.addAction(next_action)

    def _connect_signals(self):
        self.controller.page_loading.connect(self._on_page_loading)
        self.controller.page_ready.connect(self._on_page_ready)
        self.controller.scene_changed.connect(self.canvas.update)
        self.controller.undo_available.connect(self.undo_action.setEnabled)
        self.controller.render_failed.connect(self._on_render_failed)
        self.controller.export_status.connect(self.statusBar().showMessage)
        self.controller.export_progress.connect(self._on_export_progress)
        self.controller.export_finished.connect(self._on_export_finished)
        self.controller.export_failed.connect(self._on_export_failed)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def open_file_dialog(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open PDF", "", "PDF Files (*.pdf)")
        if path:
            self.load_file(path)

    def load_file(self, file_path) -> bool:
        path = Path(file_path)
        try:
            data = path.read_bytes()
            self.controller.open_document(data, document_ref=str(path.resolve()))
        except (OSError, CorruptDocumentError) as e:
            logger.error("Cannot open %s: %s", path, e)
            QMessageBox.critical(self, "Error", f"Could not open {path.name}:\n{e}")
            return False

        self.file_path = path
        self.setWindowTitle(f"{path.name} - {self.settings.app_name}")
        return True

    def save(self):
        if not self.controller.is_open:
            return
        self.controller.export()

    def _on_export_progress(self, current, total):
        self.statusBar().showMessage(f"Exporting page {current} of {total}...")

    def _on_export_finished(self, data: bytes):
        output = annotated_output_path(self.file_path)
        try:
            output.write_bytes(data)
        except OSError as e:
            self._on_export_failed(f"Could not write {output}: {e}")
            return
        self.statusBar().showMessage(f"Saved {output.name}", 5000)

    def _on_export_failed(self, message: str):
        self.statusBar().clearMessage()
        QMessageBox.warning(self, "Export Failed", f"{message}\n\nYour markup has been kept.")

    # ------------------------------------------------------------------
    # Pages and tools
    # ------------------------------------------------------------------

    def _on_page_loading(self, page_number: int):
        self.page_label.setText(f" {page_number} / {self.controller.total_pages} ")

    def _on_page_ready(self, page_number: int, raster: PageRaster):
        self.page_label.setText(f" {page_number} / {self.controller.total_pages} ")
        self.canvas.set_page(raster)

    def _on_render_failed(self, page_number: int, message: str):
        reply = QMessageBox.warning(
            self,
            "Render Failed",
            f"Page {page_number} could not be displayed:\n{message}",
            QMessageBox.Retry | QMessageBox.Close,
            QMessageBox.Retry,
        )
        if reply == QMessageBox.Retry:
            self.controller.retry()

    def set_tool(self, tool: Tool):
        self.controller.set_tool(tool)
        self.tool_actions[tool].setChecked(True)

    def _choose_color(self):
        initial = QColor(color_to_hex(self.controller.tools.color))
        color = QColorDialog.getColor(initial, self, "Choose Color")
        if color.isValid():
            tools = self.controller.tools
            self.controller.set_tool(tools.tool, (color.red(), color.green(), color.blue()))

    def after_pointer_down(self):
        """Open the text prompt for a freshly placed text box."""
        box = self.controller.tools.editing_text
        if box is None:
            return
        text, ok = QInputDialog.getMultiLineText(self, "Text", "Text:", box.text)
        if ok:
            self.controller.update_text(text)
        self.controller.finish_text_edit()
        self.canvas.update()

    def keyPressEvent(self, event):
        self.input_handler.handle_key_press(event)
        if not event.isAccepted():
            super().keyPressEvent(event)

    def closeEvent(self, event):
        self.controller.close()
        super().closeEvent(event)
