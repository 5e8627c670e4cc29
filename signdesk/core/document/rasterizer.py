"""
Paints annotation scenes with QPainter.

The same painting code backs the on-screen editor and the transparent
overlays used for export.
"""
from PyQt5.QtCore import QBuffer, QByteArray, QIODevice, QPointF, QRectF, Qt
from PyQt5.QtGui import QColor, QFont, QImage, QPainter, QPainterPath, QPen

from signdesk.core.annotations.models import (
    AnnotationScene,
    Arrow,
    Circle,
    HighlightStroke,
    Stroke,
    TextBox,
)


def _pen(color: QColor, width: float) -> QPen:
    pen = QPen(color, width)
    pen.setCapStyle(Qt.RoundCap)
    pen.setJoinStyle(Qt.RoundJoin)
    return pen


class SceneRasterizer:
    """Renders AnnotationScene objects in page pixel space."""

    def render_image(self, scene: AnnotationScene) -> QImage:
        """Rasterize ``scene`` onto a transparent image sized to its page."""
        image = QImage(scene.width, scene.height, QImage.Format_ARGB32_Premultiplied)
        image.fill(Qt.transparent)

        painter = QPainter(image)
        try:
            self.paint(painter, scene)
        finally:
            painter.end()
        return image

    def render_png(self, scene: AnnotationScene) -> bytes:
        image = self.render_image(scene)
        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.WriteOnly)
        image.save(buffer, "PNG")
        buffer.close()
        return bytes(data)

    def paint(self, painter: QPainter, scene: AnnotationScene, zoom: float = 1.0) -> None:
        """Paint every object in scene order (later objects on top)."""
        painter.save()
        painter.setRenderHint(QPainter.Antialiasing)
        painter.scale(zoom, zoom)

        for obj in scene.objects:
            if isinstance(obj, HighlightStroke):
                self._paint_highlight(painter, obj)
            elif isinstance(obj, Stroke):
                self._paint_stroke(painter, obj)
            elif isinstance(obj, TextBox):
                self._paint_text(painter, obj)
            elif isinstance(obj, Circle):
                self._paint_circle(painter, obj)
            elif isinstance(obj, Arrow):
                self._paint_arrow(painter, obj)

        painter.restore()

    def _paint_path(self, painter: QPainter, stroke: Stroke, color: QColor) -> None:
        if not stroke.points:
            return

        painter.setPen(_pen(color, stroke.width))
        painter.setBrush(Qt.NoBrush)

        if len(stroke.points) == 1:
            painter.drawPoint(QPointF(*stroke.points[0]))
            return

        path = QPainterPath()
        path.moveTo(*stroke.points[0])
        for point in stroke.points[1:]:
            path.lineTo(*point)
        painter.drawPath(path)

    def _paint_stroke(self, painter: QPainter, stroke: Stroke) -> None:
        self._paint_path(painter, stroke, QColor(*stroke.color))

    def _paint_highlight(self, painter: QPainter, stroke: HighlightStroke) -> None:
        color = QColor(*stroke.color)
        color.setAlphaF(stroke.opacity)
        self._paint_path(painter, stroke, color)

    def _paint_text(self, painter: QPainter, box: TextBox) -> None:
        font = QFont()
        font.setPixelSize(max(1, int(round(box.font_size))))
        painter.setFont(font)
        painter.setPen(QColor(*box.color))

        rect = QRectF(box.x, box.y, box.width, box.height)
        painter.drawText(rect, int(Qt.AlignLeft | Qt.AlignTop | Qt.TextWordWrap), box.text)

    def _paint_circle(self, painter: QPainter, circle: Circle) -> None:
        painter.setPen(_pen(QColor(*circle.color), circle.stroke_width))
        painter.setBrush(Qt.NoBrush)
        painter.drawEllipse(QPointF(circle.center_x, circle.center_y), circle.radius_x, circle.radius_y)

    def _paint_arrow(self, painter: QPainter, arrow: Arrow) -> None:
        painter.setPen(_pen(QColor(*arrow.color), arrow.stroke_width))
        for start, end in arrow.segments:
            painter.drawLine(QPointF(*start), QPointF(*end))
