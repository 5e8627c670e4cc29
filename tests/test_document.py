import fitz  # PyMuPDF
import pytest
from PyQt5.QtGui import QImage

from signdesk.core.annotations import AnnotationScene, AnnotationStore, Circle, Stroke, TextBox
from signdesk.core.document import (
    AnnotationExporter,
    ExportCancelled,
    PageRasterSource,
    SceneRasterizer,
)
from signdesk.core.errors import CorruptDocumentError, ExportFailure, PageOutOfRange

from conftest import make_pdf


def test_page_raster_uses_render_scale(pdf_bytes, settings):
    source = PageRasterSource(pdf_bytes, settings=settings)

    assert source.page_count == 3
    assert source.page_size(1) == (300, 450)

    raster = source.render_page(2)
    assert raster.page_number == 2
    assert (raster.width, raster.height) == (300, 450)
    assert raster.scale == 1.5
    assert len(raster.samples) == raster.stride * raster.height
    source.close()


def test_page_raster_to_qimage(qapp, pdf_bytes, settings):
    source = PageRasterSource(pdf_bytes, scale=1.0, settings=settings)
    image = source.render_page(1).to_qimage()

    assert isinstance(image, QImage)
    assert (image.width(), image.height()) == (200, 300)
    source.close()


def test_out_of_range_page(pdf_bytes, settings):
    source = PageRasterSource(pdf_bytes, settings=settings)
    with pytest.raises(PageOutOfRange):
        source.render_page(4)
    with pytest.raises(PageOutOfRange):
        source.page_size(0)
    source.close()


def test_corrupt_document_is_fatal(settings):
    with pytest.raises(CorruptDocumentError):
        PageRasterSource(b'this is not a pdf', settings=settings)


def test_rasterizer_draws_on_transparent_surface(qapp):
    scene = AnnotationScene(1, 100, 80, [
        Stroke([(10.0, 40.0), (90.0, 40.0)], (255, 0, 0), 6.0),
    ])
    image = SceneRasterizer().render_image(scene)

    assert (image.width(), image.height()) == (100, 80)
    assert image.pixelColor(5, 5).alpha() == 0
    drawn = image.pixelColor(50, 40)
    assert drawn.alpha() == 255
    assert drawn.red() == 255


def test_rasterizer_png(qapp):
    scene = AnnotationScene(1, 50, 50, [Circle(25, 25, 10), TextBox(2, 2, "hi", font_size=10)])
    png = SceneRasterizer().render_png(scene)
    assert png.startswith(b'\x89PNG')


def test_export_without_markup_returns_source(qapp, pdf_bytes):
    store = AnnotationStore(total_pages=3)
    store.switch_to(1, 300, 450)
    store.switch_to(2, 300, 450)

    output = AnnotationExporter().export(pdf_bytes, store)
    assert output is pdf_bytes


def test_export_overlays_annotated_pages_only(qapp, pdf_bytes):
    store = AnnotationStore(total_pages=3)
    store.switch_to(2, 300, 450)
    store.live_scene.add(Stroke([(10.0, 10.0), (200.0, 300.0)], (0, 0, 255), 8.0))
    store.record()

    progress = []
    output = AnnotationExporter().export(pdf_bytes, store, progress=lambda done, total: progress.append((done, total)))

    assert output != pdf_bytes
    assert progress == [(0, 1), (1, 1)]

    doc = fitz.open(stream=output, filetype="pdf")
    assert doc.page_count == 3
    assert doc.load_page(0).get_images() == []
    assert len(doc.load_page(1).get_images()) == 1
    assert doc.load_page(2).get_images() == []
    # Page text is still there under the overlay
    assert "Page 2" in doc.load_page(1).get_text()
    doc.close()


def test_export_rejects_unreadable_source(qapp):
    scene = AnnotationScene(1, 10, 10, [Stroke([(1.0, 1.0), (5.0, 5.0)])])
    with pytest.raises(ExportFailure):
        AnnotationExporter().export_scenes(b'garbage', [scene])


def test_export_rejects_page_beyond_document(qapp):
    scene = AnnotationScene(5, 10, 10, [Stroke([(1.0, 1.0), (5.0, 5.0)])])
    with pytest.raises(ExportFailure):
        AnnotationExporter().export_scenes(make_pdf(pages=1), [scene])


def test_export_can_be_cancelled(qapp, pdf_bytes):
    scene = AnnotationScene(1, 300, 450, [Stroke([(1.0, 1.0), (5.0, 5.0)])])
    with pytest.raises(ExportCancelled):
        AnnotationExporter().export_scenes(pdf_bytes, [scene], is_cancelled=lambda: True)
