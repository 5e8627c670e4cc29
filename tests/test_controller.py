import pytest

from signdesk.controllers import AnnotationController
from signdesk.core.annotations import PointerDevice, PointerEvent, Stroke, Tool
from signdesk.core.document import PageRasterSource
from signdesk.core.errors import CorruptDocumentError, ExportFailure, PageOutOfRange, RenderFailure
from signdesk.core.export import STATUS_EXPORTING


@pytest.fixture
def controller(qtbot, settings):
    controller = AnnotationController(settings=settings, use_threads=False)
    yield controller
    controller.close()


def _stroke(controller, start, end, device=PointerDevice.MOUSE):
    controller.pointer_down(PointerEvent(*start, device))
    controller.pointer_move(PointerEvent(*end, device))
    controller.pointer_up(PointerEvent(*end, device))


def test_open_loads_first_page(controller, pdf_bytes):
    opened, ready = [], []
    controller.document_opened.connect(opened.append)
    controller.page_ready.connect(lambda page, raster: ready.append((page, raster.width, raster.height)))

    controller.open_document(pdf_bytes)

    assert opened == [3]
    assert ready == [(1, 300, 450)]
    assert controller.current_page == 1
    assert (controller.live_scene.width, controller.live_scene.height) == (300, 450)


def test_corrupt_document_opens_no_session(controller):
    with pytest.raises(CorruptDocumentError):
        controller.open_document(b'%PDF-broken')
    assert not controller.is_open


def test_markup_survives_page_switch(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))
    assert controller.can_undo()

    controller.go_to_page(2)
    assert controller.live_scene.is_empty
    assert not controller.can_undo()

    controller.go_to_page(1)
    assert isinstance(controller.live_scene.objects[0], Stroke)


def test_out_of_range_navigation(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    with pytest.raises(PageOutOfRange):
        controller.go_to_page(9)
    assert controller.current_page == 1

    controller.previous_page()
    assert controller.current_page == 1
    controller.next_page()
    assert controller.current_page == 2


def test_pending_text_edit_lands_on_outgoing_page(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    controller.set_tool(Tool.TEXT)
    controller.pointer_down(PointerEvent(40, 40))
    controller.update_text("หน้าแรก")

    controller.go_to_page(2)
    controller.go_to_page(1)

    assert controller.live_scene.objects[0].text == "หน้าแรก"


def test_undo_signals(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    states = []
    controller.undo_available.connect(states.append)

    _stroke(controller, (10, 10), (60, 60))
    assert controller.undo()
    assert controller.live_scene.is_empty
    assert not controller.undo()
    assert states == [True, False, False]


def test_touch_does_not_draw(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60), PointerDevice.TOUCH)
    assert controller.live_scene.is_empty

    _stroke(controller, (10, 10), (60, 60), PointerDevice.PEN)
    assert len(controller.live_scene) == 1


def test_render_failure_falls_back_to_last_good_page(controller, pdf_bytes, monkeypatch):
    render_page = PageRasterSource.render_page

    def flaky(source, page_number):
        if page_number == 2:
            raise RenderFailure("bad page", page_number)
        return render_page(source, page_number)

    monkeypatch.setattr(PageRasterSource, 'render_page', flaky)
    failures = []
    controller.render_failed.connect(lambda page, message: failures.append(page))

    controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))
    controller.go_to_page(2)

    assert failures == [2]
    assert controller.current_page == 1
    assert controller.failed_page == 2
    assert len(controller.live_scene) == 1

    monkeypatch.setattr(PageRasterSource, 'render_page', render_page)
    controller.retry()
    assert controller.current_page == 2
    assert controller.failed_page is None


def test_export_without_markup_returns_source(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    results = []
    controller.export_finished.connect(results.append)

    controller.export()
    assert results == [pdf_bytes]


def test_export_with_markup(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))
    results, progress = [], []
    controller.export_finished.connect(results.append)
    controller.export_progress.connect(lambda done, total: progress.append((done, total)))

    controller.export()

    assert len(results) == 1 and results[0] != pdf_bytes
    assert progress[-1] == (1, 1)
    # Markup is still editable after export
    assert len(controller.live_scene) == 1


def test_export_failure_keeps_markup_and_saves_draft(controller, pdf_bytes, monkeypatch):
    def broken(*args, **kwargs):
        raise ExportFailure("disk full")

    monkeypatch.setattr(controller.exporter, 'export_scenes', broken)
    errors = []
    controller.export_failed.connect(errors.append)

    controller.open_document(pdf_bytes, document_ref='memo.pdf')
    _stroke(controller, (10, 10), (60, 60))
    controller.export()

    assert errors == ["disk full"]
    assert len(controller.live_scene) == 1
    assert controller.persistence.has_draft('memo.pdf')

    # A new session on the same document picks the draft up
    controller.open_document(pdf_bytes, document_ref='memo.pdf')
    assert len(controller.live_scene) == 1


def test_successful_export_clears_draft(controller, pdf_bytes):
    controller.open_document(pdf_bytes, document_ref='memo.pdf')
    _stroke(controller, (10, 10), (60, 60))
    controller.persistence.save_draft('memo.pdf', controller.store)

    controller.export()
    assert not controller.persistence.has_draft('memo.pdf')


def test_threaded_render_discards_superseded_page(qtbot, settings, pdf_bytes):
    controller = AnnotationController(settings=settings)
    with qtbot.waitSignal(controller.page_ready, timeout=5000):
        controller.open_document(pdf_bytes)

    pages = []
    controller.page_ready.connect(lambda page, raster: pages.append(page))
    with qtbot.waitSignal(controller.page_ready, timeout=5000,
                          check_params_cb=lambda page, raster: page == 3):
        controller.go_to_page(2)
        controller.go_to_page(3)
    qtbot.wait(100)

    assert pages == [3]
    assert controller.current_page == 3
    controller.close()


def test_threaded_export(qtbot, settings, pdf_bytes):
    controller = AnnotationController(settings=settings)
    with qtbot.waitSignal(controller.page_ready, timeout=5000):
        controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))

    with qtbot.waitSignal(controller.export_finished, timeout=10000) as blocker:
        controller.export()

    assert blocker.args[0].startswith(b'%PDF')
    controller.close()


def test_close_cancels_export(qtbot, settings, pdf_bytes):
    controller = AnnotationController(settings=settings)
    with qtbot.waitSignal(controller.page_ready, timeout=5000):
        controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))

    with qtbot.assertNotEmitted(controller.export_finished, wait=300):
        controller.export()
        controller.close()


def test_threaded_retry_from_failure_handler(qtbot, settings, pdf_bytes, monkeypatch):
    render_page = PageRasterSource.render_page
    attempts = []

    def fails_once(source, page_number):
        if page_number == 2 and not attempts:
            attempts.append(page_number)
            raise RenderFailure("bad page", page_number)
        return render_page(source, page_number)

    monkeypatch.setattr(PageRasterSource, 'render_page', fails_once)
    controller = AnnotationController(settings=settings)
    with qtbot.waitSignal(controller.page_ready, timeout=5000):
        controller.open_document(pdf_bytes)

    controller.render_failed.connect(lambda page, message: controller.retry())
    with qtbot.waitSignal(controller.page_ready, timeout=5000,
                          check_params_cb=lambda page, raster: page == 2):
        controller.go_to_page(2)
    qtbot.wait(100)

    assert attempts == [2]
    assert controller.current_page == 2
    assert controller.failed_page is None
    controller.close()


def test_export_reports_status(controller, pdf_bytes):
    controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))
    messages = []
    controller.export_status.connect(messages.append)

    controller.export()
    assert messages == [STATUS_EXPORTING]


def test_threaded_export_reports_status(qtbot, settings, pdf_bytes):
    controller = AnnotationController(settings=settings)
    with qtbot.waitSignal(controller.page_ready, timeout=5000):
        controller.open_document(pdf_bytes)
    _stroke(controller, (10, 10), (60, 60))

    with qtbot.waitSignals([controller.export_status, controller.export_finished], timeout=10000):
        controller.export()
    controller.close()
