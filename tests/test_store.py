import pytest

from signdesk.core.annotations import (
    AnnotationScene,
    AnnotationStore,
    HighlightStroke,
    SessionState,
    Stroke,
    UndoHistory,
)
from signdesk.core.errors import PageOutOfRange


def _draw(store, *points):
    store.live_scene.add(Stroke(list(points)))
    store.record()


def test_switch_away_and_back_restores_scene():
    store = AnnotationStore(total_pages=3)
    store.switch_to(1, 300, 450)
    _draw(store, (1.0, 1.0), (5.0, 5.0))
    store.live_scene.add(HighlightStroke([(10.0, 10.0), (90.0, 10.0)], (255, 255, 0), 20.0))
    store.record()
    before = [o.to_dict() for o in store.live_scene.objects]

    store.switch_to(2, 300, 450)
    assert store.live_scene.is_empty

    store.switch_to(1, 300, 450)
    assert [o.to_dict() for o in store.live_scene.objects] == before


def test_switch_resets_undo_history():
    store = AnnotationStore(total_pages=2)
    store.switch_to(1, 100, 100)
    _draw(store, (1.0, 1.0))
    assert store.can_undo()

    store.switch_to(2, 100, 100)
    assert not store.can_undo()

    # Undo on the restored page does not wipe the restored content
    store.switch_to(1, 100, 100)
    store.undo()
    assert len(store.live_scene) == 1


def test_out_of_range_switch_has_no_side_effects():
    store = AnnotationStore(total_pages=2)
    store.switch_to(1, 100, 100)
    _draw(store, (1.0, 1.0))
    generation = store.generation

    for bad in (0, 3, -1):
        with pytest.raises(PageOutOfRange):
            store.switch_to(bad, 100, 100)

    assert store.live_page == 1
    assert store.generation == generation
    assert len(store.live_scene) == 1
    assert store.can_undo()


def test_stale_token_is_discarded():
    store = AnnotationStore(total_pages=3)
    first = store.begin_switch(2)
    second = store.begin_switch(3)

    assert store.complete_switch(first, 100, 100) is None
    assert store.state is SessionState.LOADING

    scene = store.complete_switch(second, 100, 100)
    assert scene.page_number == 3
    assert store.state is SessionState.LIVE


def test_close_invalidates_pending_load():
    store = AnnotationStore(total_pages=2)
    token = store.begin_switch(1)
    store.close()

    assert store.complete_switch(token, 100, 100) is None
    assert store.state is SessionState.IDLE


def test_undo_at_boundary_yields_empty_scene():
    store = AnnotationStore(total_pages=1)
    store.switch_to(1, 100, 100)

    scene = store.undo()
    assert scene is not None and scene.is_empty
    scene = store.undo()
    assert scene.is_empty


def test_undo_steps_back_one_object():
    store = AnnotationStore(total_pages=1)
    store.switch_to(1, 100, 100)
    _draw(store, (1.0, 1.0))
    _draw(store, (2.0, 2.0))

    store.undo()
    assert len(store.live_scene) == 1
    store.undo()
    assert store.live_scene.is_empty
    assert not store.can_undo()


def test_restored_snapshot_is_rescaled_to_new_raster():
    store = AnnotationStore(total_pages=2)
    store.switch_to(1, 100, 100)
    _draw(store, (10.0, 10.0), (50.0, 50.0))
    store.switch_to(2, 100, 100)

    scene = store.switch_to(1, 200, 200)
    assert (scene.width, scene.height) == (200, 200)
    assert scene.objects[0].points == [(20.0, 20.0), (100.0, 100.0)]


def test_scenes_with_markup_skips_empty_pages():
    store = AnnotationStore(total_pages=3)
    store.switch_to(1, 100, 100)
    store.switch_to(2, 100, 100)
    _draw(store, (1.0, 1.0))
    store.switch_to(3, 100, 100)

    pages = [scene.page_number for scene in store.scenes_with_markup()]
    assert pages == [2]
    assert store.has_markup()


def test_load_snapshots_validates_pages():
    store = AnnotationStore(total_pages=2)
    payload = AnnotationScene(1, 10, 10).serialize()

    with pytest.raises(PageOutOfRange):
        store.load_snapshots({5: payload})


def test_undo_history_limit_keeps_base():
    history = UndoHistory(max_size=3)
    history.reset("base")
    for snapshot in ("a", "b", "c"):
        history.push(snapshot)

    assert len(history) == 3
    assert history.undo() == "b"
    assert history.undo() == "base"
    assert history.undo() == "base"


def test_undo_history_empty():
    history = UndoHistory()
    assert history.undo() is None
    assert not history.can_undo()
