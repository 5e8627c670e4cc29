import json

from signdesk.core.annotations import AnnotationPersistence, AnnotationStore, Stroke


def _store_with_markup():
    store = AnnotationStore(total_pages=3)
    store.switch_to(2, 100, 100)
    store.live_scene.add(Stroke([(1.0, 1.0), (2.0, 2.0)]))
    store.record()
    return store


def test_draft_round_trip(settings):
    persistence = AnnotationPersistence(settings=settings)
    store = _store_with_markup()

    path = persistence.save_draft('/docs/memo.pdf', store)
    assert path.exists()
    assert path.parent == settings.data_dir / 'drafts'
    assert persistence.has_draft('/docs/memo.pdf')

    snapshots = persistence.load_draft('/docs/memo.pdf')
    assert set(snapshots) == {2}

    restored = AnnotationStore(total_pages=3)
    restored.load_snapshots(snapshots)
    assert [s.page_number for s in restored.scenes_with_markup()] == [2]


def test_missing_draft_is_empty(settings):
    persistence = AnnotationPersistence(settings=settings)
    assert persistence.load_draft('nothing.pdf') == {}
    assert not persistence.has_draft('nothing.pdf')


def test_draft_with_other_version_is_ignored(settings):
    persistence = AnnotationPersistence(settings=settings)
    path = persistence.save_draft('a.pdf', _store_with_markup())

    data = json.loads(path.read_text(encoding='utf-8'))
    data['version'] = 2
    path.write_text(json.dumps(data), encoding='utf-8')

    assert persistence.load_draft('a.pdf') == {}


def test_corrupt_draft_is_ignored(settings):
    persistence = AnnotationPersistence(settings=settings)
    path = persistence.get_json_path('a.pdf')
    path.parent.mkdir(parents=True)
    path.write_text('{not json', encoding='utf-8')

    assert persistence.load_draft('a.pdf') == {}


def test_delete_draft(settings):
    persistence = AnnotationPersistence(settings=settings)
    persistence.save_draft('a.pdf', _store_with_markup())
    persistence.delete_draft('a.pdf')

    assert not persistence.has_draft('a.pdf')
    persistence.delete_draft('a.pdf')
