import json

import pytest

from signdesk.core.annotations.models import (
    AnnotationScene,
    Arrow,
    Circle,
    HighlightStroke,
    Stroke,
    TextBox,
    annotation_from_dict,
    color_to_hex,
    parse_color,
)


def _scene():
    return AnnotationScene(2, 300, 450, [
        Stroke([(1.0, 2.0), (3.0, 4.0)], (0, 0, 255), 4.0),
        HighlightStroke([(10.0, 10.0), (60.0, 10.0)], (255, 255, 0), 20.0, 0.3),
        TextBox(20.0, 30.0, "ข้อความ", 200.0, 20.0, (0, 0, 0)),
        Circle(140.0, 120.0, 40.0, 1.0, 0.5),
        Arrow(0.0, 0.0, 100.0, 0.0, head=[((100.0, 0.0), (87.0, 7.5)), ((100.0, 0.0), (87.0, -7.5))]),
    ])


def test_parse_color():
    assert parse_color('#FF8000') == (255, 128, 0)
    assert parse_color('00ff00') == (0, 255, 0)
    assert parse_color([1, 2, 3]) == (1, 2, 3)
    assert color_to_hex((255, 128, 0)) == '#FF8000'

    with pytest.raises(ValueError):
        parse_color('#FFF')


def test_scene_serialization_is_structurally_equal():
    scene = _scene()
    restored = AnnotationScene.deserialize(scene.serialize())

    assert restored == scene
    assert [type(o) for o in restored.objects] == [type(o) for o in scene.objects]


def test_serialized_scene_is_versioned_and_keeps_thai_text():
    payload = _scene().serialize()
    data = json.loads(payload)

    assert data['version'] == 1
    assert 'ข้อความ' in payload


def test_unknown_version_is_rejected():
    data = _scene().to_dict()
    data['version'] = 99

    with pytest.raises(ValueError):
        AnnotationScene.from_dict(data)


def test_unknown_object_type_is_rejected():
    with pytest.raises(ValueError):
        annotation_from_dict({'type': 'polygon'})


def test_circle_axes():
    circle = Circle(140, 120, 40, 1.0, 0.5)
    assert circle.radius_x == 40
    assert circle.radius_y == 20
    assert circle.contains_point(175, 120)
    assert not circle.contains_point(140, 150)


def test_object_at_returns_topmost():
    low = Circle(50, 50, 30)
    high = Circle(55, 55, 30)
    scene = AnnotationScene(1, 200, 200, [low, high])

    assert scene.object_at(52, 52) is high
    assert scene.object_at(190, 190) is None


def test_remove_is_by_identity():
    a = Stroke([(0.0, 0.0)])
    b = Stroke([(0.0, 0.0)])
    scene = AnnotationScene(1, 10, 10, [a, b])

    assert scene.remove(b)
    assert scene.objects[0] is a
    assert not scene.remove(b)


def test_rescaled_maps_coordinates():
    scene = AnnotationScene(1, 100, 200, [
        Stroke([(10.0, 20.0), (50.0, 100.0)], width=4.0),
        TextBox(10.0, 10.0, "a", width=50.0, font_size=10.0),
    ])
    bigger = scene.rescaled(200, 400)

    assert (bigger.width, bigger.height) == (200, 400)
    assert bigger.objects[0].points == [(20.0, 40.0), (100.0, 200.0)]
    assert bigger.objects[0].width == 8.0
    assert bigger.objects[1].x == 20.0
    assert bigger.objects[1].font_size == 20.0
    # Input scene untouched
    assert scene.objects[0].points[0] == (10.0, 20.0)


def test_rescaled_circle_keeps_ellipse_shape():
    scene = AnnotationScene(1, 100, 100, [Circle(50, 50, 40, 1.0, 0.5)])
    circle = scene.rescaled(200, 100).objects[0]

    assert circle.radius_x == pytest.approx(80)
    assert circle.radius_y == pytest.approx(20)


def test_text_box_height_grows_with_lines():
    box = TextBox(0, 0, "one", font_size=20)
    two_lines = TextBox(0, 0, "one\ntwo", font_size=20)
    assert two_lines.height == pytest.approx(2 * box.height)
