import copy

import pytest

from studio.assets import ImageAsset
from studio.errors import LayerRangeError, RenderTargetError, UnknownLayerError
from studio.io_types import LayerPatch, Placement, Point, Stage
from studio.scene import LayerBounds, Scene

from conftest import png


@pytest.fixture
def garment():
    return ImageAsset.from_bytes(png((30, 10), (255, 0, 0, 255)))


@pytest.fixture
def photo():
    return ImageAsset.from_bytes(png((100, 100), (90, 90, 90, 255)))


def test_add_layer_registers_once_and_becomes_active(garment):
    scene = Scene()
    layer = scene.add_layer(garment, "Kurta", Placement(x=260, y=350, scale=1.5, rotation=0, z=10))
    ids = [l.id for l in scene.layers]
    assert ids.count(layer.id) == 1
    assert scene.active_id == layer.id
    assert (layer.x, layer.y, layer.scale, layer.rotation, layer.z) == (260, 350, 1.5, 0, 10)


def test_repeated_placements_get_fresh_ids(garment):
    scene = Scene()
    a = scene.add_layer(garment, "Kurta")
    b = scene.add_layer(garment, "Kurta")
    assert a.id != b.id
    assert scene.active_id == b.id


def test_duplicate_explicit_id_is_refused(garment):
    scene = Scene()
    scene.add_layer(garment, "Kurta", layer_id="k1")
    with pytest.raises(ValueError):
        scene.add_layer(garment, "Kurta", layer_id="k1")


def test_paint_order_is_stable_on_z(garment):
    scene = Scene()
    first = scene.add_layer(garment, "first", Placement(z=5))
    second = scene.add_layer(garment, "second", Placement(z=5))
    low = scene.add_layer(garment, "low", Placement(z=1))
    assert [l.id for l in scene.paint_order()] == [low.id, first.id, second.id]
    assert scene.flatten().paint_order == [low.id, first.id, second.id]


def test_drag_has_no_cumulative_drift(garment):
    scene = Scene()
    layer = scene.add_layer(garment, "Kurta", Placement(x=100, y=200))
    scene.begin_drag(layer.id, Point(10, 10))
    scene.update_drag(Point(40, 25))
    scene.update_drag(Point(15, 50))
    assert (layer.x, layer.y) == (105, 240)
    scene.end_drag()
    assert scene.drag is None


def test_begin_drag_does_not_move_and_marks_active(garment):
    scene = Scene()
    a = scene.add_layer(garment, "a", Placement(x=1, y=2))
    scene.add_layer(garment, "b")
    scene.begin_drag(a.id, Point(500, 500))
    assert scene.active_id == a.id
    assert (a.x, a.y) == (1, 2)


def test_begin_drag_on_unknown_layer_fails(garment):
    scene = Scene()
    scene.add_layer(garment, "a")
    with pytest.raises(UnknownLayerError):
        scene.begin_drag("nope", Point(0, 0))
    assert scene.drag is None


def test_new_drag_replaces_the_one_in_flight(garment):
    scene = Scene()
    a = scene.add_layer(garment, "a", Placement(x=0, y=0))
    b = scene.add_layer(garment, "b", Placement(x=0, y=0))
    scene.begin_drag(a.id, Point(0, 0))
    scene.update_drag(Point(5, 5))
    scene.begin_drag(b.id, Point(0, 0))
    scene.update_drag(Point(7, 7))
    assert (a.x, a.y) == (5, 5)
    assert (b.x, b.y) == (7, 7)


def test_update_and_end_drag_without_gesture_are_noops(garment):
    scene = Scene()
    layer = scene.add_layer(garment, "a", Placement(x=3, y=4))
    assert scene.update_drag(Point(100, 100)) is None
    scene.end_drag()
    scene.end_drag()
    assert (layer.x, layer.y) == (3, 4)


def test_set_active(garment):
    scene = Scene()
    layer = scene.add_layer(garment, "a")
    scene.set_active(None)
    assert scene.active_id is None
    scene.set_active(layer.id)
    assert scene.active_id == layer.id
    with pytest.raises(UnknownLayerError):
        scene.set_active("missing")
    assert scene.active_id == layer.id


def test_update_active_layer_patches_only_the_active_one(garment):
    scene = Scene()
    a = scene.add_layer(garment, "a", Placement(scale=1.0))
    b = scene.add_layer(garment, "b", Placement(scale=1.0))
    scene.update_active_layer(LayerPatch(scale=2.0, z=20))
    assert (b.scale, b.z) == (2.0, 20)
    assert a.scale == 1.0


def test_update_without_active_layer_is_noop(garment):
    scene = Scene()
    scene.add_layer(garment, "a")
    scene.set_active(None)
    before = copy.deepcopy(scene)
    assert scene.update_active_layer(LayerPatch(scale=2.0)) is None
    assert scene == before


def test_out_of_range_values_are_accepted_by_default(garment):
    scene = Scene()
    layer = scene.add_layer(garment, "a")
    scene.update_active_layer(LayerPatch(scale=9.0, rotation=-170, z=99))
    assert (layer.scale, layer.rotation, layer.z) == (9.0, -170, 99)


def test_clamp_policy(garment):
    scene = Scene(bounds=LayerBounds(policy="clamp"))
    layer = scene.add_layer(garment, "a")
    scene.update_active_layer(LayerPatch(scale=9.0, rotation=-170.0, z=0))
    assert (layer.scale, layer.rotation, layer.z) == (3.0, -45.0, 1)


def test_reject_policy_leaves_layer_untouched(garment):
    scene = Scene(bounds=LayerBounds(policy="reject"))
    layer = scene.add_layer(garment, "a", Placement(scale=1.0))
    with pytest.raises(LayerRangeError):
        scene.update_active_layer(LayerPatch(scale=1.2, z=31))
    assert (layer.scale, layer.z) == (1.0, 10)


def test_unknown_policy_is_refused():
    with pytest.raises(ValueError):
        LayerBounds(policy="wrap")


def test_remove_active_without_active_is_noop(garment):
    scene = Scene()
    scene.add_layer(garment, "a")
    scene.set_active(None)
    before = copy.deepcopy(scene)
    scene.remove_active()
    assert scene == before


def test_remove_active_clears_selection_and_drag(garment):
    scene = Scene()
    keep = scene.add_layer(garment, "keep")
    gone = scene.add_layer(garment, "gone")
    scene.begin_drag(gone.id, Point(0, 0))
    scene.remove_active()
    assert [l.id for l in scene.layers] == [keep.id]
    assert scene.active_id is None
    assert scene.drag is None


def test_remove_layer_by_id(garment):
    scene = Scene()
    a = scene.add_layer(garment, "a")
    b = scene.add_layer(garment, "b")
    scene.remove_layer(a.id)
    assert scene.active_id == b.id
    with pytest.raises(UnknownLayerError):
        scene.remove_layer(a.id)


def test_reset_base_discards_layers(garment, photo):
    scene = Scene()
    for label in ("a", "b", "c"):
        scene.add_layer(garment, label)
    scene.set_cutout(garment)
    new_photo = ImageAsset.from_bytes(png((8, 8), (1, 2, 3, 255)))
    scene.reset_base(new_photo)
    assert scene.layers == []
    assert scene.active_id is None
    assert scene.photo is new_photo
    assert scene.cutout is None


def test_cutout_supersedes_photo(garment, photo):
    scene = Scene()
    scene.reset_base(photo)
    assert scene.base is photo
    scene.set_cutout(garment)
    assert scene.base is garment


def test_zero_area_stage_cannot_be_flattened(garment):
    scene = Scene(stage=Stage(width=0, height=693))
    scene.add_layer(garment, "a")
    with pytest.raises(RenderTargetError):
        scene.flatten()


@pytest.mark.parametrize("policy", ["accept", "clamp", "reject"])
@pytest.mark.parametrize("patch", [LayerPatch(scale=float("nan")), LayerPatch(rotation=float("inf")), LayerPatch(x=float("-inf"))])
def test_non_finite_values_are_refused_under_every_policy(garment, policy, patch):
    scene = Scene(bounds=LayerBounds(policy=policy))
    layer = scene.add_layer(garment, "a", Placement(x=10, y=20, scale=1.0, rotation=5))
    with pytest.raises(LayerRangeError):
        scene.update_active_layer(patch)
    assert (layer.x, layer.y, layer.scale, layer.rotation) == (10, 20, 1.0, 5)
    assert scene.flatten().size == (1040, 1386)
