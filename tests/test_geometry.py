import pytest

from src.frameops.errors import EmptyImage, InvalidRatio
from src.frameops.geometry import (
    BorderSpec,
    CanvasSpec,
    Orientation,
    adapted_size,
    border_insets,
    canvas_letterbox_insets,
    clamp_size,
    collage_canvas_size,
    collage_member_size,
    collage_metrics,
    collage_minimum_size,
    content_width_for_final,
    gap_from_percent,
    resized_gap,
    validate_ratio,
)


def test_adapted_size_landscape_clamps_width():
    size = adapted_size(200, 300, 400, 200)
    assert size.width == 200
    assert size.height == pytest.approx(100)


def test_adapted_size_portrait_and_square_clamp_height():
    assert adapted_size(200, 300, 100, 200).width == pytest.approx(150)
    assert adapted_size(200, 300, 100, 200).height == 300
    assert adapted_size(50, 80, 10, 10).height == 80


@pytest.mark.parametrize("img", [(1, 1), (3, 1000), (1000, 3), (640, 480), (1080, 1920)])
@pytest.mark.parametrize("bounds", [(1, 1), (100, 100), (1080, 1920), (7, 3000)])
def test_adapted_size_keeps_ratio_and_bound(img, bounds):
    img_w, img_h = img
    max_w, max_h = bounds
    size = adapted_size(max_w, max_h, img_w, img_h)
    assert size.width > 0 and size.height > 0
    assert size.width / size.height == pytest.approx(img_w / img_h, rel=1e-9)
    if img_w > img_h:
        assert size.width <= max_w
    else:
        assert size.height <= max_h


def test_adapted_size_rejects_empty_image():
    with pytest.raises(EmptyImage):
        adapted_size(100, 100, 0, 10)


def test_size_to_pixels_never_zero():
    assert adapted_size(10, 10, 1000, 1).to_pixels() == (10, 1)


def test_border_insets_pixels_are_doubled():
    insets = border_insets(BorderSpec(width_px=10, color="#000000"), 300, 200)
    assert (insets.inset_w, insets.inset_h) == (20, 20)
    assert (insets.offset_x, insets.offset_y) == (10, 10)
    assert insets.color == "#000000"


def test_border_insets_pixels_take_precedence_over_percent():
    insets = border_insets(BorderSpec(width_px=4, percent_of_image=50), 300, 200)
    assert (insets.inset_w, insets.inset_h) == (8, 8)


def test_border_insets_percent_per_axis():
    insets = border_insets(BorderSpec(percent_of_image=10), 200, 100)
    assert (insets.inset_w, insets.inset_h) == (20, 10)


def test_border_insets_zero_width_falls_back_to_percent():
    insets = border_insets(BorderSpec(width_px=0, percent_of_image=5), 200, 100)
    assert (insets.inset_w, insets.inset_h) == (10, 5)


def test_border_insets_without_size_is_noop():
    assert border_insets(BorderSpec(), 200, 100).is_noop
    assert border_insets(BorderSpec(width_px=-3, percent_of_image=0), 200, 100).is_noop


def test_letterbox_pads_height_for_narrower_target():
    insets = canvas_letterbox_insets(CanvasSpec(9, 16), 100, 100)
    assert insets.inset_w == 0
    assert insets.inset_h == 78
    assert insets.offset_y == 39


def test_letterbox_pads_width_for_wider_target():
    insets = canvas_letterbox_insets(CanvasSpec(16, 9), 100, 100)
    assert insets.inset_h == 0
    assert insets.inset_w == 78


def test_letterbox_noop_cases():
    assert canvas_letterbox_insets(CanvasSpec(2, 1), 200, 100) is None
    assert canvas_letterbox_insets(CanvasSpec(0, 1), 200, 100) is None
    assert canvas_letterbox_insets(CanvasSpec(1, 0), 200, 100) is None
    assert canvas_letterbox_insets(CanvasSpec(-1, 2), 200, 100) is None


def test_letterbox_is_noop_once_within_a_pixel():
    # 100x178 is the rounded 9:16 result for a 100x100 image
    assert canvas_letterbox_insets(CanvasSpec(9, 16), 100, 178) is None


def test_validate_ratio():
    validate_ratio(9, 16)
    validate_ratio(0, 16)
    with pytest.raises(InvalidRatio):
        validate_ratio(0, 0)
    with pytest.raises(InvalidRatio):
        validate_ratio(-1, 2)


def test_collage_minimum_size_is_elementwise():
    assert collage_minimum_size([(100, 200), (150, 200), (120, 100)]) == (100, 100)


def test_collage_minimum_size_rejects_empty_member():
    with pytest.raises(EmptyImage):
        collage_minimum_size([(100, 200), (0, 10)])


def test_clamp_size_explicit_and_auto():
    assert clamp_size([(100, 200), (150, 50)], 0) == (100, 50)
    assert clamp_size([(100, 200), (150, 50)], 640) == (640, 640)


def test_collage_member_size_vertical_and_horizontal():
    assert collage_member_size(Orientation.VERTICAL, (100, 100), 150, 200) == (100, 133)
    assert collage_member_size(Orientation.HORIZONTAL, (100, 100), 200, 150) == (133, 100)


def test_collage_canvas_size_gaps_only_between_members():
    sizes = [(100, 200), (100, 133), (100, 100)]
    assert collage_canvas_size(Orientation.VERTICAL, sizes, 10, 3) == (100, 453)
    flipped = [(h, w) for w, h in sizes]
    assert collage_canvas_size(Orientation.HORIZONTAL, flipped, 10, 3) == (453, 100)
    assert collage_canvas_size(Orientation.VERTICAL, [(50, 60)], 10) == (50, 60)


def test_collage_canvas_size_uses_min_cross_extent():
    assert collage_canvas_size(Orientation.VERTICAL, [(100, 10), (90, 10)], 0) == (90, 20)


def test_collage_metrics_sums():
    metrics = collage_metrics([(100, 200), (200, 200)], 0)
    assert metrics.vertical_width == 100
    assert metrics.vertical_height_sum == pytest.approx(300)
    assert metrics.horizontal_height == 200
    assert metrics.horizontal_width_sum == pytest.approx(300)
    assert metrics.native_height_sum == 400
    assert metrics.native_width_sum == 300


def test_resized_gap_follows_scale():
    sizes = [(100, 200), (200, 200)]
    assert resized_gap(10, Orientation.VERTICAL, sizes, 0) == pytest.approx(7.5)
    assert resized_gap(10, Orientation.HORIZONTAL, sizes, 0) == pytest.approx(10)


def test_gap_from_percent():
    sizes = [(100, 200), (200, 200)]
    assert gap_from_percent(Orientation.VERTICAL, sizes, 0, 10) == pytest.approx(30)
    with pytest.raises(ValueError):
        gap_from_percent(Orientation.VERTICAL, sizes, 0, -1)


def test_content_width_for_final():
    assert content_width_for_final(1080, [0, 40]) == 1000
    with pytest.raises(ValueError):
        content_width_for_final(100, [50])
