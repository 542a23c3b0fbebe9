from domain.models import TextConfig
from services import text_layout
from services.text_layout import (
    compute_box_geometry,
    compute_font_size,
    layout_text,
    resolve_display_text,
    scale_factor,
)


def test_scale_factor_is_one_on_reference_canvas():
    assert scale_factor(640) == 1.0
    assert scale_factor(800) == 1.25


def test_font_size_unchanged_when_text_fits():
    # 3 chars * 32 * 0.55 = 52.8, well under 0.9 * (256 - 24)
    assert compute_font_size("Sam", 256, 32, 12) == 32


def test_font_size_unchanged_at_exact_threshold():
    # available = 100, threshold = 90; 8 chars * 20 * 0.55 = 88
    assert compute_font_size("x" * 8, 110, 20, 5) == 20


def test_font_size_shrinks_proportionally():
    # available = 130, estimate = 10 * 40 * 0.55 = 220 > 117
    # floor(40 * 117 / 220) = floor(21.27) = 21
    assert compute_font_size("Alexandria", 160, 40, 15) == 21


def test_font_size_never_below_minimum():
    assert compute_font_size("x" * 200, 100, 32, 10) == text_layout.MIN_FONT_SIZE
    assert compute_font_size("Bartholomew-Christopherson", 10, 64, 20) == 14


def test_text_length_counts_utf16_units():
    assert text_layout.text_length("Ada") == 3
    assert text_layout.text_length("😀") == 2
    assert text_layout.text_length("Zoë") == 3


def test_font_size_counts_emoji_as_two_units():
    # 16 units * 22 = 352 > 0.9 * 290 = 261 -> floor(40 * 261 / 352) = 29
    assert compute_font_size("Hi " + "😀" * 6 + "!", 320, 40, 15) == 29


def test_font_size_empty_text_in_box_without_room():
    assert compute_font_size("", 20, 32, 12) == text_layout.MIN_FONT_SIZE
    assert compute_font_size("", 100, 32, 12) == 32


def test_display_text_uses_fallback_for_empty_name():
    cfg = TextConfig.from_dict({"fallback": "Friend", "prefix": "Hi ", "suffix": "!"})
    assert resolve_display_text(cfg, "") == "Hi Friend!"
    assert resolve_display_text(cfg, "   ") == "Hi Friend!"
    assert resolve_display_text(cfg, None) == "Hi Friend!"


def test_display_text_trims_name():
    cfg = TextConfig.from_dict({"prefix": "Hey ", "suffix": ""})
    assert resolve_display_text(cfg, "  Ada  ") == "Hey Ada"


def test_box_geometry_is_center_anchored():
    box = compute_box_geometry(50, 25, 40, 10, 800, 400)
    assert box.center_x == 400
    assert box.center_y == 100
    assert box.width == 320
    assert box.height == 40
    assert box.left == 240
    assert box.top == 80


def test_layout_scales_sizes_to_output_width():
    cfg = TextConfig.from_dict({"size": 32, "padding": 12, "width": 40})
    geometry, style = layout_text("Sam", cfg, "Inter", 800, 450)
    assert style.font_size == 40
    assert style.padding == 15
    assert geometry.width == 320


def test_layout_rounds_half_up():
    # 26 * 1.25 = 32.5 -> 33
    cfg = TextConfig.from_dict({"size": 26, "padding": 10})
    _, style = layout_text("Al", cfg, "Inter", 800, 450)
    assert style.font_size == 33
    assert style.padding == 13


def test_layout_zero_padding_falls_back_to_default():
    cfg = TextConfig.from_dict({"padding": 0})
    assert cfg.padding == 0
    _, style = layout_text("Al", cfg, "Inter", 640, 360)
    assert style.padding == text_layout.DEFAULT_PADDING


def test_corner_radius_capped():
    assert text_layout.corner_radius(10) == 10
    assert text_layout.corner_radius(40) == 16
