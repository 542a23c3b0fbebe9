"""
Text layout for the personalized overlay.

Templates are authored on a fixed 640-unit-wide canvas. Every size in a
template (font size, padding) is calibrated against that canvas, so the
renderer scales them by `output_width / REFERENCE_CANVAS_WIDTH` before any
layout math. Position and box size are percentages of the output raster,
anchored at the box center.

The auto-shrink is a single-pass estimate rather than real glyph
measurement. Its constants must stay exactly as they are: templates that
have already been sent depend on today's output.
"""
import math

from domain.models import BoxGeometry, TextConfig, TextStyle
from services.image_transforms import round_half_up

REFERENCE_CANVAS_WIDTH = 640

# Average glyph advance as a fraction of font size, calibrated for bold text
CHAR_WIDTH_RATIO = 0.55
# Text may use at most this share of the available width
FIT_RATIO = 0.9
MIN_FONT_SIZE = 14
DEFAULT_PADDING = 12
MAX_CORNER_RADIUS = 16


def scale_factor(output_width: float) -> float:
    return output_width / REFERENCE_CANVAS_WIDTH


def text_length(text: str) -> int:
    """Length in UTF-16 code units, so astral characters such as emoji count twice."""
    return len(text.encode("utf-16-le")) // 2


def resolve_display_text(text_config: TextConfig, name: str | None) -> str:
    """prefix + (trimmed name or fallback) + suffix."""
    display_name = (name or "").strip() or text_config.fallback or "Friend"
    return f"{text_config.prefix or ''}{display_name}{text_config.suffix or ''}"


def compute_font_size(text: str, box_width_px: float, base_font_size_px: float, padding_px: float) -> float:
    """
    Shrink the font when the estimated text width overflows the box.

    Returns the base size untouched when the text fits within 90% of the
    padded box width; otherwise a proportionally smaller whole-pixel size,
    never below MIN_FONT_SIZE.
    """
    available_width = box_width_px - padding_px * 2
    estimated_text_width = text_length(text) * (base_font_size_px * CHAR_WIDTH_RATIO)

    if estimated_text_width > available_width * FIT_RATIO:
        if estimated_text_width == 0:
            # nothing to measure, but the box has no room either
            return MIN_FONT_SIZE
        shrink_ratio = (available_width * FIT_RATIO) / estimated_text_width
        return max(MIN_FONT_SIZE, math.floor(base_font_size_px * shrink_ratio))

    return base_font_size_px


def compute_box_geometry(
    x_pct: float,
    y_pct: float,
    width_pct: float,
    height_pct: float,
    output_width: int,
    output_height: int,
) -> BoxGeometry:
    return BoxGeometry(
        center_x=(x_pct / 100) * output_width,
        center_y=(y_pct / 100) * output_height,
        width=(width_pct / 100) * output_width,
        height=(height_pct / 100) * output_height,
    )


def corner_radius(padding_px: float) -> float:
    return min(padding_px, MAX_CORNER_RADIUS)


def layout_text(
    text: str,
    text_config: TextConfig,
    font_family: str,
    output_width: int,
    output_height: int,
) -> tuple[BoxGeometry, TextStyle]:
    """
    Scale the template's sizes to the output raster and fit the text.

    Returns the pixel box and the resolved style, including the final
    (possibly shrunk) font size.
    """
    factor = scale_factor(output_width)
    scaled_font_size = round_half_up(text_config.size * factor)
    # A zero scaled padding falls back to the default, as in the editor
    scaled_padding = round_half_up(text_config.padding * factor) or DEFAULT_PADDING

    geometry = compute_box_geometry(
        text_config.x,
        text_config.y,
        text_config.width,
        text_config.height,
        output_width,
        output_height,
    )
    font_size = compute_font_size(text, geometry.width, scaled_font_size, scaled_padding)

    style = TextStyle(
        font_family=font_family,
        font_size=font_size,
        color=text_config.color,
        padding=scaled_padding,
        background_color=text_config.background_color,
        font_style=text_config.font_style,
        text_decoration=text_config.text_decoration,
    )
    return geometry, style
