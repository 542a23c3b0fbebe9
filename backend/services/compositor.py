"""
Overlay compositing and JPEG encoding.

The text overlay is described as an SVG document with the resolved font
embedded as a base64 @font-face. `rasterize_svg` paints that document with
Pillow: the rounded background rect, then the text set in the embedded font
with FreeType, its drop shadow, underline and italic slant. The result is
alpha-composited over the resized base image.
"""
from __future__ import annotations

import base64
import logging
import re
import xml.etree.ElementTree as ET
from io import BytesIO
from typing import Callable, Dict, Optional

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from domain.models import BoxGeometry, FontAsset, TextStyle
from services.text_layout import corner_radius
from settings import settings

logger = logging.getLogger(__name__)

Rasterizer = Callable[[bytes, int, int], Image.Image]

SVG_NS = "{http://www.w3.org/2000/svg}"

# Horizontal shear for italic text, close to a 12 degree oblique
ITALIC_SKEW = 0.2

_FONT_FACE_FAMILY = re.compile(r"font-family:\s*'([^']*)'")
_FONT_FACE_DATA = re.compile(r"url\('data:[^;']+;base64,([A-Za-z0-9+/=]+)'\)")
_FILTER_REF = re.compile(r"url\(#([^)]+)\)")


_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(text: str) -> str:
    # '&' must go first so later entities are not double-escaped
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def build_text_svg(
    text: str,
    width: int,
    height: int,
    geometry: BoxGeometry,
    font_asset: FontAsset,
    style: TextStyle,
) -> str:
    """
    Build the overlay SVG for one text block.

    A rounded background rect is drawn when a background color is set;
    otherwise the text gets a drop shadow so it stays legible on photos.
    """
    font_base64 = base64.b64encode(font_asset.data).decode("ascii")
    has_bg = style.has_background

    background_rect = ""
    if has_bg:
        background_rect = (
            f'<rect x="{geometry.left}" y="{geometry.top}" '
            f'width="{geometry.width}" height="{geometry.height}" '
            f'rx="{corner_radius(style.padding)}" fill="{escape_xml(style.background_color)}" />'
        )

    shadow_filter = ""
    filter_attr = ""
    if not has_bg:
        shadow_filter = (
            '<filter id="shadow" x="-20%" y="-20%" width="140%" height="140%">\n'
            '        <feDropShadow dx="0" dy="2" stdDeviation="2" flood-color="#000000" flood-opacity="0.5" />\n'
            "      </filter>"
        )
        filter_attr = 'filter="url(#shadow)"'

    return f"""
    <svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">
      <defs>
        <style>
          @font-face {{
            font-family: '{escape_xml(font_asset.family)}';
            src: url('data:{font_asset.mime_type};base64,{font_base64}') format('{font_asset.format}');
            font-weight: 700;
            font-style: normal;
          }}
        </style>
        {shadow_filter}
      </defs>
      {background_rect}
      <text
        x="{geometry.center_x}"
        y="{geometry.center_y}"
        text-anchor="middle"
        dominant-baseline="central"
        font-family="{escape_xml(style.font_family)}"
        font-size="{style.font_size}"
        font-weight="700"
        font-style="{style.font_style.value}"
        text-decoration="{style.text_decoration.value}"
        fill="{escape_xml(style.color)}"
        {filter_attr}
      >{escape_xml(text)}</text>
    </svg>
    """


def _parse_color(value: Optional[str], opacity: float = 1.0) -> tuple:
    r, g, b, a = ImageColor.getcolor(value or "#000000", "RGBA")
    return r, g, b, round(a * opacity)


def _embedded_fonts(root: ET.Element) -> Dict[str, bytes]:
    """family -> font binary, read from the document's @font-face rules."""
    fonts: Dict[str, bytes] = {}
    for style in root.iter(f"{SVG_NS}style"):
        for rule in (style.text or "").split("@font-face")[1:]:
            family = _FONT_FACE_FAMILY.search(rule)
            data = _FONT_FACE_DATA.search(rule)
            if family and data:
                fonts[family.group(1)] = base64.b64decode(data.group(1))
    return fonts


def _find_drop_shadow(root: ET.Element, node: ET.Element) -> Optional[ET.Element]:
    match = _FILTER_REF.search(node.get("filter") or "")
    if match is None:
        return None
    for filter_node in root.iter(f"{SVG_NS}filter"):
        if filter_node.get("id") == match.group(1):
            return filter_node.find(f"{SVG_NS}feDropShadow")
    return None


def _paint_rect(canvas: Image.Image, node: ET.Element) -> None:
    x, y = float(node.get("x", 0)), float(node.get("y", 0))
    width, height = float(node.get("width", 0)), float(node.get("height", 0))
    if width <= 0 or height <= 0:
        return
    ImageDraw.Draw(canvas).rounded_rectangle(
        (x, y, x + width, y + height),
        radius=float(node.get("rx", 0)),
        fill=_parse_color(node.get("fill")),
    )


def _paint_shadow(canvas: Image.Image, layer: Image.Image, shadow: ET.Element) -> None:
    dx, dy = float(shadow.get("dx", 0)), float(shadow.get("dy", 0))
    blur = float(shadow.get("stdDeviation", 0))
    color = _parse_color(shadow.get("flood-color"), float(shadow.get("flood-opacity", 1)))

    silhouette = Image.new("RGBA", layer.size, color[:3] + (0,))
    silhouette.putalpha(layer.getchannel("A").point(lambda a: a * color[3] // 255))
    silhouette = silhouette.transform(layer.size, Image.Transform.AFFINE, (1, 0, -dx, 0, 1, -dy))
    if blur > 0:
        silhouette = silhouette.filter(ImageFilter.GaussianBlur(blur))
    canvas.alpha_composite(silhouette)


def _paint_text(
    canvas: Image.Image,
    node: ET.Element,
    fonts: Dict[str, bytes],
    shadow: Optional[ET.Element],
) -> None:
    family = node.get("font-family")
    if family not in fonts:
        raise ValueError(f"No embedded font for family {family!r}")
    font = ImageFont.truetype(BytesIO(fonts[family]), float(node.get("font-size", 16)))
    x, y = float(node.get("x", 0)), float(node.get("y", 0))
    text = node.text or ""
    fill = _parse_color(node.get("fill"))

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    # "mm" matches text-anchor=middle with dominant-baseline=central
    draw.text((x, y), text, font=font, fill=fill, anchor="mm")
    if node.get("text-decoration") == "underline":
        left, _, right, _ = draw.textbbox((x, y), text, font=font, anchor="mm")
        ascent, descent = font.getmetrics()
        thickness = max(1, round(font.size / 15))
        underline_y = y + (ascent - descent) / 2 + thickness
        draw.line([(left, underline_y), (right, underline_y)], fill=fill, width=thickness)
    if node.get("font-style") == "italic":
        layer = layer.transform(
            layer.size,
            Image.Transform.AFFINE,
            (1, ITALIC_SKEW, -ITALIC_SKEW * y, 0, 1, 0),
            resample=Image.Resampling.BICUBIC,
        )

    if shadow is not None:
        _paint_shadow(canvas, layer, shadow)
    canvas.alpha_composite(layer)


def rasterize_svg(svg: bytes, width: int, height: int) -> Image.Image:
    """
    Paint an overlay document built by `build_text_svg` to RGBA.

    Only the elements that builder emits are understood: a rect and a text
    node, the latter set in the family declared by the document's
    @font-face rule and optionally filtered with a feDropShadow.

    Raises:
        ValueError: when the text names a family with no embedded font.
    """
    root = ET.fromstring(svg.strip())
    fonts = _embedded_fonts(root)
    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    for node in root:
        if node.tag == f"{SVG_NS}rect":
            _paint_rect(canvas, node)
        elif node.tag == f"{SVG_NS}text":
            _paint_text(canvas, node, fonts, _find_drop_shadow(root, node))
    return canvas


class OverlayCompositor:
    def __init__(self, rasterize: Optional[Rasterizer] = None, jpeg_quality: Optional[int] = None):
        self.rasterize = rasterize or rasterize_svg
        self.jpeg_quality = jpeg_quality if jpeg_quality is not None else settings.JPEG_QUALITY

    def render(
        self,
        text: str,
        width: int,
        height: int,
        geometry: BoxGeometry,
        font_asset: FontAsset,
        style: TextStyle,
    ) -> Image.Image:
        """Build and rasterize the overlay for a canvas of width x height."""
        svg = build_text_svg(text, width, height, geometry, font_asset, style)
        logger.debug(
            "[overlay] %dx%d font=%s size=%s background=%s",
            width,
            height,
            font_asset.family,
            style.font_size,
            style.has_background,
        )
        overlay = self.rasterize(svg.encode("utf-8"), width, height)
        if overlay.size != (width, height):
            overlay = overlay.resize((width, height))
        return overlay

    def composite(self, base: Image.Image, overlay: Image.Image) -> Image.Image:
        """Place the overlay at the origin of the base image."""
        canvas = base.convert("RGBA")
        canvas.alpha_composite(overlay.convert("RGBA"), dest=(0, 0))
        return canvas

    def encode(self, image: Image.Image) -> bytes:
        """
        Encode to JPEG at a fixed quality.

        Quality 80 with optimized Huffman tables keeps an 800px-wide photo
        around 75-80KB, which suits inline email and SMS.
        """
        output = BytesIO()
        image.convert("RGB").save(
            output,
            format="JPEG",
            quality=self.jpeg_quality,
            optimize=True,
            progressive=True,
        )
        return output.getvalue()
