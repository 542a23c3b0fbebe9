"""
Core domain models for the personalized image renderer.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


def _match_keyword(enum_cls, value, default):
    # CSS keywords are case-insensitive; anything unrecognised renders as the default
    if isinstance(value, str):
        keyword = value.strip().lower()
        for member in enum_cls:
            if member.value == keyword:
                return member
    return default


class FontStyle(str, Enum):
    """Font style applied to the overlay text."""
    NORMAL = "normal"
    ITALIC = "italic"

    @classmethod
    def _missing_(cls, value):
        return _match_keyword(cls, value, cls.NORMAL)


class TextDecoration(str, Enum):
    """Text decoration applied to the overlay text."""
    NONE = "none"
    UNDERLINE = "underline"

    @classmethod
    def _missing_(cls, value):
        return _match_keyword(cls, value, cls.NONE)


@dataclass
class TextConfig:
    """
    Text overlay configuration authored in the template editor.

    Position and box size are percentages of the canvas; the box is
    anchored at its center. Sizes (font size, padding) are expressed in
    reference-canvas units and scaled to the output width at render time.
    """
    prefix: str = ""
    suffix: str = ""
    fallback: str = "Friend"
    font: str = "Inter"
    size: float = 32
    color: str = "#FFFFFF"
    background_color: Optional[str] = None
    x: float = 50  # center, % of canvas width
    y: float = 50  # center, % of canvas height
    width: float = 40  # % of canvas width
    height: float = 10  # % of canvas height
    padding: float = 12
    font_style: FontStyle = FontStyle.NORMAL
    text_decoration: TextDecoration = TextDecoration.NONE

    @property
    def has_background(self) -> bool:
        return bool(self.background_color) and self.background_color != "transparent"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TextConfig":
        data = data or {}
        padding = data.get("padding")
        return cls(
            prefix=data.get("prefix") or "",
            suffix=data.get("suffix") or "",
            fallback=data.get("fallback") or "Friend",
            font=data.get("font") or "Inter",
            size=data.get("size") or 32,
            color=data.get("color") or "#FFFFFF",
            background_color=data.get("background_color"),
            x=data.get("x") or 50,
            y=data.get("y") or 50,
            width=data.get("width") or 40,
            height=data.get("height") or 10,
            # An explicit 0 is kept; only a missing value takes the default
            padding=12 if padding is None else padding,
            font_style=FontStyle(data.get("font_style") or "normal"),
            text_decoration=TextDecoration(data.get("text_decoration") or "none"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix,
            "suffix": self.suffix,
            "fallback": self.fallback,
            "font": self.font,
            "size": self.size,
            "color": self.color,
            "background_color": self.background_color,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "padding": self.padding,
            "font_style": self.font_style.value,
            "text_decoration": self.text_decoration.value,
        }


@dataclass
class ImageConfig:
    """Crop (fractions 0-1 of the native image) and flip settings."""
    crop_x: float = 0.0
    crop_y: float = 0.0
    crop_width: float = 1.0
    crop_height: float = 1.0
    flip_x: bool = False
    flip_y: bool = False

    @property
    def needs_transform(self) -> bool:
        """True when a non-trivial crop or any flip is configured."""
        return (
            self.crop_x > 0
            or self.crop_y > 0
            or self.crop_width < 1
            or self.crop_height < 1
            or self.flip_x
            or self.flip_y
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ImageConfig"]:
        if not data:
            return None
        crop_width = data.get("crop_width")
        crop_height = data.get("crop_height")
        return cls(
            crop_x=float(data.get("crop_x") or 0.0),
            crop_y=float(data.get("crop_y") or 0.0),
            crop_width=1.0 if crop_width is None else float(crop_width),
            crop_height=1.0 if crop_height is None else float(crop_height),
            flip_x=bool(data.get("flip_x", False)),
            flip_y=bool(data.get("flip_y", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crop_x": self.crop_x,
            "crop_y": self.crop_y,
            "crop_width": self.crop_width,
            "crop_height": self.crop_height,
            "flip_x": self.flip_x,
            "flip_y": self.flip_y,
        }


@dataclass
class ImageTemplate:
    """
    A base photo paired with one text overlay.

    Templates are read fresh on every render and never mutated by the
    rendering pipeline; only the render counter is bumped.
    """
    id: str
    name: str
    base_image_url: str
    base_image_width: Optional[int] = None
    base_image_height: Optional[int] = None
    text_config: TextConfig = field(default_factory=TextConfig)
    image_config: Optional[ImageConfig] = None
    render_count: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


_FONT_MIME_TYPES = {"woff2": "font/woff2", "woff": "font/woff", "truetype": "font/ttf"}


@dataclass(frozen=True)
class FontAsset:
    """Embeddable font binary resolved for a (family, weight) pair."""
    family: str
    weight: int
    data: bytes
    format: str  # "woff2", "woff" or "truetype"

    @staticmethod
    def cache_key(family: str, weight: int) -> str:
        return f"{family}-{weight}"

    @property
    def mime_type(self) -> str:
        return _FONT_MIME_TYPES.get(self.format, "font/woff")


@dataclass(frozen=True)
class BoxGeometry:
    """Center-anchored text box in output pixels."""
    center_x: float
    center_y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.center_x - self.width / 2

    @property
    def top(self) -> float:
        return self.center_y - self.height / 2


@dataclass
class TextStyle:
    """Resolved, pixel-space styling for the overlay text."""
    font_family: str
    font_size: float
    color: str
    padding: float
    background_color: Optional[str] = None
    font_style: FontStyle = FontStyle.NORMAL
    text_decoration: TextDecoration = TextDecoration.NONE

    @property
    def has_background(self) -> bool:
        return bool(self.background_color) and self.background_color != "transparent"


@dataclass
class RenderRequest:
    """A single render: which template, for whom, and whether it is a preview."""
    template_id: str
    name: str = ""
    is_preview: bool = False


@dataclass
class RenderedImage:
    """Encoded output plus the caching policy chosen for it."""
    data: bytes
    width: int
    height: int
    cache_control: str
    cdn_cache_control: Optional[str] = None
    content_type: str = "image/jpeg"
    count_render: bool = False

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Content-Length": str(len(self.data)),
            "Cache-Control": self.cache_control,
        }
        if self.cdn_cache_control:
            headers["CDN-Cache-Control"] = self.cdn_cache_control
        return headers
