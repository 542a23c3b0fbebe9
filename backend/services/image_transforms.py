"""
Raster transforms applied to the base image before text is laid out.

`apply_image_config` crops and flips according to the template's
image_config; `resize_to_max_width` downsamples to the output width that
every later percentage calculation is relative to.
"""
from __future__ import annotations

import logging
import math
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps

from domain.models import ImageConfig

logger = logging.getLogger(__name__)

CropBox = Tuple[int, int, int, int]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching the editor's rounding."""
    return int(math.floor(value + 0.5))


def decode_image(image_bytes: bytes) -> Image.Image:
    """Decode raw bytes into a fully loaded RGBA image."""
    with Image.open(BytesIO(image_bytes)) as img:
        img.load()
        return img.convert("RGBA")


def compute_crop_box(
    crop_x: float,
    crop_y: float,
    crop_width: float,
    crop_height: float,
    native_width: int,
    native_height: int,
) -> Optional[CropBox]:
    """
    Convert crop fractions to a pixel box (left, top, right, bottom).

    Width/height are clamped so the region never exceeds the native bounds.
    Returns None when the resulting region is degenerate or falls outside
    the image; callers then skip the crop.
    """
    left = max(0, round_half_up(crop_x * native_width))
    top = max(0, round_half_up(crop_y * native_height))
    width = min(native_width - left, max(1, round_half_up(crop_width * native_width)))
    height = min(native_height - top, max(1, round_half_up(crop_height * native_height)))

    if width <= 0 or height <= 0:
        return None
    if left + width > native_width or top + height > native_height:
        return None
    return (left, top, left + width, top + height)


def apply_image_config(
    image: Image.Image,
    native_width: int,
    native_height: int,
    config: ImageConfig,
) -> Image.Image:
    """Crop, then mirror horizontally (flip_x) and/or flip vertically (flip_y)."""
    box = compute_crop_box(
        config.crop_x,
        config.crop_y,
        config.crop_width,
        config.crop_height,
        native_width,
        native_height,
    )
    if box is not None:
        image = image.crop(box)
    else:
        logger.debug(
            "[transform] skipping degenerate crop %s for %dx%d",
            config.to_dict(),
            native_width,
            native_height,
        )

    if config.flip_x:
        image = ImageOps.mirror(image)
    if config.flip_y:
        image = ImageOps.flip(image)
    return image


def resize_to_max_width(image: Image.Image, max_width: int) -> Tuple[Image.Image, int, int]:
    """
    Scale proportionally so the width is at most `max_width`.

    Never upscales: a narrower image is returned unchanged.
    """
    width, height = image.size
    if width <= max_width:
        return image, width, height
    new_height = max(1, round_half_up(height * max_width / width))
    resized = image.resize((max_width, new_height), resample=Image.LANCZOS)
    return resized, max_width, new_height
