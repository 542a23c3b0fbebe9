import pytest
from PIL import Image, ImageChops

from domain.models import ImageConfig
from services.image_transforms import (
    apply_image_config,
    compute_crop_box,
    decode_image,
    resize_to_max_width,
)
from helpers import image_bytes


def _gradient(width: int = 40, height: int = 20) -> Image.Image:
    img = Image.new("RGBA", (width, height))
    for x in range(width):
        for y in range(height):
            img.putpixel((x, y), (x * 6 % 256, y * 12 % 256, (x + y) % 256, 255))
    return img


@pytest.mark.parametrize(
    "crop,expected_size",
    [
        ((0.25, 0.1, 0.5, 0.8), (100, 80)),
        ((0.0, 0.0, 1.0, 1.0), (200, 100)),
        ((0.1, 0.2, 0.3, 0.4), (60, 40)),
    ],
)
def test_crop_dimensions_follow_fractions(crop, expected_size):
    box = compute_crop_box(*crop, 200, 100)
    assert box is not None
    left, top, right, bottom = box
    assert (right - left, bottom - top) == expected_size
    assert left >= 0 and top >= 0 and right <= 200 and bottom <= 100


def test_crop_is_clamped_to_native_bounds():
    # 0.5 + 0.8 overflows; width is clamped to what remains
    box = compute_crop_box(0.5, 0.0, 0.8, 1.0, 200, 100)
    assert box == (100, 0, 200, 100)


def test_degenerate_crop_is_skipped():
    assert compute_crop_box(1.0, 0.0, 0.5, 0.5, 200, 100) is None
    assert compute_crop_box(0.0, 1.2, 0.5, 0.5, 200, 100) is None

    img = _gradient(200, 100)
    out = apply_image_config(img, 200, 100, ImageConfig(crop_x=1.0, crop_width=0.5))
    assert out.size == (200, 100)


def test_apply_crop_extracts_region():
    img = _gradient(40, 20)
    out = apply_image_config(img, 40, 20, ImageConfig(crop_x=0.25, crop_y=0.5, crop_width=0.5, crop_height=0.5))
    assert out.size == (20, 10)
    assert out.getpixel((0, 0)) == img.getpixel((10, 10))


def test_flip_x_mirrors_horizontally():
    img = _gradient()
    out = apply_image_config(img, 40, 20, ImageConfig(flip_x=True))
    assert out.getpixel((0, 0)) == img.getpixel((39, 0))


def test_flip_y_flips_vertically():
    img = _gradient()
    out = apply_image_config(img, 40, 20, ImageConfig(flip_y=True))
    assert out.getpixel((0, 0)) == img.getpixel((0, 19))


@pytest.mark.parametrize("config", [ImageConfig(flip_x=True), ImageConfig(flip_y=True)])
def test_flip_twice_is_identity(config):
    img = _gradient()
    once = apply_image_config(img, 40, 20, config)
    twice = apply_image_config(once, 40, 20, config)
    assert ImageChops.difference(img, twice).getbbox() is None


def test_crop_happens_before_flip():
    img = _gradient(40, 20)
    cfg = ImageConfig(crop_x=0.0, crop_y=0.0, crop_width=0.5, crop_height=1.0, flip_x=True)
    out = apply_image_config(img, 40, 20, cfg)
    assert out.size == (20, 20)
    assert out.getpixel((0, 0)) == img.getpixel((19, 0))


def test_needs_transform():
    assert not ImageConfig().needs_transform
    assert ImageConfig(crop_x=0.1).needs_transform
    assert ImageConfig(crop_height=0.9).needs_transform
    assert ImageConfig(flip_y=True).needs_transform
    assert ImageConfig.from_dict(None) is None


def test_resize_downsamples_to_max_width():
    img = decode_image(image_bytes(1600, 900))
    out, width, height = resize_to_max_width(img, 800)
    assert (width, height) == (800, 450)
    assert out.size == (800, 450)


def test_resize_never_upscales():
    img = decode_image(image_bytes(500, 300))
    out, width, height = resize_to_max_width(img, 800)
    assert out is img
    assert (width, height) == (500, 300)
