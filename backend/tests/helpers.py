"""Shared test doubles and image builders."""
from io import BytesIO
from pathlib import Path

from PIL import Image

SYSTEM_FONT_DIRS = (
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("C:/Windows/Fonts"),
)


class DummySession:
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def image_bytes(width: int, height: int, color="steelblue", fmt: str = "PNG") -> bytes:
    img = Image.new("RGB", (width, height), color=color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def transparent_rasterizer(svg: bytes, width: int, height: int) -> Image.Image:
    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def system_ttf_files(limit: int = 1) -> list:
    """Up to `limit` TrueType files installed on this host."""
    found = []
    for directory in SYSTEM_FONT_DIRS:
        if not directory.is_dir():
            continue
        for path in sorted(directory.rglob("*.ttf")):
            found.append(path)
            if len(found) >= limit:
                return found
    return found
