"""Render a template offline from a JSON definition and a local base image.

Usage:
    python scripts/render_template_preview.py --template template.json --image photo.jpg [--name Ada] [--out preview.jpg]

The template JSON uses the same fields as the image_templates table
(text_config, image_config, ...). The base image is read from disk instead of
its URL. The font is fetched from the font API unless --font-file is given.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from domain.models import FontAsset, ImageConfig, ImageTemplate, TextConfig  # noqa: E402
from services.compositor import OverlayCompositor  # noqa: E402
from services.font_loader import FontCache, FontLoader  # noqa: E402
from services.render_pipeline import ImageRenderer  # noqa: E402
from services.text_layout import resolve_display_text  # noqa: E402
from settings import settings  # noqa: E402
from storage.remote_images import RemoteImageStore  # noqa: E402

logger = logging.getLogger("render_template_preview")


def _load_template(path: Path) -> ImageTemplate:
    data = json.loads(path.read_text(encoding="utf-8"))
    return ImageTemplate(
        id=str(data.get("id") or path.stem),
        name=data.get("name") or path.stem,
        base_image_url=data.get("base_image_url") or "",
        base_image_width=data.get("base_image_width"),
        base_image_height=data.get("base_image_height"),
        text_config=TextConfig.from_dict(data.get("text_config")),
        image_config=ImageConfig.from_dict(data.get("image_config")),
    )


_FONT_FILE_FORMATS = {".woff2": "woff2", ".woff": "woff", ".ttf": "truetype", ".otf": "truetype"}


def _font_from_file(path: Path, family: str, weight: int) -> FontAsset:
    fmt = _FONT_FILE_FORMATS.get(path.suffix.lower(), "truetype")
    return FontAsset(family=family, weight=weight, data=path.read_bytes(), format=fmt)


def main() -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Render a personalized image template offline.")
    parser.add_argument("--template", required=True, help="Template JSON file.")
    parser.add_argument("--image", required=True, help="Local base image.")
    parser.add_argument("--name", default="", help="Recipient name (empty uses the template fallback).")
    parser.add_argument("--out", default=None, help="Output JPEG path (defaults to <template>.jpg).")
    parser.add_argument("--font-file", default=None, help="Local font file (ttf preferred) to embed instead of fetching.")
    parser.add_argument("--max-width", type=int, default=settings.MAX_OUTPUT_WIDTH)
    args = parser.parse_args()

    template_path = Path(args.template).resolve()
    template = _load_template(template_path)
    out_path = Path(args.out) if args.out else template_path.with_suffix(".jpg")

    font_loader = FontLoader(cache=FontCache(max_entries=4))
    renderer = ImageRenderer(
        font_loader=font_loader,
        image_store=RemoteImageStore(),
        compositor=OverlayCompositor(),
        max_output_width=args.max_width,
    )

    if args.font_file:
        font_asset = _font_from_file(Path(args.font_file), template.text_config.font, settings.FONT_WEIGHT)
    else:
        font_asset = font_loader.resolve_with_fallback(template.text_config.font, settings.FONT_WEIGHT)

    text = resolve_display_text(template.text_config, args.name)
    data, width, height = renderer.compose(template, text, font_asset, Path(args.image).read_bytes())

    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    logger.info("Wrote %s (%dx%d, %d bytes) text=%r", out_path, width, height, len(data), text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
