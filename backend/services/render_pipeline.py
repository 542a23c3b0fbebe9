"""
Personalized image render pipeline.

Pipeline stages:
1. Load the template
2. Resolve the display text
3. Resolve the font (requested family, then the default family)
4. Fetch the base image
5. Crop/flip when configured
6. Resize to the output width
7. Scale sizes to the reference canvas and fit the text
8. Composite the overlay and encode
9. Pick the caching/analytics policy
"""
import logging
from typing import Callable, Iterable, Optional, Tuple

from db import SessionLocal
from domain.errors import TemplateNotFoundError
from domain.models import FontAsset, ImageTemplate, RenderedImage, RenderRequest
from repositories import TemplatesRepository
from services.compositor import OverlayCompositor
from services.font_loader import FontLoader
from services.image_transforms import apply_image_config, decode_image, resize_to_max_width
from services.text_layout import layout_text, resolve_display_text
from settings import settings
from storage.remote_images import RemoteImageStore

logger = logging.getLogger(__name__)

PRODUCTION_CACHE_CONTROL = "public, max-age=86400, s-maxage=86400"
PRODUCTION_CDN_CACHE_CONTROL = "public, max-age=86400"
PREVIEW_CACHE_CONTROL = "no-store"


def is_preview_request(query_keys: Iterable[str], markers: Optional[Iterable[str]] = None) -> bool:
    """A request is a preview when it carries any cache-busting marker."""
    markers = set(markers if markers is not None else settings.PREVIEW_QUERY_MARKERS)
    return any(key in markers for key in query_keys)


class ImageRenderer:
    def __init__(
        self,
        font_loader: FontLoader,
        image_store: RemoteImageStore,
        compositor: OverlayCompositor,
        templates_repo: Optional[TemplatesRepository] = None,
        session_factory: Callable = SessionLocal,
        max_output_width: Optional[int] = None,
        font_weight: Optional[int] = None,
    ):
        self.font_loader = font_loader
        self.image_store = image_store
        self.compositor = compositor
        self.templates_repo = templates_repo or TemplatesRepository()
        self.session_factory = session_factory
        self.max_output_width = max_output_width or settings.MAX_OUTPUT_WIDTH
        self.font_weight = font_weight or settings.FONT_WEIGHT

    def get_template(self, template_id: str) -> ImageTemplate:
        with self.session_factory() as session:
            template = self.templates_repo.get_template(session, template_id)
        if not template:
            raise TemplateNotFoundError(template_id)
        return template

    def compose(
        self,
        template: ImageTemplate,
        text: str,
        font_asset: FontAsset,
        image_bytes: bytes,
    ) -> Tuple[bytes, int, int]:
        """Run the raster stages on already-fetched inputs. Returns (jpeg, width, height)."""
        image = decode_image(image_bytes)

        image_config = template.image_config
        if image_config and image_config.needs_transform:
            image = apply_image_config(image, image.width, image.height, image_config)

        resized, width, height = resize_to_max_width(image, self.max_output_width)
        geometry, style = layout_text(text, template.text_config, font_asset.family, width, height)

        overlay = self.compositor.render(text, width, height, geometry, font_asset, style)
        composed = self.compositor.composite(resized, overlay)
        return self.compositor.encode(composed), width, height

    def render(self, request: RenderRequest) -> RenderedImage:
        """
        Render one personalized image.

        Raises:
            TemplateNotFoundError: unknown template id.
            FontResolutionError: neither the configured nor the default font resolved.
            UpstreamFetchError: the base image could not be fetched.
        """
        template = self.get_template(request.template_id)
        text = resolve_display_text(template.text_config, request.name)

        font_asset = self.font_loader.resolve_with_fallback(template.text_config.font, self.font_weight)
        image_bytes = self.image_store.fetch(template.base_image_url)

        data, width, height = self.compose(template, text, font_asset, image_bytes)
        logger.info(
            "[render] template=%s %dx%d bytes=%d preview=%s",
            template.id,
            width,
            height,
            len(data),
            request.is_preview,
        )

        if request.is_preview:
            return RenderedImage(
                data=data,
                width=width,
                height=height,
                cache_control=PREVIEW_CACHE_CONTROL,
                count_render=False,
            )
        return RenderedImage(
            data=data,
            width=width,
            height=height,
            cache_control=PRODUCTION_CACHE_CONTROL,
            cdn_cache_control=PRODUCTION_CDN_CACHE_CONTROL,
            count_render=True,
        )
