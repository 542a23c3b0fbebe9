"""
Personalized image API routes.

GET /images/{template_id}?name=... renders the template for one recipient.
"""
import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, BackgroundTasks, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from domain.errors import TemplateNotFoundError, UpstreamFetchError
from domain.models import RenderRequest
from repositories import TemplatesRepository
from services.analytics import RenderCounter
from services.compositor import OverlayCompositor
from services.font_loader import FontCache, FontLoader
from services.render_pipeline import ImageRenderer, is_preview_request
from settings import settings
from storage.remote_images import RemoteImageStore

logger = logging.getLogger(__name__)

router = APIRouter()
templates_repo = TemplatesRepository()
font_cache = FontCache(max_entries=settings.FONT_CACHE_MAX_ENTRIES)
renderer = ImageRenderer(
    font_loader=FontLoader(cache=font_cache),
    image_store=RemoteImageStore(),
    compositor=OverlayCompositor(),
    templates_repo=templates_repo,
)
render_counter = RenderCounter(
    templates_repo=templates_repo,
    enabled=settings.RENDER_ANALYTICS_ENABLED,
)


class StatusProbeResponse(BaseModel):
    status: str
    template_id: str = Field(serialization_alias="templateId")
    name: str
    runtime: str
    env_check: Dict[str, bool] = Field(serialization_alias="envCheck")


class TemplateSummary(BaseModel):
    id: str
    name: str
    base_image_url: str
    width: Optional[int] = None
    height: Optional[int] = None
    text_config: Dict[str, Any]


class TemplateSummaryResponse(BaseModel):
    status: str
    template: TemplateSummary


def _status_probe(template_id: str, name: str) -> StatusProbeResponse:
    return StatusProbeResponse(
        status="ok",
        template_id=template_id,
        name=name,
        runtime="python",
        env_check={
            "hasDatabaseUrl": bool(settings.DATABASE_URL),
            "hasFontApiUrl": bool(settings.GOOGLE_FONTS_CSS_URL),
        },
    )


def _template_summary(template_id: str) -> TemplateSummaryResponse:
    template = renderer.get_template(template_id)
    return TemplateSummaryResponse(
        status="ok",
        template=TemplateSummary(
            id=template.id,
            name=template.name,
            base_image_url=template.base_image_url,
            width=template.base_image_width,
            height=template.base_image_height,
            text_config=template.text_config.to_dict(),
        ),
    )


@router.get("/{template_id}")
def render_image(
    template_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    name: str = "",
    debug: Optional[str] = None,
):
    """Render the template for one recipient and return it as a JPEG."""
    try:
        if debug == "1":
            probe = _status_probe(template_id, name)
            return Response(content=probe.model_dump_json(by_alias=True), media_type="application/json")
        if debug == "2":
            summary = _template_summary(template_id)
            return Response(content=summary.model_dump_json(), media_type="application/json")

        render_request = RenderRequest(
            template_id=template_id,
            name=name,
            is_preview=is_preview_request(request.query_params.keys()),
        )
        rendered = renderer.render(render_request)
    except TemplateNotFoundError:
        return PlainTextResponse("Template not found", status_code=404)
    except UpstreamFetchError as exc:
        logger.warning("[render] upstream fetch failed for %s: %s", template_id, exc)
        return PlainTextResponse(str(exc), status_code=500)
    except Exception as exc:
        logger.exception("[render] failed for %s", template_id)
        # Raw message is returned as-is; whether to redact it is still undecided
        return PlainTextResponse(f"Image generation failed: {exc}", status_code=500)

    if rendered.count_render:
        background_tasks.add_task(render_counter.increment, template_id)

    return Response(content=rendered.data, media_type=rendered.content_type, headers=rendered.headers)
