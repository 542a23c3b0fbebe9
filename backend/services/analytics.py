"""
Render analytics.

Counting is a side effect of production renders only. It runs after the
response has been produced and must never affect it, so every failure is
logged and dropped here.
"""
import logging
from typing import Callable, Optional

from db import SessionLocal
from repositories import TemplatesRepository

logger = logging.getLogger(__name__)


class RenderCounter:
    def __init__(
        self,
        templates_repo: Optional[TemplatesRepository] = None,
        session_factory: Callable = SessionLocal,
        enabled: bool = True,
    ):
        self.templates_repo = templates_repo or TemplatesRepository()
        self.session_factory = session_factory
        self.enabled = enabled

    def increment(self, template_id: str) -> None:
        if not self.enabled:
            return
        try:
            with self.session_factory() as session:
                found = self.templates_repo.increment_render_count(session, template_id)
            if not found:
                logger.info("[analytics] template %s vanished before counting", template_id)
        except Exception:
            logger.warning("[analytics] failed to count render for %s", template_id, exc_info=True)
