"""
Image template repository backed by SQLAlchemy/SQLite.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlalchemy.orm import Session

from domain.models import ImageConfig, ImageTemplate, TextConfig
from repositories.models import ImageTemplateORM


def _template_from_orm(orm: ImageTemplateORM) -> ImageTemplate:
    return ImageTemplate(
        id=orm.id,
        name=orm.name,
        base_image_url=orm.base_image_url,
        base_image_width=orm.base_image_width,
        base_image_height=orm.base_image_height,
        text_config=TextConfig.from_dict(orm.text_config),
        image_config=ImageConfig.from_dict(orm.image_config),
        render_count=orm.render_count or 0,
        created_at=orm.created_at,
        updated_at=orm.updated_at,
    )


class TemplatesRepository:
    """Read access to templates plus the render counter."""

    def get_template(self, session: Session, template_id: str) -> Optional[ImageTemplate]:
        orm = session.get(ImageTemplateORM, template_id)
        if not orm:
            return None
        return _template_from_orm(orm)

    def create_template(self, session: Session, template: ImageTemplate) -> ImageTemplate:
        now = datetime.utcnow()
        orm = ImageTemplateORM(
            id=template.id,
            name=template.name,
            base_image_url=template.base_image_url,
            base_image_width=template.base_image_width,
            base_image_height=template.base_image_height,
            text_config=template.text_config.to_dict(),
            image_config=template.image_config.to_dict() if template.image_config else None,
            render_count=template.render_count,
            created_at=template.created_at or now,
            updated_at=template.updated_at or now,
        )
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _template_from_orm(orm)

    def increment_render_count(self, session: Session, template_id: str) -> bool:
        """Atomically bump the render counter. Returns False if the template is gone."""
        result = session.execute(
            update(ImageTemplateORM)
            .where(ImageTemplateORM.id == template_id)
            .values(render_count=ImageTemplateORM.render_count + 1)
        )
        session.commit()
        return result.rowcount > 0
