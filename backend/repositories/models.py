"""
SQLAlchemy ORM models for persistence.
"""
from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, JSON, String

from db import Base


class ImageTemplateORM(Base):
    __tablename__ = "image_templates"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    base_image_url = Column(String, nullable=False)
    base_image_width = Column(Integer, nullable=True)
    base_image_height = Column(Integer, nullable=True)
    text_config = Column(JSON, nullable=True)
    image_config = Column(JSON, nullable=True)
    render_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
