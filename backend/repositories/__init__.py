from .templates import TemplatesRepository
from . import models

__all__ = ["TemplatesRepository", "models"]
