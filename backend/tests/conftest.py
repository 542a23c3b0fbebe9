import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from PIL import ImageFont  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from db import Base  # noqa: E402
from domain.models import FontAsset  # noqa: E402


@pytest.fixture
def font_asset() -> FontAsset:
    return FontAsset(family="Poppins", weight=700, data=b"wOF2-fake-font", format="woff2")


@pytest.fixture
def ttf_bytes() -> bytes:
    """A real TrueType binary: the Aileron face Pillow bundles for load_default."""
    try:
        font = ImageFont.load_default(size=24)
    except (ImportError, OSError):
        pytest.skip("Pillow was built without FreeType")
    if not isinstance(font, ImageFont.FreeTypeFont):
        pytest.skip("Pillow was built without FreeType")
    return font.path.getvalue()


@pytest.fixture
def ttf_font_asset(ttf_bytes) -> FontAsset:
    return FontAsset(family="Aileron", weight=700, data=ttf_bytes, format="truetype")


@pytest.fixture
def session_factory(tmp_path):
    from repositories import models  # noqa: F401  Ensures models are registered

    engine = create_engine(f"sqlite:///{tmp_path / 'templates.sqlite'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    engine.dispose()
