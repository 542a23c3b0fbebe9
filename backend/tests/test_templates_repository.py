from domain.models import ImageConfig, ImageTemplate, TextConfig
from repositories import TemplatesRepository
from services.analytics import RenderCounter


def _template() -> ImageTemplate:
    return ImageTemplate(
        id="tpl1",
        name="Welcome",
        base_image_url="https://images.example.test/base.jpg",
        base_image_width=1200,
        base_image_height=675,
        text_config=TextConfig.from_dict({"prefix": "Hi ", "background_color": "#FFFFFF", "padding": 0}),
        image_config=ImageConfig(crop_x=0.1, flip_y=True),
    )


def test_create_and_get_template(session_factory):
    repo = TemplatesRepository()
    with session_factory() as session:
        repo.create_template(session, _template())

    with session_factory() as session:
        loaded = repo.get_template(session, "tpl1")

    assert loaded is not None
    assert loaded.name == "Welcome"
    assert loaded.text_config.prefix == "Hi "
    assert loaded.text_config.has_background
    assert loaded.text_config.padding == 0
    assert loaded.image_config.crop_x == 0.1
    assert loaded.image_config.flip_y is True
    assert loaded.render_count == 0


def test_get_missing_template_returns_none(session_factory):
    with session_factory() as session:
        assert TemplatesRepository().get_template(session, "nope") is None


def test_template_without_image_config(session_factory):
    repo = TemplatesRepository()
    template = _template()
    template.image_config = None
    with session_factory() as session:
        repo.create_template(session, template)
        assert repo.get_template(session, "tpl1").image_config is None


def test_render_counter_increments(session_factory):
    repo = TemplatesRepository()
    with session_factory() as session:
        repo.create_template(session, _template())

    counter = RenderCounter(templates_repo=repo, session_factory=session_factory)
    counter.increment("tpl1")
    counter.increment("tpl1")
    counter.increment("unknown")

    with session_factory() as session:
        assert repo.get_template(session, "tpl1").render_count == 2


def test_render_counter_disabled(session_factory):
    repo = TemplatesRepository()
    with session_factory() as session:
        repo.create_template(session, _template())

    RenderCounter(templates_repo=repo, session_factory=session_factory, enabled=False).increment("tpl1")

    with session_factory() as session:
        assert repo.get_template(session, "tpl1").render_count == 0
