"""
Errors raised by the rendering pipeline.

Services raise these; the HTTP layer maps them to status codes.
"""


class RenderError(Exception):
    """Base class for render failures."""
    status_code = 500


class TemplateNotFoundError(RenderError):
    status_code = 404

    def __init__(self, template_id: str):
        super().__init__(f"Template {template_id} not found")
        self.template_id = template_id


class UpstreamFetchError(RenderError):
    """A remote resource (base image, font stylesheet or binary) could not be fetched."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class FontNotFoundError(UpstreamFetchError):
    """No source in the font stylesheet yielded a binary this host can render."""

    def __init__(self, family: str):
        super().__init__(f"Font {family} not found")
        self.family = family


class FontResolutionError(RenderError):
    """Neither the requested nor the fallback font family could be resolved."""

    def __init__(self, family: str, fallback_family: str):
        super().__init__(f"Could not resolve font {family} or fallback {fallback_family}")
        self.family = family
        self.fallback_family = fallback_family
