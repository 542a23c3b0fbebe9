"""
Remote image storage access.

Base images live in object storage and are referenced by URL from the
template. This module only reads them; uploads belong to the authoring side.
"""
import logging
from typing import Optional

import requests

from domain.errors import UpstreamFetchError
from settings import settings

logger = logging.getLogger(__name__)


class RemoteImageStore:
    """Fetches raw base-image bytes over HTTP(S)."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.IMAGE_FETCH_TIMEOUT_SECONDS

    def fetch(self, url: str) -> bytes:
        """
        Download the image at `url`.

        Raises:
            UpstreamFetchError: on transport errors or a non-2xx response.
        """
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("[images] fetch failed url=%s error=%s", url, exc)
            raise UpstreamFetchError("Failed to fetch base image", url=url) from exc
        if not resp.ok:
            logger.warning("[images] fetch failed url=%s status=%s", url, resp.status_code)
            raise UpstreamFetchError("Failed to fetch base image", url=url)
        return resp.content
