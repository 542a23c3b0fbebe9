"""
Web font acquisition for overlay embedding.

Fonts are resolved through the Google Fonts CSS2 API: the stylesheet for a
(family, weight) pair is fetched, the woff2 source is preferred over woff,
and the binary is downloaded and kept in a bounded in-memory cache.

The overlay is drawn with FreeType, which only reads woff2 when it was
built with brotli. A binary that FreeType cannot open is replaced by the
truetype source the API serves to non-browser clients.
"""
from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from io import BytesIO
from typing import Callable, Optional

import requests
from PIL import ImageFont

from domain.errors import FontNotFoundError, FontResolutionError, UpstreamFetchError
from domain.models import FontAsset
from settings import settings

logger = logging.getLogger(__name__)

# A modern desktop browser UA makes the API serve woff2 sources
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
# Clients the API does not recognise get truetype sources
LEGACY_USER_AGENT = requests.utils.default_user_agent()

_FONT_SRC_PATTERNS = (
    ("woff2", re.compile(r"src: url\((.+?)\) format\('woff2'\)")),
    ("woff", re.compile(r"src: url\((.+?)\) format\('woff'\)")),
    ("truetype", re.compile(r"src: url\((.+?)\) format\('truetype'\)")),
)


def extract_font_source(css: str) -> Optional[tuple[str, str]]:
    """Return (url, format) for the first woff2 source, else woff, else truetype."""
    for fmt, pattern in _FONT_SRC_PATTERNS:
        match = pattern.search(css)
        if match:
            return match.group(1), fmt
    return None


def font_is_renderable(data: bytes) -> bool:
    """True when the local FreeType build can open the font binary."""
    try:
        ImageFont.truetype(BytesIO(data), 12)
    except (OSError, ValueError):
        return False
    return True


class FontCache:
    """
    LRU map of "{family}-{weight}" -> FontAsset.

    The lock only guards the map bookkeeping. Two concurrent misses for the
    same key still both go upstream; the second write simply wins.
    """

    def __init__(self, max_entries: int = 64):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, FontAsset]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[FontAsset]:
        with self._lock:
            asset = self._entries.get(key)
            if asset is not None:
                self._entries.move_to_end(key)
            return asset

    def put(self, key: str, asset: FontAsset) -> None:
        with self._lock:
            self._entries[key] = asset
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FontLoader:
    def __init__(
        self,
        cache: FontCache,
        session: Optional[requests.Session] = None,
        css_url: Optional[str] = None,
        default_family: Optional[str] = None,
        timeout: Optional[float] = None,
        can_render: Optional[Callable[[bytes], bool]] = None,
    ):
        self.cache = cache
        self.session = session or requests.Session()
        self.css_url = css_url or settings.GOOGLE_FONTS_CSS_URL
        self.default_family = default_family or settings.DEFAULT_FONT_FAMILY
        self.timeout = timeout if timeout is not None else settings.FONT_FETCH_TIMEOUT_SECONDS
        self.can_render = can_render or font_is_renderable

    def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise UpstreamFetchError(f"Font request failed: {exc}", url=url) from exc
        if not resp.ok:
            raise UpstreamFetchError(f"Font request returned {resp.status_code}", url=url)
        return resp

    def _download(self, family: str, weight: int, user_agent: str) -> FontAsset:
        css_resp = self._get(
            self.css_url,
            params={"family": f"{family}:wght@{weight}"},
            headers={"User-Agent": user_agent},
        )
        source = extract_font_source(css_resp.text)
        if source is None:
            raise FontNotFoundError(family)
        font_url, fmt = source
        font_resp = self._get(font_url)
        return FontAsset(family=family, weight=weight, data=font_resp.content, format=fmt)

    def _fetch(self, family: str, weight: int) -> FontAsset:
        asset = self._download(family, weight, BROWSER_USER_AGENT)
        if self.can_render(asset.data):
            return asset

        logger.info("[fonts] %s %s binary is not loadable here; requesting truetype", family, asset.format)
        asset = self._download(family, weight, LEGACY_USER_AGENT)
        if not self.can_render(asset.data):
            raise FontNotFoundError(family)
        return asset

    def resolve(self, family: str, weight: int = 700) -> FontAsset:
        """Return the font for (family, weight), fetching it on a cache miss."""
        key = FontAsset.cache_key(family, weight)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        asset = self._fetch(family, weight)
        self.cache.put(key, asset)
        logger.info("[fonts] cached %s (%s, %d bytes)", key, asset.format, len(asset.data))
        return asset

    def resolve_with_fallback(self, family: str, weight: int = 700) -> FontAsset:
        """
        Resolve `family`, retrying once with the default family on any failure.

        Raises:
            FontResolutionError: when the fallback family fails too.
        """
        try:
            return self.resolve(family, weight)
        except Exception as exc:
            logger.warning(
                "[fonts] could not resolve %s (%s); falling back to %s",
                family,
                exc,
                self.default_family,
            )
        try:
            return self.resolve(self.default_family, weight)
        except Exception as exc:
            logger.error("[fonts] fallback %s failed too: %s", self.default_family, exc)
            raise FontResolutionError(family, self.default_family) from exc
