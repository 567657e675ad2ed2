"""Localization of external images referenced by an article.

Every ``![alt](http(s)://...)`` reference is downloaded into the vault's
image folder as ``img-<hash><ext>`` and rewritten to point at the local
copy. Files already present under the same name are reused.
"""

from __future__ import annotations

import hashlib
import logging
import re
import urllib.parse
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass, field

from docreader.config import DocReaderConfig
from docreader.vault.models import join_path
from docreader.vault.store import DocumentStore

logger = logging.getLogger(__name__)

IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
URL_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|bmp|tiff|ico|avif)$", re.IGNORECASE)
DEFAULT_EXTENSION = ".png"

EXTENSION_MAP: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
    "image/x-icon": ".ico",
    "image/avif": ".avif",
}


@dataclass
class FetchedImage:
    """Raw bytes of a downloaded image plus its declared content type."""

    data: bytes
    content_type: str = ""


@dataclass
class ImageProcessingResult:
    updated_content: str
    downloaded_count: int = 0
    failed_urls: list[str] = field(default_factory=list)


ImageFetcher = Callable[[str], FetchedImage]


def fetch_image(url: str, timeout: int = 30) -> FetchedImage:
    req = urllib.request.Request(url, headers={"User-Agent": "docreader/1.0"})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return FetchedImage(data=resp.read(), content_type=resp.headers.get("Content-Type", ""))


def is_external_url(url: str) -> bool:
    trimmed = url.strip()
    return trimmed.startswith(("http://", "https://"))


def extension_from_content_type(content_type: str) -> str | None:
    mime_type = content_type.split(";")[0].strip().lower()
    return EXTENSION_MAP.get(mime_type)


def extension_from_url(url: str) -> str | None:
    path = urllib.parse.urlparse(url.strip()).path
    match = URL_EXTENSION_RE.search(path)
    if match:
        return "." + match.group(1).lower()
    return None


def image_filename(url: str, extension: str) -> str:
    """Stable file name for ``url``: ``img-`` plus 8 hex chars of its SHA-1."""
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:8]
    return f"img-{digest}{extension}"


class ImageDownloader:
    """Downloads external images into the vault and rewrites references."""

    def __init__(
        self,
        store: DocumentStore,
        config: DocReaderConfig,
        fetch: ImageFetcher = fetch_image,
    ) -> None:
        self._store = store
        self._config = config
        self._fetch = fetch

    def update_settings(self, config: DocReaderConfig) -> None:
        self._config = config

    def download(self, url: str) -> str:
        """Download one image and return its vault path."""
        image = self._fetch(url.strip())
        extension = (
            extension_from_content_type(image.content_type)
            or extension_from_url(url)
            or DEFAULT_EXTENSION
        )
        path = join_path(self._config.vault.image_folder, image_filename(url, extension))
        if self._store.exists(path):
            return path
        self._store.write_binary(path, image.data)
        return path

    def process(self, content: str) -> ImageProcessingResult:
        """Localize every external image in ``content``.

        Failed downloads leave the reference untouched and are listed in
        ``failed_urls``.
        """
        result = ImageProcessingResult(updated_content=content)

        for match in IMAGE_RE.finditer(content):
            full_match, alt_text, url = match.group(0), match.group(1), match.group(2)
            if not is_external_url(url):
                continue
            try:
                local_path = self.download(url)
            except Exception:
                logger.warning("Failed to download image %s", url, exc_info=True)
                result.failed_urls.append(url)
                continue
            result.updated_content = result.updated_content.replace(
                full_match, f"![{alt_text}]({local_path})", 1
            )
            result.downloaded_count += 1

        return result
