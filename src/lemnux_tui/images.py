from __future__ import annotations

import io
import logging
from typing import Tuple

import requests
from PIL import Image, UnidentifiedImageError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import IMAGE_RETRY_ATTEMPTS, IMAGE_TIMEOUT, USER_AGENT
from .errors import ThumbnailError

logger = logging.getLogger("lemnux")


class ImageLoader:
    """Downloads post thumbnails into memory."""

    def __init__(self, timeout: int = IMAGE_TIMEOUT):
        self.timeout = timeout
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": USER_AGENT})
        retries = Retry(
            total=IMAGE_RETRY_ATTEMPTS,
            backoff_factor=0.3,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retries)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def load(self, url: str) -> bytes:
        """Return the image bytes at ``url``; raise ThumbnailError if they are unusable."""
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise ThumbnailError(f"Failed to fetch {url}: {e}") from e

        data = resp.content
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
            ValueError,
        ) as e:
            raise ThumbnailError(f"Not a valid image at {url}: {e}") from e

        logger.debug("Loaded thumbnail %s (%d bytes)", url, len(data))
        return data


def image_size(data: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size
