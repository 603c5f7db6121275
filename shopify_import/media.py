"""Image download and transcoding.

Every failure here is logged and turned into ``None``; a missing image never
aborts a product import.
"""

import logging
import time
from io import BytesIO
from pathlib import Path
from typing import Optional

import requests  # type: ignore[import-untyped]
from PIL import Image, UnidentifiedImageError

from shopify_import.config import (
    IMAGE_EXTENSION,
    IMAGE_FETCH_RETRIES,
    IMAGE_FETCH_RETRY_DELAY,
    IMAGE_FORMAT,
    IMAGE_TIMEOUT,
    RETRY_STATUS_CODES,
    STORAGE_DIR,
)
from shopify_import.html_utils import random_token
from shopify_import.logging_config import get_logger, log_import_event
from shopify_import.source_client import create_session
from shopify_import.url_validation import URLValidationError, normalize_image_url

__all__ = ["MediaFetcher", "transcode_image"]

logger = get_logger("media")


def transcode_image(data: bytes, image_format: str = IMAGE_FORMAT) -> bytes:
    """Re-encode image bytes into ``image_format``.

    Transparent and palette images are flattened onto a white background.

    Raises:
        UnidentifiedImageError, OSError: If Pillow cannot decode or encode the data
    """
    with Image.open(BytesIO(data)) as img:
        img.load()

        if img.mode in ("RGBA", "LA", "P"):
            if img.mode != "RGBA":
                img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])  # Use alpha channel as mask
            img = background
        elif img.mode != "RGB":
            img = img.convert("RGB")

        output = BytesIO()
        img.save(output, format=image_format, quality=85)
        return output.getvalue()


class MediaFetcher:
    """Downloads remote images and stores them transcoded under ``storage_dir``."""

    def __init__(
        self,
        storage_dir: str = STORAGE_DIR,
        session: Optional[requests.Session] = None,
        retries: int = IMAGE_FETCH_RETRIES,
        retry_delay: float = IMAGE_FETCH_RETRY_DELAY,
        timeout: float = IMAGE_TIMEOUT,
    ) -> None:
        self.storage_dir = Path(storage_dir)
        self.session = session or create_session()
        self.retries = retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    def fetch(self, url: str) -> Optional[bytes]:
        """Download raw image bytes, or None on any failure."""
        try:
            url = normalize_image_url(url)
        except URLValidationError as e:
            logger.warning(f"Skipping image with invalid URL {url!r}: {e}")
            return None

        for attempt in range(self.retries + 1):
            error = None
            try:
                resp = self.session.get(url, timeout=self.timeout)
                if resp.status_code == 200 and resp.content:
                    return resp.content
                error = f"HTTP {resp.status_code}"
                if resp.status_code not in RETRY_STATUS_CODES:
                    break
            except requests.exceptions.RequestException as e:
                error = f"{type(e).__name__}: {e}"

            if attempt < self.retries:
                logger.debug(f"Image fetch failed ({error}), retrying: {url}")
                time.sleep(self.retry_delay)

        logger.warning(f"Image download failed ({error}): {url}")
        log_import_event("image_failed", {"url": url, "error": error},
                         level=logging.WARNING, logger_name="media")
        return None

    def store_transcoded(self, data: bytes, destination: str) -> Optional[str]:
        """Transcode ``data`` and write it to ``destination`` (relative to storage_dir).

        Returns:
            The relative path written, or None if the image could not be stored
        """
        try:
            encoded = transcode_image(data)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Could not transcode image for {destination}: {e}")
            return None

        target = self.storage_dir / destination
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(encoded)
        except OSError as e:
            logger.warning(f"Could not write image {target}: {e}")
            return None

        return Path(destination).as_posix()

    def download(self, url: str, namespace: str, entity_id: int) -> Optional[str]:
        """Fetch an image and store it as ``{namespace}/{id}/{namespace}-{id}-{token}.webp``."""
        data = self.fetch(url)
        if data is None:
            return None

        filename = f"{namespace}-{entity_id}-{random_token()}.{IMAGE_EXTENSION}"
        return self.store_transcoded(data, f"{namespace}/{entity_id}/{filename}")
