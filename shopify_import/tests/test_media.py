"""Tests for image download and transcoding."""

from io import BytesIO
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from PIL import Image, UnidentifiedImageError

from shopify_import.media import MediaFetcher, transcode_image


def image_bytes(mode="RGB", fmt="PNG", size=(4, 3)) -> bytes:
    color = {"RGBA": (255, 0, 0, 128), "L": 128}.get(mode, (255, 0, 0))
    if mode == "P":
        img = Image.new("RGB", size, color).convert("P")
    else:
        img = Image.new(mode, size, color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def response(status_code=200, content=b""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    return resp


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("shopify_import.media.time.sleep") as sleep:
        yield sleep


class TestTranscode:

    @pytest.mark.parametrize("mode", ["RGB", "RGBA", "P", "L"])
    def test_output_is_webp(self, mode):
        data = transcode_image(image_bytes(mode))
        with Image.open(BytesIO(data)) as img:
            assert img.format == "WEBP"
            assert img.mode == "RGB"
            assert img.size == (4, 3)

    def test_transparent_pixels_flattened_on_white(self):
        img = Image.new("RGBA", (2, 2), (0, 0, 0, 0))
        buf = BytesIO()
        img.save(buf, format="PNG")

        data = transcode_image(buf.getvalue(), image_format="PNG")

        with Image.open(BytesIO(data)) as out:
            assert out.getpixel((0, 0)) == (255, 255, 255)

    def test_rejects_non_image(self):
        with pytest.raises(UnidentifiedImageError):
            transcode_image(b"not an image")


class TestMediaFetcher:

    @pytest.fixture
    def session(self):
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def fetcher(self, tmp_path, session):
        return MediaFetcher(str(tmp_path), session=session, retries=1, retry_delay=0)

    def test_download_stores_webp_under_namespace(self, fetcher, session, tmp_path):
        session.get.return_value = response(content=image_bytes())

        path = fetcher.download("//cdn.example.com/shirt.jpg", "product", 7)

        assert path.startswith("product/7/product-7-")
        assert path.endswith(".webp")
        assert (tmp_path / path).is_file()
        session.get.assert_called_once_with("https://cdn.example.com/shirt.jpg", timeout=fetcher.timeout)

    def test_file_names_do_not_collide(self, fetcher, session):
        session.get.return_value = response(content=image_bytes())
        first = fetcher.download("https://cdn.example.com/a.jpg", "product", 1)
        second = fetcher.download("https://cdn.example.com/a.jpg", "product", 1)
        assert first != second

    def test_http_error_returns_none(self, fetcher, session):
        session.get.return_value = response(404)
        assert fetcher.download("https://cdn.example.com/a.jpg", "product", 1) is None
        assert session.get.call_count == 1

    def test_transient_error_is_retried(self, fetcher, session):
        session.get.side_effect = [response(503), response(content=image_bytes())]
        assert fetcher.download("https://cdn.example.com/a.jpg", "category", 2)
        assert session.get.call_count == 2

    def test_network_error_returns_none(self, fetcher, session):
        session.get.side_effect = requests.exceptions.Timeout("slow")
        assert fetcher.fetch("https://cdn.example.com/a.jpg") is None
        assert session.get.call_count == 2

    def test_undecodable_body_returns_none(self, fetcher, session, tmp_path):
        session.get.return_value = response(content=b"<html>nope</html>")
        assert fetcher.download("https://cdn.example.com/a.jpg", "product", 1) is None
        assert not any(Path(tmp_path).rglob("*.webp"))

    def test_invalid_url_is_not_requested(self, fetcher, session):
        assert fetcher.fetch("javascript:alert(1)") is None
        session.get.assert_not_called()
