"""Tests for the products.json client, with the HTTP session mocked."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import make_product
from shopify_import.source_client import SourceClient


def response(status_code=200, payload=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status_code
    if json_error:
        resp.json.side_effect = ValueError("Expecting value")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("shopify_import.source_client.time.sleep") as sleep:
        yield sleep


class TestSourceClient:

    @pytest.fixture
    def session(self):
        return MagicMock(spec=requests.Session)

    @pytest.fixture
    def client(self, session):
        return SourceClient("https://shop.example.com/", per_page=2, session=session, retries=2)

    def test_page_url(self, client):
        assert client.page_url(3) == "https://shop.example.com/products.json?limit=2&page=3"

    def test_fetch_page_parses_products(self, client, session):
        session.get.return_value = response(payload={
            "products": [make_product(1, "Mug"), make_product(2, "Cup")],
        })

        result = client.fetch_page(1)

        assert result.ok
        assert [p.title for p in result.products] == ["Mug", "Cup"]
        assert result.raw_count == 2
        session.get.assert_called_once_with(
            "https://shop.example.com/products.json?limit=2&page=1", timeout=client.timeout
        )

    def test_invalid_products_are_counted_not_fatal(self, client, session):
        session.get.return_value = response(payload={
            "products": [make_product(1, "Mug"), {"id": 2, "title": "", "variants": []}],
        })

        result = client.fetch_page(1)

        assert result.ok
        assert len(result.products) == 1
        assert result.invalid == 1
        assert result.raw_count == 2
        assert not result.is_empty

    def test_empty_page(self, client, session):
        session.get.return_value = response(payload={"products": []})
        assert client.fetch_page(9).is_empty

    def test_retries_transient_status_then_succeeds(self, client, session, no_sleep):
        session.get.side_effect = [
            response(503),
            response(payload={"products": [make_product(1, "Mug")]}),
        ]

        result = client.fetch_page(1)

        assert result.ok
        assert session.get.call_count == 2
        no_sleep.assert_called_once_with(client.retry_delay)

    def test_retries_connection_errors_until_exhausted(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        result = client.fetch_page(1)

        assert not result.ok
        assert result.status_code is None
        assert session.get.call_count == 3

    def test_non_retryable_status_fails_immediately(self, client, session):
        session.get.return_value = response(404)

        result = client.fetch_page(1)

        assert not result.ok
        assert result.status_code == 404
        assert session.get.call_count == 1

    def test_invalid_json_is_a_failure(self, client, session):
        session.get.return_value = response(json_error=True)
        assert not client.fetch_page(1).ok

    def test_missing_products_key_is_a_failure(self, client, session):
        session.get.return_value = response(payload={"errors": "Not Found"})
        assert not client.fetch_page(1).ok
