"""Shared fixtures: a temporary catalog database and feed record builders."""

from typing import Any, Dict, List, Optional

import pytest

from shopify_import.db import ensure_locale, get_connection, get_locales, init_db


class FakeMedia:
    """Stands in for MediaFetcher: returns a deterministic path, no network."""

    def __init__(self, fail_urls=()):
        self.fail_urls = set(fail_urls)
        self.calls: List[tuple] = []

    def download(self, url: str, namespace: str, entity_id: int) -> Optional[str]:
        self.calls.append((url, namespace, entity_id))
        if url in self.fail_urls:
            return None
        return f"{namespace}/{entity_id}/{namespace}-{entity_id}-{len(self.calls)}.webp"


def make_variant(
    variant_id: int,
    sku: str = "",
    title: str = "Default Title",
    price: str = "10.00",
    **extra: Any,
) -> Dict[str, Any]:
    variant = {
        "id": variant_id,
        "sku": sku,
        "title": title,
        "price": price,
        "compare_at_price": None,
        "weight": 0.5,
        "inventory_quantity": 5,
        "option1": title,
        "option2": None,
        "option3": None,
        "updated_at": "2024-01-01T00:00:00Z",
    }
    variant.update(extra)
    return variant


def make_product(
    product_id: int,
    title: str,
    variants: Optional[List[Dict[str, Any]]] = None,
    options: Optional[List[Dict[str, Any]]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    product = {
        "id": product_id,
        "title": title,
        "handle": title.lower().replace(" ", "-"),
        "body_html": f"<p>{title} description</p>",
        "vendor": "Acme",
        "product_type": "Shirts",
        "tags": "",
        "options": options or [{"name": "Title", "position": 1, "values": ["Default Title"]}],
        "variants": variants or [make_variant(product_id * 10, sku=f"SKU-{product_id}")],
        "images": [],
        "updated_at": "2024-01-01T00:00:00Z",
    }
    product.update(extra)
    return product


def shirt(product_id: int, title: str, sku_prefix: str, sizes=("S", "M", "L")) -> Dict[str, Any]:
    """A configurable shirt with one variant per size."""
    return make_product(
        product_id,
        title,
        options=[{"name": "Size", "position": 1, "values": list(sizes)}],
        variants=[
            make_variant(product_id * 10 + i, sku=f"{sku_prefix}-{size}", title=size, option1=size)
            for i, size in enumerate(sizes)
        ],
    )


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "catalog.db")


@pytest.fixture
def conn(db_path):
    """An initialized catalog with the English locale."""
    with get_connection(db_path) as connection:
        init_db(connection)
        ensure_locale(connection, "en", "English")
        yield connection


@pytest.fixture
def locales(conn):
    return get_locales(conn)


@pytest.fixture
def media():
    return FakeMedia()


def count(conn, table: str, where: str = "", params=()) -> int:
    sql = f"SELECT COUNT(*) FROM {table}"
    if where:
        sql += f" WHERE {where}"
    return conn.execute(sql, params).fetchone()[0]
