"""SQLite catalog schema and helpers for the importer.

The schema is the subset of a Bagisto-style commerce catalog that the import
pipeline reads and writes. All write helpers take an open connection so the
caller can group them in one ``transaction``.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional

from shopify_import.config import (
    DB_PATH,
    DEFAULT_CHANNEL,
    DEFAULT_INVENTORY_SOURCE_ID,
)
from shopify_import.models import Locale

__all__ = [
    "DEFAULT_DB_PATH",
    "get_connection",
    "transaction",
    "init_db",
    "ensure_locale",
    "get_locales",
    "sku_exists",
    "find_attribute_family",
    "insert_attribute_family",
    "find_attribute",
    "get_attribute_options",
    "insert_attribute",
    "insert_attribute_option",
    "set_option_swatch",
    "find_category_by_name",
    "insert_category",
    "set_category_logo",
    "insert_product",
    "insert_product_flat",
    "insert_product_inventory",
    "update_product_inventory",
    "insert_product_image",
    "set_product_base_image",
    "add_super_attribute",
    "add_attribute_value",
    "add_product_category",
    "source_product_exists",
    "source_variant_exists",
    "record_source_product",
    "record_source_variant",
    "update_import_state",
    "get_import_state",
    "get_catalog_counts",
]

DEFAULT_DB_PATH = DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS locales (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    direction TEXT NOT NULL DEFAULT 'ltr',
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS inventory_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    status INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS attribute_families (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    status INTEGER NOT NULL DEFAULT 0,
    is_user_defined INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS attributes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT UNIQUE NOT NULL,
    admin_name TEXT NOT NULL,
    type TEXT NOT NULL,
    position INTEGER,
    is_required INTEGER NOT NULL DEFAULT 0,
    is_unique INTEGER NOT NULL DEFAULT 0,
    is_filterable INTEGER NOT NULL DEFAULT 0,
    is_configurable INTEGER NOT NULL DEFAULT 0,
    is_user_defined INTEGER NOT NULL DEFAULT 1,
    is_visible_on_front INTEGER NOT NULL DEFAULT 0,
    value_per_locale INTEGER NOT NULL DEFAULT 0,
    value_per_channel INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS attribute_translations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    attribute_id INTEGER NOT NULL,
    locale TEXT NOT NULL,
    name TEXT,
    UNIQUE (attribute_id, locale),
    FOREIGN KEY (attribute_id) REFERENCES attributes(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS attribute_options (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    attribute_id INTEGER NOT NULL,
    admin_name TEXT,
    sort_order INTEGER,
    swatch_value TEXT,
    FOREIGN KEY (attribute_id) REFERENCES attributes(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS attribute_option_translations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    attribute_option_id INTEGER NOT NULL,
    locale TEXT NOT NULL,
    label TEXT,
    UNIQUE (attribute_option_id, locale),
    FOREIGN KEY (attribute_option_id) REFERENCES attribute_options(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    position INTEGER NOT NULL DEFAULT 0,
    logo_path TEXT,
    status INTEGER NOT NULL DEFAULT 0,
    display_mode TEXT DEFAULT 'products_and_description',
    parent_id INTEGER,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS category_translations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    slug TEXT NOT NULL,
    url_path TEXT NOT NULL,
    description TEXT,
    meta_title TEXT,
    meta_description TEXT,
    meta_keywords TEXT,
    locale TEXT NOT NULL,
    UNIQUE (category_id, locale),
    FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sku TEXT UNIQUE NOT NULL,
    type TEXT NOT NULL,
    parent_id INTEGER,
    attribute_family_id INTEGER,
    additional TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    FOREIGN KEY (parent_id) REFERENCES products(id) ON DELETE CASCADE,
    FOREIGN KEY (attribute_family_id) REFERENCES attribute_families(id)
);

CREATE TABLE IF NOT EXISTS product_flat (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id INTEGER NOT NULL,
    sku TEXT NOT NULL,
    type TEXT,
    name TEXT,
    short_description TEXT,
    description TEXT,
    url_key TEXT,
    status INTEGER,
    visible_individually INTEGER,
    meta_title TEXT,
    meta_keywords TEXT,
    meta_description TEXT,
    price NUMERIC,
    special_price NUMERIC,
    weight NUMERIC,
    base_image TEXT,
    locale TEXT NOT NULL,
    channel TEXT NOT NULL,
    attribute_family_id INTEGER,
    parent_id INTEGER,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    UNIQUE (product_id, channel, locale),
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_inventories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    qty INTEGER NOT NULL DEFAULT 0,
    product_id INTEGER NOT NULL,
    vendor_id INTEGER NOT NULL DEFAULT 0,
    inventory_source_id INTEGER NOT NULL,
    UNIQUE (product_id, inventory_source_id, vendor_id),
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_images (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT,
    path TEXT NOT NULL,
    product_id INTEGER NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_super_attributes (
    product_id INTEGER NOT NULL,
    attribute_id INTEGER NOT NULL,
    PRIMARY KEY (product_id, attribute_id),
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_attribute_values (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    locale TEXT,
    channel TEXT,
    text_value TEXT,
    integer_value INTEGER,
    product_id INTEGER NOT NULL,
    attribute_id INTEGER NOT NULL,
    unique_id TEXT UNIQUE,
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS product_categories (
    product_id INTEGER NOT NULL,
    category_id INTEGER NOT NULL,
    PRIMARY KEY (product_id, category_id),
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE,
    FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS shopify_products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    shopify_product_id INTEGER UNIQUE NOT NULL,
    catalog_product_id INTEGER NOT NULL,
    shopify_handle TEXT,
    sku TEXT,
    shopify_updated_at TIMESTAMP,
    last_synced_at TIMESTAMP,
    FOREIGN KEY (catalog_product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS shopify_variants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    shopify_variant_id INTEGER UNIQUE NOT NULL,
    shopify_product_id INTEGER,
    catalog_product_id INTEGER NOT NULL,
    sku TEXT,
    shopify_updated_at TIMESTAMP,
    last_synced_at TIMESTAMP,
    FOREIGN KEY (catalog_product_id) REFERENCES products(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS import_state (
    store_url TEXT PRIMARY KEY,
    last_page_imported INTEGER DEFAULT 0,
    pages_processed INTEGER DEFAULT 0,
    last_imported_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_products_parent_id ON products(parent_id);
CREATE INDEX IF NOT EXISTS idx_product_flat_product_id ON product_flat(product_id);
CREATE INDEX IF NOT EXISTS idx_attribute_options_attribute_id ON attribute_options(attribute_id);
CREATE INDEX IF NOT EXISTS idx_category_translations_name ON category_translations(name);
CREATE INDEX IF NOT EXISTS idx_shopify_products_catalog_id ON shopify_products(catalog_product_id);
CREATE INDEX IF NOT EXISTS idx_shopify_variants_catalog_id ON shopify_variants(catalog_product_id);
"""


def _now() -> str:
    return datetime.now().isoformat(sep=" ", timespec="seconds")


@contextmanager
def get_connection(db_path: str = DEFAULT_DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    The connection runs in autocommit mode; group writes with ``transaction``.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """Run the enclosed writes as one unit: commit on success, roll back on any exception."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


def init_db(conn: sqlite3.Connection) -> None:
    """Create the catalog schema and the default inventory source."""
    conn.executescript(SCHEMA)
    conn.execute(
        "INSERT OR IGNORE INTO inventory_sources (id, code, name) VALUES (?, 'default', 'Default')",
        (DEFAULT_INVENTORY_SOURCE_ID,),
    )


# =============================================================================
# Locales
# =============================================================================

def ensure_locale(conn: sqlite3.Connection, code: str, name: str = "") -> None:
    """Add a locale if it is not present. Idempotent."""
    now = _now()
    conn.execute(
        "INSERT OR IGNORE INTO locales (code, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (code, name or code, now, now),
    )


def get_locales(conn: sqlite3.Connection) -> List[Locale]:
    cursor = conn.execute("SELECT id, code, name FROM locales ORDER BY id")
    return [Locale(code=row["code"], name=row["name"], id=row["id"]) for row in cursor.fetchall()]


# =============================================================================
# Attribute families, attributes and options
# =============================================================================

def find_attribute_family(conn: sqlite3.Connection, code: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT id, code, name FROM attribute_families WHERE code = ?", (code,)
    ).fetchone()


def insert_attribute_family(conn: sqlite3.Connection, code: str, name: str) -> int:
    cursor = conn.execute(
        "INSERT INTO attribute_families (code, name, status, is_user_defined) VALUES (?, ?, 1, 1)",
        (code, name),
    )
    return cursor.lastrowid


def find_attribute(conn: sqlite3.Connection, code: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT id, code, admin_name, type FROM attributes WHERE code = ?", (code,)
    ).fetchone()


def get_attribute_options(conn: sqlite3.Connection, attribute_id: int) -> List[sqlite3.Row]:
    return conn.execute(
        """
        SELECT id, attribute_id, admin_name, sort_order, swatch_value
        FROM attribute_options
        WHERE attribute_id = ?
        ORDER BY sort_order, id
        """,
        (attribute_id,),
    ).fetchall()


def insert_attribute(
    conn: sqlite3.Connection,
    code: str,
    admin_name: str,
    locales: Iterable[Locale],
    attribute_type: str = "select",
    is_configurable: bool = True,
) -> int:
    """Insert a user-defined attribute with one translation per locale."""
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO attributes (code, admin_name, type, position, is_filterable,
                                is_configurable, is_user_defined, is_visible_on_front,
                                created_at, updated_at)
        VALUES (?, ?, ?, 1, 1, ?, 1, 1, ?, ?)
        """,
        (code, admin_name, attribute_type, int(is_configurable), now, now),
    )
    attribute_id = cursor.lastrowid
    conn.executemany(
        "INSERT INTO attribute_translations (attribute_id, locale, name) VALUES (?, ?, ?)",
        [(attribute_id, locale.code, admin_name) for locale in locales],
    )
    return attribute_id


def insert_attribute_option(
    conn: sqlite3.Connection,
    attribute_id: int,
    admin_name: str,
    sort_order: int,
    locales: Iterable[Locale],
) -> int:
    """Insert an attribute option with one label translation per locale."""
    cursor = conn.execute(
        "INSERT INTO attribute_options (attribute_id, admin_name, sort_order) VALUES (?, ?, ?)",
        (attribute_id, admin_name, sort_order),
    )
    option_id = cursor.lastrowid
    conn.executemany(
        "INSERT INTO attribute_option_translations (attribute_option_id, locale, label) VALUES (?, ?, ?)",
        [(option_id, locale.code, admin_name) for locale in locales],
    )
    return option_id


def set_option_swatch(conn: sqlite3.Connection, option_id: int, path: str) -> None:
    conn.execute("UPDATE attribute_options SET swatch_value = ? WHERE id = ?", (path, option_id))


# =============================================================================
# Categories
# =============================================================================

def find_category_by_name(conn: sqlite3.Connection, name: str) -> Optional[sqlite3.Row]:
    """Find a category by its exact translated name (any locale)."""
    return conn.execute(
        """
        SELECT c.id, ct.name, ct.slug, c.logo_path
        FROM categories c
        JOIN category_translations ct ON ct.category_id = c.id
        WHERE ct.name = ?
        ORDER BY c.id
        LIMIT 1
        """,
        (name,),
    ).fetchone()


def insert_category(
    conn: sqlite3.Connection,
    name: str,
    slug: str,
    locales: Iterable[Locale],
    description: str = "",
    meta_title: str = "",
    meta_description: str = "",
    meta_keywords: str = "",
) -> int:
    """Insert an active category with one translation per locale."""
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO categories (position, status, display_mode, created_at, updated_at)
        VALUES (0, 1, 'products_only', ?, ?)
        """,
        (now, now),
    )
    category_id = cursor.lastrowid
    conn.executemany(
        """
        INSERT INTO category_translations (category_id, name, slug, url_path, description,
                                           meta_title, meta_description, meta_keywords, locale)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (category_id, name, slug, slug, description, meta_title,
             meta_description, meta_keywords, locale.code)
            for locale in locales
        ],
    )
    return category_id


def set_category_logo(conn: sqlite3.Connection, category_id: int, path: str) -> None:
    conn.execute(
        "UPDATE categories SET logo_path = ?, updated_at = ? WHERE id = ?",
        (path, _now(), category_id),
    )


# =============================================================================
# Products
# =============================================================================

def sku_exists(conn: sqlite3.Connection, sku: str) -> bool:
    return conn.execute("SELECT 1 FROM products WHERE sku = ?", (sku,)).fetchone() is not None


def insert_product(
    conn: sqlite3.Connection,
    sku: str,
    product_type: str,
    attribute_family_id: int,
    parent_id: Optional[int] = None,
    additional: Optional[Dict[str, Any]] = None,
) -> int:
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO products (sku, type, parent_id, attribute_family_id, additional,
                              created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (sku, product_type, parent_id, attribute_family_id,
         json.dumps(additional) if additional else None, now, now),
    )
    return cursor.lastrowid


def insert_product_flat(
    conn: sqlite3.Connection,
    product_id: int,
    locale: str,
    fields: Dict[str, Any],
    channel: str = DEFAULT_CHANNEL,
) -> int:
    """Insert the per-locale presentation row for a product.

    ``fields`` holds the product_flat columns (sku, type, name, url_key, price, ...).
    """
    now = _now()
    row = dict(fields, product_id=product_id, locale=locale, channel=channel,
               created_at=now, updated_at=now)
    columns = ", ".join(row.keys())
    placeholders = ", ".join("?" for _ in row)
    cursor = conn.execute(
        f"INSERT INTO product_flat ({columns}) VALUES ({placeholders})",
        list(row.values()),
    )
    return cursor.lastrowid


def insert_product_inventory(
    conn: sqlite3.Connection,
    product_id: int,
    qty: int,
    inventory_source_id: int = DEFAULT_INVENTORY_SOURCE_ID,
) -> None:
    conn.execute(
        "INSERT INTO product_inventories (qty, product_id, vendor_id, inventory_source_id) VALUES (?, ?, 0, ?)",
        (qty, product_id, inventory_source_id),
    )


def update_product_inventory(
    conn: sqlite3.Connection,
    product_id: int,
    qty: int,
    inventory_source_id: int = DEFAULT_INVENTORY_SOURCE_ID,
) -> None:
    conn.execute(
        "UPDATE product_inventories SET qty = ? WHERE product_id = ? AND inventory_source_id = ?",
        (qty, product_id, inventory_source_id),
    )


def insert_product_image(conn: sqlite3.Connection, product_id: int, path: str, position: int) -> int:
    cursor = conn.execute(
        "INSERT INTO product_images (type, path, product_id, position) VALUES ('images', ?, ?, ?)",
        (path, product_id, position),
    )
    return cursor.lastrowid


def set_product_base_image(conn: sqlite3.Connection, product_id: int, path: str) -> None:
    conn.execute(
        "UPDATE product_flat SET base_image = ?, updated_at = ? WHERE product_id = ?",
        (path, _now(), product_id),
    )


def add_super_attribute(conn: sqlite3.Connection, product_id: int, attribute_id: int) -> None:
    conn.execute(
        "INSERT OR IGNORE INTO product_super_attributes (product_id, attribute_id) VALUES (?, ?)",
        (product_id, attribute_id),
    )


def add_attribute_value(
    conn: sqlite3.Connection,
    product_id: int,
    attribute_id: int,
    integer_value: int,
    channel: str = DEFAULT_CHANNEL,
) -> None:
    """Record a select-attribute value (option id) for a product. Idempotent."""
    unique_id = f"{channel}|{product_id}|{attribute_id}"
    conn.execute(
        """
        INSERT OR IGNORE INTO product_attribute_values
            (channel, integer_value, product_id, attribute_id, unique_id)
        VALUES (?, ?, ?, ?, ?)
        """,
        (channel, integer_value, product_id, attribute_id, unique_id),
    )


def add_product_category(conn: sqlite3.Connection, product_id: int, category_id: int) -> None:
    """Associate a product with a category. Idempotent."""
    conn.execute(
        "INSERT OR IGNORE INTO product_categories (product_id, category_id) VALUES (?, ?)",
        (product_id, category_id),
    )


# =============================================================================
# Source mapping and import state
# =============================================================================

def source_product_exists(conn: sqlite3.Connection, shopify_product_id: int) -> bool:
    return conn.execute(
        "SELECT 1 FROM shopify_products WHERE shopify_product_id = ?", (shopify_product_id,)
    ).fetchone() is not None


def source_variant_exists(conn: sqlite3.Connection, shopify_variant_id: int) -> bool:
    return conn.execute(
        "SELECT 1 FROM shopify_variants WHERE shopify_variant_id = ?", (shopify_variant_id,)
    ).fetchone() is not None


def record_source_product(
    conn: sqlite3.Connection,
    shopify_product_id: int,
    catalog_product_id: int,
    handle: str,
    sku: str,
    shopify_updated_at: Optional[str],
) -> None:
    conn.execute(
        """
        INSERT INTO shopify_products (shopify_product_id, catalog_product_id, shopify_handle,
                                      sku, shopify_updated_at, last_synced_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (shopify_product_id, catalog_product_id, handle, sku, shopify_updated_at, _now()),
    )


def record_source_variant(
    conn: sqlite3.Connection,
    shopify_variant_id: int,
    shopify_product_id: Optional[int],
    catalog_product_id: int,
    sku: str,
    shopify_updated_at: Optional[str],
) -> None:
    conn.execute(
        """
        INSERT INTO shopify_variants (shopify_variant_id, shopify_product_id, catalog_product_id,
                                      sku, shopify_updated_at, last_synced_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (shopify_variant_id, shopify_product_id, catalog_product_id, sku, shopify_updated_at, _now()),
    )


def update_import_state(
    conn: sqlite3.Connection,
    store_url: str,
    last_page: int,
    pages_processed: int,
) -> None:
    """Record the last fully processed page for a store."""
    conn.execute(
        """
        INSERT INTO import_state (store_url, last_page_imported, pages_processed, last_imported_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(store_url) DO UPDATE SET
            last_page_imported = excluded.last_page_imported,
            pages_processed = excluded.pages_processed,
            last_imported_at = excluded.last_imported_at
        """,
        (store_url, last_page, pages_processed, _now()),
    )


def get_import_state(conn: sqlite3.Connection, store_url: str) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT last_page_imported, pages_processed, last_imported_at FROM import_state WHERE store_url = ?",
        (store_url,),
    ).fetchone()
    if row:
        return {
            "last_page_imported": row["last_page_imported"],
            "pages_processed": row["pages_processed"],
            "last_imported_at": row["last_imported_at"],
        }
    return None


def get_catalog_counts(conn: sqlite3.Connection) -> Dict[str, int]:
    """Row counts for the catalog tables the importer writes."""
    queries = {
        "products": "SELECT COUNT(*) FROM products",
        "configurable_products": "SELECT COUNT(*) FROM products WHERE type = 'configurable'",
        "simple_products": "SELECT COUNT(*) FROM products WHERE type = 'simple'",
        "variants": "SELECT COUNT(*) FROM products WHERE parent_id IS NOT NULL",
        "categories": "SELECT COUNT(*) FROM categories",
        "attributes": "SELECT COUNT(*) FROM attributes",
        "attribute_options": "SELECT COUNT(*) FROM attribute_options",
        "product_images": "SELECT COUNT(*) FROM product_images",
        "locales": "SELECT COUNT(*) FROM locales",
    }
    return {name: conn.execute(sql).fetchone()[0] for name, sql in queries.items()}
