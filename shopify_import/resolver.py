"""Memoizing get-or-create layer for catalog entities.

One ``EntityResolver`` lives for exactly one import run. Its caches map
human-readable names to catalog entities and are never shared across runs.
All writes go through the caller's connection so they join the caller's
transaction; when that transaction rolls back, ``discard_pending`` forgets
every cache entry created since the last ``commit_pending``.
"""

import sqlite3
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from shopify_import import db
from shopify_import.config import (
    ATTRIBUTE_FAMILY_CODE,
    BRAND_ATTRIBUTE_CODE,
    DEFAULT_LOCALE,
)
from shopify_import.html_utils import random_token, slugify
from shopify_import.logging_config import get_logger
from shopify_import.media import MediaFetcher
from shopify_import.models import (
    Attribute,
    AttributeFamily,
    AttributeOption,
    Category,
    Locale,
)

__all__ = ["EntityResolver", "load_locales"]

logger = get_logger("resolver")


def load_locales(conn: sqlite3.Connection) -> List[Locale]:
    """Load the active locales once per run, falling back to English."""
    locales = db.get_locales(conn)
    if not locales:
        logger.warning(f"No locales configured, defaulting to '{DEFAULT_LOCALE}'")
        return [Locale(code=DEFAULT_LOCALE, name="English")]
    return locales


class EntityResolver:
    """Get-or-create for brands, categories, the attribute family and attributes."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        locales: Iterable[Locale],
        media: Optional[MediaFetcher] = None,
    ) -> None:
        self.conn = conn
        self.locales = list(locales)
        self.media = media

        self._families: Dict[str, AttributeFamily] = {}
        self._attributes: Dict[str, Attribute] = {}
        self._brands: Dict[str, AttributeOption] = {}
        self._categories: Dict[str, Category] = {}

        self.created: Dict[str, int] = {
            "brands": 0,
            "categories": 0,
            "attributes": 0,
            "options": 0,
        }
        self._undo: List[Callable[[], None]] = []

    # -------------------------------------------------------------------------
    # Transaction bookkeeping
    # -------------------------------------------------------------------------

    def commit_pending(self) -> None:
        """Keep everything cached since the last checkpoint."""
        self._undo.clear()

    def discard_pending(self) -> None:
        """Forget cache entries and counts created since the last checkpoint."""
        while self._undo:
            self._undo.pop()()

    def _remember(self, mapping: Dict, key: str, value) -> None:
        mapping[key] = value
        self._undo.append(lambda: mapping.pop(key, None))

    def _count(self, name: str) -> None:
        self.created[name] += 1

        def undo() -> None:
            self.created[name] -= 1

        self._undo.append(undo)

    # -------------------------------------------------------------------------
    # Attribute family
    # -------------------------------------------------------------------------

    def resolve_attribute_family(self) -> AttributeFamily:
        code = ATTRIBUTE_FAMILY_CODE
        family = self._families.get(code)
        if family:
            return family

        row = db.find_attribute_family(self.conn, code)
        if row:
            family = AttributeFamily(id=row["id"], code=row["code"], name=row["name"])
        else:
            family_id = db.insert_attribute_family(self.conn, code, code.capitalize())
            family = AttributeFamily(id=family_id, code=code, name=code.capitalize())
            logger.info(f"Created attribute family: {code}")

        self._remember(self._families, code, family)
        return family

    # -------------------------------------------------------------------------
    # Attributes and options
    # -------------------------------------------------------------------------

    def _load_attribute(self, code: str) -> Optional[Attribute]:
        row = db.find_attribute(self.conn, code)
        if not row:
            return None
        options = [
            AttributeOption(
                id=o["id"],
                attribute_id=o["attribute_id"],
                admin_name=o["admin_name"],
                sort_order=o["sort_order"] or 0,
                swatch_value=o["swatch_value"],
            )
            for o in db.get_attribute_options(self.conn, row["id"])
        ]
        return Attribute(
            id=row["id"],
            code=row["code"],
            admin_name=row["admin_name"],
            type=row["type"],
            options=options,
        )

    def _ensure_option(
        self,
        attribute: Attribute,
        value: str,
        counter: str = "options",
    ) -> Tuple[AttributeOption, bool]:
        existing = attribute.option_for(value)
        if existing:
            return existing, False

        sort_order = len(attribute.options)
        option_id = db.insert_attribute_option(
            self.conn, attribute.id, value, sort_order, self.locales
        )
        option = AttributeOption(
            id=option_id,
            attribute_id=attribute.id,
            admin_name=value,
            sort_order=sort_order,
        )
        attribute.options.append(option)
        self._undo.append(lambda: attribute.options.remove(option))
        self._count(counter)
        return option, True

    def resolve_attribute(
        self,
        code: str,
        display_name: str,
        values: Iterable[str] = (),
        is_configurable: bool = True,
    ) -> Attribute:
        """Get or create a select attribute and make sure every value has an option.

        Values already known are reused; values seen for the first time are
        appended as new options after the existing ones.
        """
        attribute = self._attributes.get(code)
        if attribute is None:
            attribute = self._load_attribute(code)
            if attribute is None:
                attribute_id = db.insert_attribute(
                    self.conn, code, display_name, self.locales,
                    is_configurable=is_configurable,
                )
                attribute = Attribute(id=attribute_id, code=code, admin_name=display_name)
                self._count("attributes")
                logger.info(f"Created attribute: {display_name} ({code})")
            self._remember(self._attributes, code, attribute)

        new_values = []
        for value in values:
            if value:
                _, created = self._ensure_option(attribute, value)
                if created:
                    new_values.append(value)
        if new_values:
            logger.debug(f"Added {len(new_values)} option(s) to {code}: {', '.join(new_values)}")

        return attribute

    def find_option(self, attribute: Attribute, value: Optional[str]) -> Optional[AttributeOption]:
        if not value:
            return None
        return attribute.option_for(value)

    # -------------------------------------------------------------------------
    # Brands
    # -------------------------------------------------------------------------

    def resolve_brand(self, vendor_name: str, image_url: Optional[str] = None) -> Optional[AttributeOption]:
        """Get or create the ``brand`` attribute option for a vendor name.

        Returns None for an empty vendor. ``image_url`` is only used when the
        option is created, and only if a media fetcher is configured.
        """
        name = (vendor_name or "").strip()
        if not name:
            return None

        cached = self._brands.get(name)
        if cached:
            return cached

        brand_attribute = self.resolve_attribute(
            BRAND_ATTRIBUTE_CODE, "Brand", is_configurable=False
        )
        option, created = self._ensure_option(brand_attribute, name, counter="brands")
        if created:
            logger.info(f"Created brand: {name}")
            if image_url and self.media:
                path = self.media.download(image_url, "attribute_option", option.id)
                if path:
                    db.set_option_swatch(self.conn, option.id, path)
                    option.swatch_value = path

        self._remember(self._brands, name, option)
        return option

    @property
    def brand_attribute(self) -> Optional[Attribute]:
        return self._attributes.get(BRAND_ATTRIBUTE_CODE)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def resolve_category(self, name: str, image_url: Optional[str] = None) -> Optional[Category]:
        """Get or create a category by its display name.

        Description and meta fields of new categories are templated from the name.
        """
        name = (name or "").strip()
        if not name:
            return None

        cached = self._categories.get(name)
        if cached:
            return cached

        row = db.find_category_by_name(self.conn, name)
        if row:
            category = Category(id=row["id"], name=row["name"], slug=row["slug"], logo_path=row["logo_path"])
        else:
            slug = slugify(name) or f"category-{random_token(6)}"
            category_id = db.insert_category(
                self.conn,
                name,
                slug,
                self.locales,
                description=name,
                meta_title=name,
                meta_description=name,
                meta_keywords=name,
            )
            category = Category(id=category_id, name=name, slug=slug)
            self._count("categories")
            logger.info(f"Created category: {name}")

            if image_url and self.media:
                path = self.media.download(image_url, "category", category_id)
                if path:
                    db.set_category_logo(self.conn, category_id, path)
                    category.logo_path = path

        self._remember(self._categories, name, category)
        return category
