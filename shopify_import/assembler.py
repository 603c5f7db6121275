"""Maps one feed product into catalog rows inside a single transaction."""

import hashlib
import sqlite3
from typing import Dict, List, Optional

from shopify_import import db
from shopify_import.config import (
    BRAND_ATTRIBUTE_CODE,
    CONFIGURABLE_SKU_SUFFIX,
    META_DESCRIPTION_LENGTH,
)
from shopify_import.exceptions import AlreadyImported, DuplicateSKU
from shopify_import.html_utils import random_token, slugify, strip_html, truncate
from shopify_import.logging_config import get_logger, log_import_event
from shopify_import.media import MediaFetcher
from shopify_import.models import (
    Attribute,
    Category,
    Locale,
    ProductResult,
    SourceProduct,
    SourceVariant,
)
from shopify_import.resolver import EntityResolver

__all__ = ["ProductAssembler", "canonical_sku", "option_attribute_code", "DEFAULT_TITLE_VALUE"]

logger = get_logger("assembler")

# Shopify gives products without real options a "Title" option with this single value
DEFAULT_TITLE_VALUE = "Default Title"


def canonical_sku(source: SourceProduct) -> str:
    """First variant's SKU, or a slug of the title plus a random suffix."""
    first_sku = source.variants[0].sku if source.variants else ""
    if first_sku:
        return first_sku
    base = slugify(source.title) or "product"
    return f"{base}-{random_token(8)}".upper()


def option_attribute_code(name: str) -> str:
    """Attribute code for a feed option name.

    Names with no ASCII letters or digits get a code derived from a hash of
    the name, so the same name always maps to the same attribute. The brand
    attribute's code is never returned.

    >>> option_attribute_code("Shoe Size")
    'shoe_size'
    >>> option_attribute_code("Brand")
    'option_brand'
    """
    code = slugify(name, "_")
    if not code:
        digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:10]
        return f"option_{digest}"
    if code == BRAND_ATTRIBUTE_CODE:
        return f"option_{code}"
    return code


class ProductAssembler:
    """Creates the parent product, its variants and all links for a feed product.

    Every call to ``import_product`` is one transaction: either all rows for
    the product are committed, or none are.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        resolver: EntityResolver,
        media: Optional[MediaFetcher],
        locales: List[Locale],
        taxonomy_images: bool = False,
    ) -> None:
        self.conn = conn
        self.resolver = resolver
        self.media = media
        self.locales = locales
        self.taxonomy_images = taxonomy_images

    def import_product(self, source: SourceProduct) -> ProductResult:
        """Import one feed product.

        Returns:
            ProductResult: imported, skipped (duplicate SKU) or failed (any
            other error; every row written for the product is rolled back)
        """
        sku = None
        try:
            with db.transaction(self.conn):
                sku = canonical_sku(source)
                result = self._assemble(source, sku)
        except (DuplicateSKU, AlreadyImported) as e:
            self.resolver.discard_pending()
            logger.warning(f"Skipping {source.title!r}: {e}")
            log_import_event("product_skipped", {
                "title": source.title,
                "sku": sku,
                "reason": str(e),
            }, logger_name="assembler")
            return ProductResult.skipped(source.title, str(e), sku=sku)
        except Exception as e:
            self.resolver.discard_pending()
            logger.error(f"Failed to import {source.title!r}: {e}")
            logger.debug("Import failure details", exc_info=True)
            log_import_event("product_failed", {
                "title": source.title,
                "sku": sku,
                "error": str(e),
                "error_type": type(e).__name__,
            }, logger_name="assembler")
            return ProductResult.failed(source.title, e, sku=sku)

        self.resolver.commit_pending()
        log_import_event("product_imported", {
            "title": source.title,
            "sku": result.sku,
            "product_id": result.product_id,
            "variants_created": result.variants_created,
            "variants_skipped": result.variants_skipped,
            "images_stored": result.images_stored,
        }, logger_name="assembler")
        return result

    # -------------------------------------------------------------------------
    # Assembly steps
    # -------------------------------------------------------------------------

    def _assemble(self, source: SourceProduct, sku: str) -> ProductResult:
        configurable = source.is_configurable
        parent_sku = f"{sku}{CONFIGURABLE_SKU_SUFFIX}" if configurable else sku

        if source.id is not None and db.source_product_exists(self.conn, source.id):
            raise AlreadyImported(source.id)
        for candidate in dict.fromkeys([sku, parent_sku]):
            if db.sku_exists(self.conn, candidate):
                raise DuplicateSKU(candidate)

        taxonomy_image = source.featured_image if self.taxonomy_images else None
        brand = self.resolver.resolve_brand(source.vendor, taxonomy_image)
        categories: List[Category] = []
        if source.product_type:
            category = self.resolver.resolve_category(source.product_type, taxonomy_image)
            if category:
                categories.append(category)

        family = self.resolver.resolve_attribute_family()
        attributes = self._resolve_options(source)

        product_id = self._create_parent(source, parent_sku, family.id, attributes)

        if brand is not None:
            db.add_attribute_value(self.conn, product_id, brand.attribute_id, brand.id)

        for category in categories:
            db.add_product_category(self.conn, product_id, category.id)

        images_stored = self._store_product_images(source, product_id)

        variants_created = variants_skipped = 0
        if configurable:
            variants_created, variants_skipped = self._create_variants(
                source, sku, product_id, family.id, attributes
            )
        else:
            variant = source.variants[0]
            db.update_product_inventory(self.conn, product_id, variant.inventory_quantity)
            if variant.id is not None and not db.source_variant_exists(self.conn, variant.id):
                db.record_source_variant(
                    self.conn, variant.id, source.id, product_id, parent_sku, variant.updated_at
                )

        for tag in source.tags:
            category = self.resolver.resolve_category(tag)
            if category:
                db.add_product_category(self.conn, product_id, category.id)

        return ProductResult.imported(
            source.title,
            parent_sku,
            product_id,
            variants_created=variants_created,
            variants_skipped=variants_skipped,
            images_stored=images_stored,
        )

    def _resolve_options(self, source: SourceProduct) -> Dict[int, Attribute]:
        """Resolve one attribute per feed option, keyed by option position (1-3).

        Variants carry their values in ``option1``..``option3``, which follow
        the option positions, so nameless options dropped from the feed must
        not shift the others.
        """
        attributes: Dict[int, Attribute] = {}
        for option in source.options:
            slot = option.position
            if slot not in (1, 2, 3) or slot in attributes:
                logger.warning(f"Ignoring option {option.name!r} at position {slot} of {source.title!r}")
                continue
            if option.values == [DEFAULT_TITLE_VALUE]:
                continue
            code = option_attribute_code(option.name)
            attributes[slot] = self.resolver.resolve_attribute(code, option.name, option.values)
        return attributes

    def _flat_fields(
        self,
        source: SourceProduct,
        sku: str,
        product_type: str,
        variant: SourceVariant,
        name: str,
        family_id: int,
        parent_id: Optional[int] = None,
    ) -> Dict[str, object]:
        body_text = strip_html(source.body_html)
        special_price = None
        if variant.compare_at_price and variant.compare_at_price > variant.price:
            special_price = variant.price
        price = variant.compare_at_price if special_price is not None else variant.price

        return {
            "sku": sku,
            "type": product_type,
            "name": name,
            "url_key": f"{slugify(name) or 'product'}-{slugify(sku)}",
            "short_description": body_text,
            "description": source.body_html,
            "status": 1,
            "visible_individually": 0 if parent_id else 1,
            "meta_title": name,
            "meta_keywords": ", ".join(source.tags),
            "meta_description": truncate(body_text, META_DESCRIPTION_LENGTH),
            "price": price,
            "special_price": special_price,
            "weight": variant.weight,
            "attribute_family_id": family_id,
            "parent_id": parent_id,
        }

    def _create_parent(
        self,
        source: SourceProduct,
        sku: str,
        family_id: int,
        attributes: Dict[int, Attribute],
    ) -> int:
        product_type = "configurable" if source.is_configurable else "simple"
        super_attribute_ids = [a.id for _, a in sorted(attributes.items())]

        additional = None
        if source.is_configurable and super_attribute_ids:
            additional = {"super_attributes": super_attribute_ids}

        product_id = db.insert_product(self.conn, sku, product_type, family_id, additional=additional)

        first_variant = source.variants[0]
        fields = self._flat_fields(source, sku, product_type, first_variant, source.title, family_id)
        for locale in self.locales:
            db.insert_product_flat(self.conn, product_id, locale.code, fields)

        db.insert_product_inventory(self.conn, product_id, first_variant.inventory_quantity)

        if source.is_configurable:
            for attribute_id in super_attribute_ids:
                db.add_super_attribute(self.conn, product_id, attribute_id)

        if source.id is not None:
            db.record_source_product(
                self.conn, source.id, product_id, source.handle, sku, source.updated_at
            )

        logger.debug(f"Created {product_type} product {sku} (id {product_id})")
        return product_id

    def _store_product_images(self, source: SourceProduct, product_id: int) -> int:
        if not self.media or not source.images:
            return 0

        stored = 0
        for image in source.images:
            path = self.media.download(image.src, "product", product_id)
            if not path:
                continue
            db.insert_product_image(self.conn, product_id, path, stored)
            if stored == 0:
                db.set_product_base_image(self.conn, product_id, path)
            stored += 1
        return stored

    def _create_variants(
        self,
        source: SourceProduct,
        base_sku: str,
        parent_id: int,
        family_id: int,
        attributes: Dict[int, Attribute],
    ):
        created = skipped = 0

        for index, variant in enumerate(source.variants, start=1):
            variant_sku = variant.sku or f"{base_sku}-V{index}"
            if db.sku_exists(self.conn, variant_sku):
                skipped += 1
                logger.warning(f"Skipping variant {variant.title!r} of {source.title!r}: duplicate SKU {variant_sku!r}")
                continue
            if variant.id is not None and db.source_variant_exists(self.conn, variant.id):
                skipped += 1
                logger.warning(f"Skipping variant {variant.id} of {source.title!r}: already imported")
                continue

            name = f"{source.title} - {variant.title}" if variant.title else source.title
            variant_id = db.insert_product(
                self.conn, variant_sku, "simple", family_id, parent_id=parent_id
            )
            fields = self._flat_fields(
                source, variant_sku, "simple", variant, name, family_id, parent_id=parent_id
            )
            for locale in self.locales:
                db.insert_product_flat(self.conn, variant_id, locale.code, fields)
            db.insert_product_inventory(self.conn, variant_id, variant.inventory_quantity)

            for slot, value in enumerate(variant.option_values, start=1):
                attribute = attributes.get(slot)
                if attribute is None or not value:
                    continue
                option = self.resolver.find_option(attribute, value)
                if option is None:
                    logger.warning(f"No option {value!r} on attribute {attribute.code} for {variant_sku}")
                    continue
                db.add_attribute_value(self.conn, variant_id, attribute.id, option.id)

            image = source.image_by_id(variant.image_id)
            if image and self.media:
                path = self.media.download(image.src, "product", variant_id)
                if path:
                    db.insert_product_image(self.conn, variant_id, path, 0)
                    db.set_product_base_image(self.conn, variant_id, path)

            if variant.id is not None:
                db.record_source_variant(
                    self.conn, variant.id, source.id, variant_id, variant_sku, variant.updated_at
                )
            created += 1

        if created < 2:
            logger.warning(f"Configurable product {source.title!r} has only {created} variant(s)")
        return created, skipped
