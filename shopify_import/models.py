"""Data models for the storefront feed, catalog entities and import results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from shopify_import.exceptions import InvalidSourceProduct
from shopify_import.html_utils import split_tags

__all__ = [
    "SourceOption",
    "SourceVariant",
    "SourceImage",
    "SourceProduct",
    "Locale",
    "AttributeFamily",
    "AttributeOption",
    "Attribute",
    "Category",
    "ProductStatus",
    "ProductResult",
    "PageResult",
    "ImportSummary",
]


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


# =============================================================================
# Storefront feed
# =============================================================================

@dataclass
class SourceOption:
    """A product option such as Size or Color, with its ordered values."""

    name: str
    position: int
    values: List[str] = field(default_factory=list)


@dataclass
class SourceImage:
    id: Optional[int]
    src: str
    position: int = 0


@dataclass
class SourceVariant:
    """One purchasable variant of a feed product."""

    id: Optional[int] = None
    sku: str = ""
    title: str = ""
    price: float = 0.0
    compare_at_price: Optional[float] = None
    weight: float = 0.0
    inventory_quantity: int = 0
    option1: Optional[str] = None
    option2: Optional[str] = None
    option3: Optional[str] = None
    image_id: Optional[int] = None
    updated_at: Optional[str] = None

    @property
    def option_values(self) -> List[Optional[str]]:
        """Option values in slot order (option1..option3)."""
        return [self.option1, self.option2, self.option3]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SourceVariant":
        weight = data.get("weight")
        if weight is None and data.get("grams") is not None:
            weight = _to_float(data.get("grams")) / 1000.0

        compare_at = data.get("compare_at_price")
        return cls(
            id=data.get("id"),
            sku=_to_str(data.get("sku")),
            title=_to_str(data.get("title")),
            price=_to_float(data.get("price")),
            compare_at_price=_to_float(compare_at) if compare_at not in (None, "") else None,
            weight=_to_float(weight),
            inventory_quantity=_to_int(data.get("inventory_quantity")),
            option1=_to_str(data.get("option1")) or None,
            option2=_to_str(data.get("option2")) or None,
            option3=_to_str(data.get("option3")) or None,
            image_id=data.get("image_id"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class SourceProduct:
    """A product record from ``/products.json``.

    Only ``title`` and at least one variant are required; every other
    field defaults to empty so the assembler can skip the matching step.
    """

    title: str
    variants: List[SourceVariant]
    id: Optional[int] = None
    handle: str = ""
    body_html: str = ""
    vendor: str = ""
    product_type: str = ""
    tags: List[str] = field(default_factory=list)
    options: List[SourceOption] = field(default_factory=list)
    images: List[SourceImage] = field(default_factory=list)
    featured_image: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_configurable(self) -> bool:
        return len(self.variants) > 1

    def image_by_id(self, image_id: Optional[int]) -> Optional[SourceImage]:
        if image_id is None:
            return None
        for image in self.images:
            if image.id == image_id:
                return image
        return None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SourceProduct":
        """Build a SourceProduct from one feed record.

        Raises:
            InvalidSourceProduct: If the record has no title or no variants
        """
        if not isinstance(data, dict):
            raise InvalidSourceProduct(f"expected an object, got {type(data).__name__}")

        title = _to_str(data.get("title"))
        if not title:
            raise InvalidSourceProduct(f"product {data.get('id')} has no title")

        raw_variants = data.get("variants") or []
        if isinstance(raw_variants, list):
            raw_variants = [v for v in raw_variants if isinstance(v, dict)]
        if not isinstance(raw_variants, list) or not raw_variants:
            raise InvalidSourceProduct(f"product {title!r} has no variants")

        options = []
        for index, option in enumerate(data.get("options") or [], start=1):
            name = _to_str(option.get("name")) if isinstance(option, dict) else ""
            if not name:
                continue
            options.append(SourceOption(
                name=name,
                position=_to_int(option.get("position"), index),
                values=[_to_str(v) for v in option.get("values") or [] if _to_str(v)],
            ))
        options.sort(key=lambda o: o.position)

        images = [
            SourceImage(
                id=image.get("id"),
                src=_to_str(image.get("src")),
                position=_to_int(image.get("position"), index),
            )
            for index, image in enumerate(data.get("images") or [], start=1)
            if isinstance(image, dict) and _to_str(image.get("src"))
        ]

        featured = data.get("image") or {}
        featured_src = _to_str(featured.get("src")) if isinstance(featured, dict) else ""
        if not featured_src and images:
            featured_src = images[0].src

        return cls(
            id=data.get("id"),
            title=title,
            handle=_to_str(data.get("handle")),
            body_html=data.get("body_html") or "",
            vendor=_to_str(data.get("vendor")),
            product_type=_to_str(data.get("product_type")),
            tags=split_tags(data.get("tags")),
            options=options,
            variants=[SourceVariant.from_json(v) for v in raw_variants],
            images=images,
            featured_image=featured_src or None,
            updated_at=data.get("updated_at"),
        )


# =============================================================================
# Catalog entities
# =============================================================================

@dataclass
class Locale:
    code: str
    name: str = ""
    id: Optional[int] = None


@dataclass
class AttributeFamily:
    id: int
    code: str
    name: str


@dataclass
class AttributeOption:
    id: int
    attribute_id: int
    admin_name: str
    sort_order: int = 0
    swatch_value: Optional[str] = None


@dataclass
class Attribute:
    """A select attribute and its options, in sort order."""

    id: int
    code: str
    admin_name: str
    type: str = "select"
    options: List[AttributeOption] = field(default_factory=list)

    def option_for(self, value: str) -> Optional[AttributeOption]:
        for option in self.options:
            if option.admin_name == value:
                return option
        return None


@dataclass
class Category:
    id: int
    name: str
    slug: str
    logo_path: Optional[str] = None


# =============================================================================
# Results
# =============================================================================

class ProductStatus(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ProductResult:
    """Outcome of importing one feed product."""

    status: ProductStatus
    title: str = ""
    sku: Optional[str] = None
    product_id: Optional[int] = None
    reason: Optional[str] = None
    error: Optional[BaseException] = None
    variants_created: int = 0
    variants_skipped: int = 0
    images_stored: int = 0

    @classmethod
    def imported(cls, title: str, sku: str, product_id: int, **counts: int) -> "ProductResult":
        return cls(ProductStatus.IMPORTED, title=title, sku=sku, product_id=product_id, **counts)

    @classmethod
    def skipped(cls, title: str, reason: str, sku: Optional[str] = None) -> "ProductResult":
        return cls(ProductStatus.SKIPPED, title=title, sku=sku, reason=reason)

    @classmethod
    def failed(cls, title: str, error: BaseException, sku: Optional[str] = None) -> "ProductResult":
        return cls(ProductStatus.FAILED, title=title, sku=sku, reason=str(error), error=error)


@dataclass
class PageResult:
    """One page fetch: either the parsed products or a failure status.

    An ok result with no products means the feed is exhausted.
    """

    ok: bool
    products: List[SourceProduct] = field(default_factory=list)
    status_code: Optional[int] = None
    invalid: int = 0
    raw_count: int = 0

    @classmethod
    def success(cls, products: List[SourceProduct], invalid: int = 0) -> "PageResult":
        return cls(ok=True, products=products, invalid=invalid, raw_count=len(products) + invalid)

    @classmethod
    def failure(cls, status_code: Optional[int] = None) -> "PageResult":
        return cls(ok=False, status_code=status_code)

    @property
    def is_empty(self) -> bool:
        return self.ok and self.raw_count == 0


@dataclass
class ImportSummary:
    """Counts for one run.

    ``status`` is ``complete``, ``stopped`` (a page fetch failed and ended the
    run early) or ``interrupted`` (shutdown requested).
    """

    imported: int = 0
    skipped: int = 0
    failed: int = 0
    invalid: int = 0
    pages_processed: int = 0
    last_page: Optional[int] = None
    brands_created: int = 0
    categories_created: int = 0
    attributes_created: int = 0
    options_created: int = 0
    status: str = "complete"
    termination_reason: str = ""

    def record(self, result: ProductResult) -> None:
        if result.status is ProductStatus.IMPORTED:
            self.imported += 1
        elif result.status is ProductStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
