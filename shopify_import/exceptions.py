"""Exceptions raised by the importer."""

__all__ = [
    "ShopifyImportError",
    "ConfigurationError",
    "SourceFetchError",
    "InvalidSourceProduct",
    "DuplicateSKU",
    "AlreadyImported",
]


class ShopifyImportError(Exception):
    """Base class for importer errors."""
    pass


class ConfigurationError(ShopifyImportError):
    """Raised when the run cannot start (missing or invalid store URL)."""
    pass


class SourceFetchError(ShopifyImportError):
    """Raised when a storefront request fails after all retries."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class InvalidSourceProduct(ShopifyImportError):
    """Raised when a feed record lacks the fields needed to import it."""
    pass


class DuplicateSKU(ShopifyImportError):
    """Raised when a SKU is already present in the catalog."""

    def __init__(self, sku: str):
        super().__init__(f"duplicate SKU {sku!r}")
        self.sku = sku


class AlreadyImported(ShopifyImportError):
    """Raised when a feed product id is already mapped to a catalog product."""

    def __init__(self, shopify_product_id: int):
        super().__init__(f"Shopify product {shopify_product_id} already imported")
        self.shopify_product_id = shopify_product_id
