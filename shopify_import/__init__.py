"""Shopify storefront to catalog importer package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from shopify_import.assembler import ProductAssembler
from shopify_import.config import DB_PATH, DEFAULT_PER_PAGE, STORAGE_DIR
from shopify_import.db import get_connection, init_db, transaction
from shopify_import.driver import DriverPolicy, ImportDriver, next_action
from shopify_import.exceptions import ShopifyImportError
from shopify_import.media import MediaFetcher
from shopify_import.models import ImportSummary, ProductResult, SourceProduct
from shopify_import.resolver import EntityResolver, load_locales
from shopify_import.source_client import SourceClient

__all__ = [
    # Version
    "__version__",
    # Config
    "DB_PATH",
    "DEFAULT_PER_PAGE",
    "STORAGE_DIR",
    # Models
    "SourceProduct",
    "ProductResult",
    "ImportSummary",
    "ShopifyImportError",
    # Storage
    "get_connection",
    "init_db",
    "transaction",
    # Pipeline
    "SourceClient",
    "EntityResolver",
    "load_locales",
    "MediaFetcher",
    "ProductAssembler",
    "DriverPolicy",
    "ImportDriver",
    "next_action",
]
