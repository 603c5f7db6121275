"""Configuration and constants for the importer."""

import os
from pathlib import Path

from dotenv import load_dotenv

__all__ = [
    "HEADERS",
    "REQUEST_TIMEOUT",
    "IMAGE_TIMEOUT",
    "PAGE_FETCH_RETRIES",
    "PAGE_FETCH_RETRY_DELAY",
    "IMAGE_FETCH_RETRIES",
    "IMAGE_FETCH_RETRY_DELAY",
    "RETRY_STATUS_CODES",
    "DEFAULT_PER_PAGE",
    "DEFAULT_CURRENT_PAGE",
    "MIN_PAGES_PROCESSED",
    "PAGE_DELAY",
    "FAILED_PAGE_RETRY_DELAY",
    "FAILED_PAGE_MAX_ATTEMPTS",
    "DB_PATH",
    "STORAGE_DIR",
    "STORE_URL",
    "TAXONOMY_IMAGES",
    "IMAGE_FORMAT",
    "IMAGE_EXTENSION",
    "DEFAULT_LOCALE",
    "DEFAULT_CHANNEL",
    "DEFAULT_INVENTORY_SOURCE_ID",
    "ATTRIBUTE_FAMILY_CODE",
    "BRAND_ATTRIBUTE_CODE",
    "CONFIGURABLE_SKU_SUFFIX",
    "META_DESCRIPTION_LENGTH",
]

load_dotenv()

_PROJECT_ROOT = Path(__file__).parent.parent

# HTTP headers sent to the storefront
HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
}

# Request timeouts (seconds)
REQUEST_TIMEOUT = 30
IMAGE_TIMEOUT = 20

# Fixed-delay retry settings
PAGE_FETCH_RETRIES = 3
PAGE_FETCH_RETRY_DELAY = 1.0
IMAGE_FETCH_RETRIES = 2
IMAGE_FETCH_RETRY_DELAY = 1.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# Pagination settings
DEFAULT_PER_PAGE = 250
DEFAULT_CURRENT_PAGE = 1
MIN_PAGES_PROCESSED = 3  # Failures and empty pages never end a run before this many pages
PAGE_DELAY = 1.0  # Politeness delay between page fetches
FAILED_PAGE_RETRY_DELAY = 5.0
FAILED_PAGE_MAX_ATTEMPTS = 10  # Retries below the floor stop after this many attempts at one page

# Storage (allow env overrides)
DB_PATH = os.getenv("SHOPIFY_IMPORT_DB_PATH", str(_PROJECT_ROOT / "data" / "catalog.db"))
STORAGE_DIR = os.getenv("SHOPIFY_IMPORT_STORAGE_DIR", str(_PROJECT_ROOT / "storage"))
STORE_URL = os.getenv("SHOPIFY_STORE_URL", "")

# Download the first product image as logo/swatch for newly created categories and brands
TAXONOMY_IMAGES = os.getenv("SHOPIFY_IMPORT_TAXONOMY_IMAGES", "False").lower() == "true"

# Every stored image is re-encoded to this format
IMAGE_FORMAT = "WEBP"
IMAGE_EXTENSION = "webp"

# Catalog defaults
DEFAULT_LOCALE = "en"
DEFAULT_CHANNEL = "default"
DEFAULT_INVENTORY_SOURCE_ID = 1
ATTRIBUTE_FAMILY_CODE = "default"
BRAND_ATTRIBUTE_CODE = "brand"
CONFIGURABLE_SKU_SUFFIX = "-parent"
META_DESCRIPTION_LENGTH = 160
