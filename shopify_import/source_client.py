"""Client for the storefront's public ``products.json`` feed."""

import time
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from shopify_import.config import (
    DEFAULT_PER_PAGE,
    HEADERS,
    PAGE_FETCH_RETRIES,
    PAGE_FETCH_RETRY_DELAY,
    REQUEST_TIMEOUT,
    RETRY_STATUS_CODES,
)
from shopify_import.exceptions import InvalidSourceProduct, SourceFetchError
from shopify_import.logging_config import get_logger, log_import_event
from shopify_import.models import PageResult, SourceProduct

__all__ = ["create_session", "SourceClient"]

logger = get_logger("source_client")


def create_session() -> requests.Session:
    """Create a requests Session with connection pooling and default headers."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


class SourceClient:
    """Fetches pages of products from one storefront.

    Usage:
        client = SourceClient("https://shop.example.com", per_page=250)
        result = client.fetch_page(1)
        if result.ok and not result.is_empty:
            ...
    """

    def __init__(
        self,
        base_url: str,
        per_page: int = DEFAULT_PER_PAGE,
        session: Optional[requests.Session] = None,
        retries: int = PAGE_FETCH_RETRIES,
        retry_delay: float = PAGE_FETCH_RETRY_DELAY,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.per_page = per_page
        self.session = session or create_session()
        self.retries = retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    def page_url(self, page: int) -> str:
        return f"{self.base_url}/products.json?limit={self.per_page}&page={page}"

    def fetch_page(self, page: int) -> PageResult:
        """Fetch and parse one page of the feed.

        Never raises for transport problems: those become a failed result.
        """
        try:
            payload = self._get_json(self.page_url(page))
        except SourceFetchError as e:
            logger.error(f"Failed to fetch page {page}: {e}")
            log_import_event("page_fetch_failed", {
                "page": page,
                "status_code": e.status_code,
                "error": str(e),
            }, logger_name="source_client")
            return PageResult.failure(e.status_code)

        raw_products = payload.get("products") if isinstance(payload, dict) else None
        if not isinstance(raw_products, list):
            logger.error(f"Page {page} response has no 'products' list")
            return PageResult.failure(None)

        products, invalid = self._parse_products(raw_products, page)
        log_import_event("page_fetch", {
            "message": f"Fetched page {page}: {len(raw_products)} products",
            "page": page,
            "products": len(products),
            "invalid": invalid,
        }, logger_name="source_client")
        return PageResult.success(products, invalid=invalid)

    def _parse_products(self, raw_products: List[Any], page: int):
        products: List[SourceProduct] = []
        invalid = 0
        for raw in raw_products:
            try:
                products.append(SourceProduct.from_json(raw))
            except InvalidSourceProduct as e:
                invalid += 1
                logger.warning(f"Skipping invalid product on page {page}: {e}")
        return products, invalid

    def _get_json(self, url: str) -> Dict[str, Any]:
        """GET a JSON document, retrying transient failures with a fixed delay.

        Raises:
            SourceFetchError: On a non-retryable status, an undecodable body,
                or when all retries are exhausted
        """
        last_error: Optional[SourceFetchError] = None

        for attempt in range(self.retries + 1):
            try:
                resp = self.session.get(url, timeout=self.timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                last_error = SourceFetchError(f"{type(e).__name__} fetching {url}: {e}")
            except requests.exceptions.RequestException as e:
                raise SourceFetchError(f"Request error fetching {url}: {e}") from e
            else:
                if resp.status_code in RETRY_STATUS_CODES:
                    last_error = SourceFetchError(
                        f"HTTP {resp.status_code} fetching {url}", status_code=resp.status_code
                    )
                elif resp.status_code >= 400:
                    raise SourceFetchError(
                        f"HTTP {resp.status_code} fetching {url}", status_code=resp.status_code
                    )
                else:
                    try:
                        return resp.json()
                    except ValueError as e:
                        raise SourceFetchError(
                            f"Invalid JSON from {url}: {e}", status_code=resp.status_code
                        ) from e

            if attempt < self.retries:
                logger.warning(
                    f"{last_error}, retrying in {self.retry_delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.retries})"
                )
                time.sleep(self.retry_delay)

        assert last_error is not None
        raise last_error
