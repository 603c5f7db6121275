"""Pagination loop for one import run.

The paging rules live in ``next_action``, a pure function over a small state
record, so they can be tested without HTTP or a database. ``ImportDriver``
does the I/O: it fetches pages, hands products to the assembler, records the
import state and builds the summary.
"""

import sqlite3
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from shopify_import import db
from shopify_import.assembler import ProductAssembler
from shopify_import.config import (
    DEFAULT_CURRENT_PAGE,
    DEFAULT_PER_PAGE,
    FAILED_PAGE_MAX_ATTEMPTS,
    FAILED_PAGE_RETRY_DELAY,
    MIN_PAGES_PROCESSED,
    PAGE_DELAY,
)
from shopify_import.logging_config import get_logger, log_import_event
from shopify_import.models import ImportSummary, PageResult, ProductStatus
from shopify_import.resolver import EntityResolver
from shopify_import.shutdown import ShutdownHandler, get_shutdown_handler
from shopify_import.source_client import SourceClient

__all__ = [
    "Action",
    "Decision",
    "DriverPolicy",
    "DriverState",
    "EventKind",
    "ImportDriver",
    "PageEvent",
    "apply_decision",
    "check_page_limit",
    "next_action",
]

logger = get_logger("driver")


# =============================================================================
# State machine
# =============================================================================

class Action(str, Enum):
    RETRY_PAGE = "retry_page"
    ADVANCE = "advance"
    TERMINATE = "terminate"


class EventKind(str, Enum):
    FETCH_FAILED = "fetch_failed"
    EMPTY_PAGE = "empty_page"
    PAGE_DONE = "page_done"


@dataclass(frozen=True)
class PageEvent:
    """What happened to the current page. ``count`` is set for PAGE_DONE."""

    kind: EventKind
    count: int = 0

    @classmethod
    def fetch_failed(cls) -> "PageEvent":
        return cls(EventKind.FETCH_FAILED)

    @classmethod
    def empty_page(cls) -> "PageEvent":
        return cls(EventKind.EMPTY_PAGE)

    @classmethod
    def page_done(cls, count: int) -> "PageEvent":
        return cls(EventKind.PAGE_DONE, count)


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str = ""


@dataclass(frozen=True)
class DriverPolicy:
    """Limits and delays for one run."""

    per_page: int = DEFAULT_PER_PAGE
    max_pages: Optional[int] = None
    min_pages: int = MIN_PAGES_PROCESSED
    max_fetch_attempts: int = FAILED_PAGE_MAX_ATTEMPTS
    page_delay: float = PAGE_DELAY
    retry_delay: float = FAILED_PAGE_RETRY_DELAY


@dataclass(frozen=True)
class DriverState:
    """Position of the run.

    ``fetch_attempts`` counts attempts at ``current_page`` including the one
    that produced the event being decided.
    """

    current_page: int = DEFAULT_CURRENT_PAGE
    pages_processed: int = 0
    fetch_attempts: int = 0


def check_page_limit(state: DriverState, policy: DriverPolicy) -> Optional[Decision]:
    """Decide, before a fetch, whether the page limit has been reached."""
    if policy.max_pages is not None and state.pages_processed >= policy.max_pages:
        return Decision(Action.TERMINATE, f"reached max pages ({policy.max_pages})")
    return None


def next_action(state: DriverState, event: PageEvent, policy: DriverPolicy) -> Decision:
    """Decide what to do after a page event.

    Below the minimum page floor, failures are retried and empty pages are
    skipped over; once the floor is met either one ends the run. A short page
    ends the run only once the floor is met.
    """
    below_floor = state.pages_processed < policy.min_pages

    if event.kind is EventKind.FETCH_FAILED:
        if not below_floor:
            return Decision(Action.TERMINATE, f"page {state.current_page} failed")
        if state.fetch_attempts >= policy.max_fetch_attempts:
            return Decision(
                Action.TERMINATE,
                f"page {state.current_page} failed {state.fetch_attempts} times",
            )
        return Decision(Action.RETRY_PAGE, f"page {state.current_page} failed, retrying")

    if event.kind is EventKind.EMPTY_PAGE:
        if below_floor:
            return Decision(Action.ADVANCE, f"page {state.current_page} empty")
        return Decision(Action.TERMINATE, "no more products")

    processed = state.pages_processed + 1
    if event.count < policy.per_page and processed >= policy.min_pages:
        return Decision(Action.TERMINATE, f"last page ({event.count} products)")
    return Decision(Action.ADVANCE)


def apply_decision(state: DriverState, event: PageEvent, decision: Decision) -> DriverState:
    """Return the state after ``decision`` has been carried out."""
    if decision.action is Action.RETRY_PAGE:
        return state

    processed = state.pages_processed
    if event.kind is not EventKind.FETCH_FAILED:
        processed += 1

    if decision.action is Action.ADVANCE:
        return DriverState(
            current_page=state.current_page + 1,
            pages_processed=processed,
            fetch_attempts=0,
        )
    if event.kind is EventKind.PAGE_DONE:
        return replace(state, pages_processed=processed)
    return state


# =============================================================================
# Driver
# =============================================================================

class ImportDriver:
    """Runs the page loop for one store."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        client: SourceClient,
        assembler: ProductAssembler,
        resolver: EntityResolver,
        policy: Optional[DriverPolicy] = None,
        start_page: int = DEFAULT_CURRENT_PAGE,
        store_url: Optional[str] = None,
        shutdown: Optional[ShutdownHandler] = None,
    ) -> None:
        self.conn = conn
        self.client = client
        self.assembler = assembler
        self.resolver = resolver
        self.policy = policy or DriverPolicy(per_page=client.per_page)
        self.start_page = start_page
        self.store_url = store_url or client.base_url
        self.shutdown = shutdown or get_shutdown_handler()

    def run(self) -> ImportSummary:
        summary = ImportSummary()
        state = DriverState(current_page=self.start_page)

        logger.info(f"Importing from {self.store_url} starting at page {self.start_page}")
        log_import_event("import_start", {
            "store_url": self.store_url,
            "start_page": self.start_page,
            "per_page": self.policy.per_page,
            "max_pages": self.policy.max_pages,
        }, logger_name="driver")

        while True:
            if self.shutdown.shutdown_requested:
                summary.status = "interrupted"
                summary.termination_reason = "shutdown requested"
                break

            limit = check_page_limit(state, self.policy)
            if limit:
                summary.termination_reason = limit.reason
                break

            page = state.current_page
            logger.info(f"Page {page}: {self.client.page_url(page)}")
            result = self.client.fetch_page(page)
            state = replace(state, fetch_attempts=state.fetch_attempts + 1)

            if not result.ok:
                event = PageEvent.fetch_failed()
            elif result.is_empty:
                event = PageEvent.empty_page()
            else:
                if not self._import_page(result, summary):
                    summary.status = "interrupted"
                    summary.termination_reason = "shutdown requested"
                    break
                event = PageEvent.page_done(result.raw_count)

            decision = next_action(state, event, self.policy)
            state = apply_decision(state, event, decision)

            if event.kind is EventKind.PAGE_DONE:
                summary.last_page = page
                db.update_import_state(self.conn, self.store_url, page, state.pages_processed)

            if decision.action is Action.TERMINATE:
                if event.kind is EventKind.FETCH_FAILED:
                    summary.status = "stopped"
                summary.termination_reason = decision.reason
                break
            if decision.action is Action.RETRY_PAGE:
                logger.warning(
                    f"{decision.reason} in {self.policy.retry_delay:.0f}s "
                    f"(attempt {state.fetch_attempts}/{self.policy.max_fetch_attempts})"
                )
                time.sleep(self.policy.retry_delay)
                continue

            if decision.reason:
                logger.info(decision.reason)
            if event.kind is EventKind.PAGE_DONE:
                time.sleep(self.policy.page_delay)

        summary.pages_processed = state.pages_processed
        summary.brands_created = self.resolver.created["brands"]
        summary.categories_created = self.resolver.created["categories"]
        summary.attributes_created = self.resolver.created["attributes"]
        summary.options_created = self.resolver.created["options"]

        logger.info(
            f"Import {summary.status} ({summary.termination_reason}): "
            f"{summary.imported} imported, {summary.skipped} skipped, "
            f"{summary.failed} failed, {summary.invalid} invalid, "
            f"{summary.pages_processed} pages"
        )
        log_import_event("import_complete", {
            "store_url": self.store_url,
            "status": summary.status,
            "reason": summary.termination_reason,
            "imported": summary.imported,
            "skipped": summary.skipped,
            "failed": summary.failed,
            "invalid": summary.invalid,
            "pages_processed": summary.pages_processed,
            "last_page": summary.last_page,
        }, logger_name="driver")
        return summary

    def _import_page(self, result: PageResult, summary: ImportSummary) -> bool:
        """Import every product on a page.

        Returns:
            False if a shutdown was requested before the page was finished
        """
        summary.invalid += result.invalid
        total = len(result.products)

        for i, source in enumerate(result.products, start=1):
            if self.shutdown.shutdown_requested:
                logger.info("Shutdown requested, stopping after current product")
                return False

            outcome = self.assembler.import_product(source)
            summary.record(outcome)

            if outcome.status is ProductStatus.IMPORTED:
                logger.info(f"  [{i}/{total}] {source.title} -> {outcome.sku}")
            elif outcome.status is ProductStatus.SKIPPED:
                logger.info(f"  [{i}/{total}] SKIP {source.title}: {outcome.reason}")
            else:
                logger.info(f"  [{i}/{total}] FAILED {source.title}: {outcome.reason}")

        return True
