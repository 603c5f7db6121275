"""Tests for the pagination state machine and the import loop."""

from unittest.mock import patch

import pytest

from conftest import make_product
from shopify_import import db
from shopify_import.assembler import ProductAssembler
from shopify_import.driver import (
    Action,
    DriverPolicy,
    DriverState,
    ImportDriver,
    PageEvent,
    apply_decision,
    check_page_limit,
    next_action,
)
from shopify_import.models import PageResult, SourceProduct
from shopify_import.resolver import EntityResolver
from shopify_import.shutdown import ShutdownHandler

POLICY = DriverPolicy(per_page=250, min_pages=3, max_fetch_attempts=5)


class TestNextAction:

    def test_fetch_failure_below_floor_retries(self):
        decision = next_action(DriverState(1, 0, 1), PageEvent.fetch_failed(), POLICY)
        assert decision.action is Action.RETRY_PAGE

    def test_fetch_failure_after_floor_terminates(self):
        decision = next_action(DriverState(4, 3, 1), PageEvent.fetch_failed(), POLICY)
        assert decision.action is Action.TERMINATE

    def test_fetch_failure_gives_up_after_max_attempts(self):
        decision = next_action(DriverState(1, 0, 5), PageEvent.fetch_failed(), POLICY)
        assert decision.action is Action.TERMINATE
        assert "5 times" in decision.reason

    def test_empty_page_below_floor_advances(self):
        state = DriverState(2, 1, 1)
        decision = next_action(state, PageEvent.empty_page(), POLICY)

        assert decision.action is Action.ADVANCE
        assert apply_decision(state, PageEvent.empty_page(), decision) == DriverState(3, 2, 0)

    def test_empty_page_after_floor_terminates(self):
        decision = next_action(DriverState(4, 3, 1), PageEvent.empty_page(), POLICY)
        assert decision.action is Action.TERMINATE

    def test_full_page_advances(self):
        decision = next_action(DriverState(5, 4, 1), PageEvent.page_done(250), POLICY)
        assert decision.action is Action.ADVANCE

    def test_short_page_terminates_once_floor_met(self):
        state = DriverState(3, 2, 1)
        event = PageEvent.page_done(37)
        decision = next_action(state, event, POLICY)

        assert decision.action is Action.TERMINATE
        assert apply_decision(state, event, decision).pages_processed == 3

    def test_short_page_below_floor_advances(self):
        decision = next_action(DriverState(1, 0, 1), PageEvent.page_done(37), POLICY)
        assert decision.action is Action.ADVANCE

    def test_retry_keeps_state(self):
        state = DriverState(1, 0, 2)
        event = PageEvent.fetch_failed()
        assert apply_decision(state, event, next_action(state, event, POLICY)) == state

    def test_page_limit(self):
        limited = DriverPolicy(max_pages=2)
        assert check_page_limit(DriverState(3, 1, 0), limited) is None
        assert check_page_limit(DriverState(3, 2, 0), limited).action is Action.TERMINATE
        assert check_page_limit(DriverState(99, 99, 0), DriverPolicy()) is None


def products(start: int, n: int):
    return [
        SourceProduct.from_json(make_product(i, f"Product {i}"))
        for i in range(start, start + n)
    ]


class FakeClient:
    """Serves a scripted sequence of PageResults keyed by page number."""

    def __init__(self, pages, per_page=250, base_url="https://shop.example.com"):
        self.pages = pages
        self.per_page = per_page
        self.base_url = base_url
        self.requested = []

    def page_url(self, page):
        return f"{self.base_url}/products.json?limit={self.per_page}&page={page}"

    def fetch_page(self, page):
        self.requested.append(page)
        result = self.pages.get(page, PageResult.success([]))
        if isinstance(result, list):
            return result.pop(0)
        return result


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("shopify_import.driver.time.sleep") as sleep:
        yield sleep


class TestImportDriver:

    @pytest.fixture
    def resolver(self, conn, locales):
        return EntityResolver(conn, locales)

    @pytest.fixture
    def shutdown(self):
        return ShutdownHandler()

    def driver(self, conn, resolver, client, shutdown, **policy):
        assembler = ProductAssembler(conn, resolver, None, resolver.locales)
        return ImportDriver(
            conn, client, assembler, resolver,
            policy=DriverPolicy(per_page=client.per_page, **policy),
            shutdown=shutdown,
        )

    def test_terminates_after_short_final_page(self, conn, resolver, shutdown):
        client = FakeClient({
            1: PageResult.success(products(1, 5)),
            2: PageResult.success(products(6, 5)),
            3: PageResult.success(products(11, 5)),
            4: PageResult.success(products(16, 2)),
        }, per_page=5)

        summary = self.driver(conn, resolver, client, shutdown).run()

        assert client.requested == [1, 2, 3, 4]
        assert summary.pages_processed == 4
        assert summary.last_page == 4
        assert summary.imported == 17
        assert summary.status == "complete"
        assert db.get_import_state(conn, "https://shop.example.com")["last_page_imported"] == 4

    def test_250_then_37(self, conn, resolver, shutdown):
        client = FakeClient({
            1: PageResult.success(products(1, 250)),
            2: PageResult.success(products(251, 250)),
            3: PageResult.success(products(501, 37)),
        })

        summary = self.driver(conn, resolver, client, shutdown).run()

        assert client.requested == [1, 2, 3]
        assert summary.pages_processed == 3
        assert summary.imported == 537

    def test_floor_keeps_going_past_empty_pages(self, conn, resolver, shutdown):
        client = FakeClient({1: PageResult.success(products(1, 2))}, per_page=5)

        summary = self.driver(conn, resolver, client, shutdown).run()

        # Page 1 is short but below the floor; pages 2 and 3 are empty and counted
        assert client.requested == [1, 2, 3, 4]
        assert summary.pages_processed == 3
        assert summary.last_page == 1
        assert summary.imported == 2

    def test_failed_page_retried_below_floor(self, conn, resolver, shutdown, no_sleep):
        client = FakeClient({
            1: [PageResult.failure(503), PageResult.success(products(1, 5))],
            2: PageResult.success(products(6, 5)),
            3: PageResult.success(products(11, 1)),
        }, per_page=5)

        summary = self.driver(conn, resolver, client, shutdown, retry_delay=7).run()

        assert client.requested == [1, 1, 2, 3]
        assert summary.imported == 11
        no_sleep.assert_any_call(7)

    def test_failure_after_floor_ends_run(self, conn, resolver, shutdown):
        client = FakeClient({
            1: PageResult.success(products(1, 5)),
            2: PageResult.success(products(6, 5)),
            3: PageResult.success(products(11, 5)),
            4: PageResult.failure(500),
        }, per_page=5)

        summary = self.driver(conn, resolver, client, shutdown).run()

        assert client.requested == [1, 2, 3, 4]
        assert summary.pages_processed == 3
        assert summary.status == "stopped"
        assert "page 4 failed" in summary.termination_reason

    def test_retries_exhausted_below_floor_is_stopped(self, conn, resolver, shutdown):
        client = FakeClient({1: PageResult.failure(503)}, per_page=5)

        summary = self.driver(conn, resolver, client, shutdown, max_fetch_attempts=3).run()

        assert client.requested == [1, 1, 1]
        assert summary.status == "stopped"
        assert summary.pages_processed == 0

    def test_max_pages(self, conn, resolver, shutdown):
        client = FakeClient({p: PageResult.success(products(p * 10, 5)) for p in range(1, 10)}, per_page=5)

        summary = self.driver(conn, resolver, client, shutdown, max_pages=2).run()

        assert client.requested == [1, 2]
        assert summary.pages_processed == 2

    def test_start_page_and_invalid_counts(self, conn, resolver, shutdown):
        client = FakeClient({
            7: PageResult.success(products(1, 1), invalid=2),
        }, per_page=5)
        driver = self.driver(conn, resolver, client, shutdown, min_pages=1)
        driver.start_page = 7

        summary = driver.run()

        assert client.requested == [7]
        assert summary.invalid == 2
        assert summary.imported == 1

    def test_per_product_failures_do_not_stop_the_page(self, conn, resolver, shutdown):
        client = FakeClient({1: PageResult.success(products(1, 3))}, per_page=5)
        driver = self.driver(conn, resolver, client, shutdown, min_pages=1)
        real = driver.assembler._assemble

        def flaky(source, sku):
            if source.id == 2:
                raise RuntimeError("boom")
            return real(source, sku)

        driver.assembler._assemble = flaky
        summary = driver.run()

        assert (summary.imported, summary.failed) == (2, 1)
        assert not db.sku_exists(conn, "SKU-2")
        assert db.sku_exists(conn, "SKU-3")

    def test_shutdown_stops_between_products(self, conn, resolver, shutdown):
        client = FakeClient({1: PageResult.success(products(1, 5))}, per_page=5)
        driver = self.driver(conn, resolver, client, shutdown)
        real = driver.assembler.import_product

        def import_then_stop(source):
            result = real(source)
            shutdown.request_shutdown()
            return result

        driver.assembler.import_product = import_then_stop
        summary = driver.run()

        assert summary.imported == 1
        assert summary.status == "interrupted"
        assert db.get_import_state(conn, "https://shop.example.com") is None

    def test_summary_includes_resolver_counts(self, conn, resolver, shutdown):
        client = FakeClient({1: PageResult.success(products(1, 2))}, per_page=5)
        summary = self.driver(conn, resolver, client, shutdown, min_pages=1).run()

        assert summary.brands_created == 1
        assert summary.categories_created == 1
