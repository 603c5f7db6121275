"""Tests for the command-line entry point."""

import json
import logging
import signal

import pytest

from conftest import count, make_product
from shopify_import import cli, db
from shopify_import.logging_config import ROOT_LOGGER, log_import_event, setup_logging
from shopify_import.models import PageResult, SourceProduct
from shopify_import.shutdown import get_shutdown_handler
from shopify_import.source_client import SourceClient


@pytest.fixture(autouse=True)
def clean_logging():
    yield
    logging.getLogger(ROOT_LOGGER).handlers.clear()
    get_shutdown_handler().reset()


@pytest.fixture
def feed(monkeypatch):
    """Replace the network with a dict of page number -> PageResult."""
    pages = {}
    requested = []

    def fetch_page(self, page):
        requested.append(page)
        return pages.get(page, PageResult.success([]))

    monkeypatch.setattr(SourceClient, "fetch_page", fetch_page)
    monkeypatch.setattr("shopify_import.driver.time.sleep", lambda seconds: None)
    return pages, requested


def run(db_path, tmp_path, *extra):
    return cli.main([
        "--db", db_path,
        "--storage-dir", str(tmp_path / "storage"),
        "--no-log-file",
        *extra,
    ])


class TestUrlHandling:

    def test_missing_url_exits_1_without_fetching(self, monkeypatch, db_path, tmp_path, feed):
        monkeypatch.setattr(cli, "STORE_URL", "")
        monkeypatch.setattr("builtins.input", lambda prompt: "")

        assert run(db_path, tmp_path) == 1
        assert feed[1] == []

    def test_invalid_url_exits_1(self, db_path, tmp_path, feed):
        assert run(db_path, tmp_path, "--url", "ftp://shop.example.com") == 1
        assert feed[1] == []

    def test_prompted_url_is_used(self, monkeypatch, db_path, tmp_path, feed):
        monkeypatch.setattr(cli, "STORE_URL", "")
        monkeypatch.setattr("builtins.input", lambda prompt: "shop.example.com")

        assert run(db_path, tmp_path, "--max-pages", "1") == 0

        with db.get_connection(db_path) as conn:
            assert db.get_import_state(conn, "https://shop.example.com") is None
        assert feed[1] == [1]

    def test_rejects_non_positive_per_page(self, db_path, tmp_path):
        with pytest.raises(SystemExit):
            run(db_path, tmp_path, "--url", "shop.example.com", "--per-page", "0")


class TestImportRun:

    def test_imports_and_prints_summary(self, db_path, tmp_path, feed, capsys):
        pages, requested = feed
        pages[1] = PageResult.success([
            SourceProduct.from_json(make_product(1, "Mug")),
            SourceProduct.from_json(make_product(2, "Cup")),
        ])

        assert run(db_path, tmp_path, "--url", "https://shop.example.com/") == 0

        assert requested == [1, 2, 3, 4]
        out = capsys.readouterr().out
        assert "Imported:   2" in out
        with db.get_connection(db_path) as conn:
            assert count(conn, "products") == 2
            assert db.get_import_state(conn, "https://shop.example.com")["last_page_imported"] == 1

    def test_current_page_and_per_page(self, db_path, tmp_path, feed):
        pages, requested = feed
        pages[5] = PageResult.success([SourceProduct.from_json(make_product(1, "Mug"))])

        run(db_path, tmp_path, "--url", "shop.example.com", "--current-page", "5",
            "--per-page", "1", "--max-pages", "2")

        assert requested == [5, 6]

    def test_resume_starts_after_last_page(self, db_path, tmp_path, feed):
        _, requested = feed
        with db.get_connection(db_path) as conn:
            db.init_db(conn)
            db.update_import_state(conn, "https://shop.example.com", 4, 4)

        run(db_path, tmp_path, "--url", "shop.example.com", "--resume", "--max-pages", "1")

        assert requested == [5]

    def test_locales_added_before_import(self, db_path, tmp_path, feed):
        pages, _ = feed
        pages[1] = PageResult.success([SourceProduct.from_json(make_product(1, "Mug"))])

        run(db_path, tmp_path, "--url", "shop.example.com", "--locale", "en", "--locale", "fr",
            "--max-pages", "1")

        with db.get_connection(db_path) as conn:
            assert count(conn, "product_flat") == 2

    def test_stats(self, db_path, tmp_path, capsys):
        assert run(db_path, tmp_path, "--stats") == 0
        out = capsys.readouterr().out
        assert f"Database: {db_path}" in out
        assert "No import history yet" in out


class TestLogging:

    def test_events_written_as_jsonl(self, tmp_path):
        setup_logging(log_to_console=False, log_dir=tmp_path)

        log_import_event("product_imported", {"sku": "RS-1", "message": "Imported RS-1"})

        files = list(tmp_path.glob("import_*.jsonl"))
        assert len(files) == 1
        entry = json.loads(files[0].read_text(encoding="utf-8").strip())
        assert entry["event_type"] == "product_imported"
        assert entry["sku"] == "RS-1"
        assert entry["message"] == "Imported RS-1"
        assert entry["logger"] == ROOT_LOGGER


class TestShutdown:

    def test_signal_sets_flag_and_uninstall_restores(self):
        handler = get_shutdown_handler()
        original = signal.getsignal(signal.SIGINT)
        handler.install()
        try:
            handler._handle_signal(signal.SIGINT, None)
            assert handler.shutdown_requested
        finally:
            handler.uninstall()

        assert signal.getsignal(signal.SIGINT) == original
