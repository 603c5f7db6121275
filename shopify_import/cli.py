"""Command-line interface for the storefront importer."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path to allow imports when run as script
sys.path.insert(0, str(Path(__file__).parent.parent))

__all__ = ["main", "parse_args", "run_import", "show_stats"]

from shopify_import.assembler import ProductAssembler
from shopify_import.config import (
    DB_PATH,
    DEFAULT_CURRENT_PAGE,
    DEFAULT_PER_PAGE,
    STORAGE_DIR,
    STORE_URL,
    TAXONOMY_IMAGES,
)
from shopify_import.db import (
    ensure_locale,
    get_catalog_counts,
    get_connection,
    get_import_state,
    init_db,
)
from shopify_import.driver import DriverPolicy, ImportDriver
from shopify_import.logging_config import get_logger, setup_logging
from shopify_import.media import MediaFetcher
from shopify_import.models import ImportSummary
from shopify_import.resolver import EntityResolver, load_locales
from shopify_import.shutdown import get_shutdown_handler
from shopify_import.source_client import SourceClient
from shopify_import.url_validation import URLValidationError, normalize_store_url

logger = get_logger("cli")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import products from a Shopify storefront's products.json into the catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import everything from a store (prompts for the URL when --url is missing)
  python -m shopify_import.cli --url https://shop.example.com

  # Import at most 2 pages of 50 products, starting at page 3
  python -m shopify_import.cli --url shop.example.com --per-page 50 --max-pages 2 --current-page 3

  # Continue after the last fully imported page of a previous run
  python -m shopify_import.cli --url shop.example.com --resume

  # Import into a catalog with two locales
  python -m shopify_import.cli --url shop.example.com --locale en --locale fr

  # Show catalog statistics
  python -m shopify_import.cli --stats
        """,
    )

    parser.add_argument(
        "--url",
        default=STORE_URL or None,
        help="Storefront base URL (default: $SHOPIFY_STORE_URL, prompted when empty)",
    )

    # Pagination
    parser.add_argument(
        "--per-page",
        type=_positive_int,
        default=DEFAULT_PER_PAGE,
        help=f"Products per page (default: {DEFAULT_PER_PAGE})",
    )
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=None,
        help="Stop after this many pages (default: no limit)",
    )
    parser.add_argument(
        "--current-page",
        type=_positive_int,
        default=DEFAULT_CURRENT_PAGE,
        help=f"Page to start from (default: {DEFAULT_CURRENT_PAGE})",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Start after the last page completed by a previous run for this store",
    )

    # Storage
    parser.add_argument(
        "--db",
        default=DB_PATH,
        help=f"SQLite database path (default: {DB_PATH})",
    )
    parser.add_argument(
        "--storage-dir",
        default=STORAGE_DIR,
        help=f"Directory for downloaded images (default: {STORAGE_DIR})",
    )
    parser.add_argument(
        "--locale",
        action="append",
        default=[],
        metavar="CODE",
        help="Add a catalog locale before importing (repeatable)",
    )
    parser.add_argument(
        "--taxonomy-images",
        action="store_true",
        default=TAXONOMY_IMAGES,
        help="Use the product image as logo/swatch for newly created categories and brands",
    )

    # Info and logging
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show catalog statistics and exit",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug output on the console",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Don't write the JSONL log file",
    )

    return parser.parse_args(argv)


def prompt_for_url() -> str:
    try:
        return input("Shopify store URL: ").strip()
    except EOFError:
        return ""


def show_stats(db_path: str) -> None:
    """Display catalog statistics."""
    with get_connection(db_path) as conn:
        init_db(conn)
        counts = get_catalog_counts(conn)

        print(f"\n{'='*50}")
        print(f"Database: {db_path}")
        print(f"{'='*50}")

        for name, count in counts.items():
            print(f"  {name.replace('_', ' ')}: {count}")

        print("\nImport state:")
        rows = conn.execute("SELECT * FROM import_state ORDER BY store_url").fetchall()
        if rows:
            for row in rows:
                print(f"  {row['store_url']}: page {row['last_page_imported']}"
                      f" ({row['pages_processed']} pages)"
                      f" - last imported: {row['last_imported_at'] or 'never'}")
        else:
            print("  No import history yet")

    print()


def print_summary(summary: ImportSummary) -> None:
    print(f"\n{'='*50}")
    print(f"Import {summary.status}: {summary.termination_reason}")
    print(f"{'='*50}")
    print(f"  Imported:   {summary.imported}")
    print(f"  Skipped:    {summary.skipped}")
    print(f"  Failed:     {summary.failed}")
    print(f"  Invalid:    {summary.invalid}")
    print(f"  Pages:      {summary.pages_processed} (last completed: {summary.last_page or '-'})")
    print(f"  Created:    {summary.brands_created} brands, {summary.categories_created} categories, "
          f"{summary.attributes_created} attributes, {summary.options_created} options")
    print()


def run_import(
    store_url: str,
    db_path: str = DB_PATH,
    storage_dir: str = STORAGE_DIR,
    per_page: int = DEFAULT_PER_PAGE,
    max_pages: Optional[int] = None,
    start_page: int = DEFAULT_CURRENT_PAGE,
    resume: bool = False,
    locales: Optional[List[str]] = None,
    taxonomy_images: bool = False,
) -> ImportSummary:
    """Wire up the pipeline for one store and run it."""
    with get_connection(db_path) as conn:
        init_db(conn)
        for code in locales or []:
            ensure_locale(conn, code)

        if resume:
            state = get_import_state(conn, store_url)
            if state:
                start_page = state["last_page_imported"] + 1
                logger.info(f"Resuming after page {state['last_page_imported']}")
            else:
                logger.info("No previous import for this store, starting from the beginning")

        catalog_locales = load_locales(conn)
        client = SourceClient(store_url, per_page=per_page)
        media = MediaFetcher(storage_dir, session=client.session)
        resolver = EntityResolver(conn, catalog_locales, media=media)
        assembler = ProductAssembler(
            conn, resolver, media, catalog_locales, taxonomy_images=taxonomy_images
        )
        driver = ImportDriver(
            conn,
            client,
            assembler,
            resolver,
            policy=DriverPolicy(per_page=per_page, max_pages=max_pages),
            start_page=start_page,
            store_url=store_url,
        )

        handler = get_shutdown_handler().install()
        try:
            return driver.run()
        finally:
            handler.uninstall()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
    )

    if args.stats:
        show_stats(args.db)
        return 0

    raw_url = args.url or prompt_for_url()
    try:
        store_url = normalize_store_url(raw_url)
    except URLValidationError as e:
        logger.error(f"Invalid store URL: {e}")
        return 1

    summary = run_import(
        store_url,
        db_path=args.db,
        storage_dir=args.storage_dir,
        per_page=args.per_page,
        max_pages=args.max_pages,
        start_page=args.current_page,
        resume=args.resume,
        locales=args.locale,
        taxonomy_images=args.taxonomy_images,
    )
    print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
