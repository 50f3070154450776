"""
Command-line entry point: scrape one site search into SQLite and a file.
"""
import argparse
import asyncio
import os

from .config import config
from .core import run_scrape
from .database import db_connect, db_init, ingest_listings
from .errors import ScrapeInputError
from .export import export_store, save_frame, save_output_rows
from .sites import site_names
from .utils import init_logger, now_iso


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Vehicle classifieds scraper with SQLite storage")
    ap.add_argument("--site", required=True, help=f"Site name, one of: {', '.join(site_names())}")
    ap.add_argument("--url", required=True, help="Search results URL to start from")
    ap.add_argument("--max-pages", type=int, default=config.DEFAULT_MAX_PAGES, help="Maximum results pages to load")
    ap.add_argument("--keyword", type=str, default="", help="Keep only listings mentioning this, e.g. 'Ferrari'")
    ap.add_argument("--from-date", type=str, default=None, help="Oldest posting date to keep (ISO-8601)")
    ap.add_argument("--to-date", type=str, default=None, help="Newest posting date to keep (ISO-8601)")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--headless", dest="headless", action="store_const", const=True, default=None,
                      help="Run without UI (default from env HEADLESS)")
    mode.add_argument("--headful", dest="headless", action="store_const", const=False,
                      help="Show the browser window")
    ap.add_argument("--db", type=str, default=os.getenv("DB_PATH", "carscraper.db"), help="Path to SQLite DB")
    ap.add_argument("--ttl-hours", type=float, default=48, help="Hours a scraped listing stays in the temporary store")
    ap.add_argument("--out", type=str, default="", help="CSV/XLSX file for this run's results")
    ap.add_argument("--export-store", choices=["temporary", "permanent"], default=None,
                    help="Export a whole stored table to --out instead of this run's results")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "carscraper.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or carscraper.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def run_config(args):
    """Config for this run; an explicit --headless/--headful beats the env."""
    if args.headless is None:
        return config
    return config.copy(HEADLESS=args.headless)


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if args.no_file_log else eff_file}, "
        f"path={'N/A' if args.no_file_log else args.log_file_path}"
    )
    logger.info(f">>> Run started at {now_iso()}")

    cfg = run_config(args)
    try:
        listings = asyncio.run(run_scrape(
            args.site, args.url,
            max_pages=args.max_pages,
            keyword=args.keyword,
            from_date=args.from_date,
            to_date=args.to_date,
            cfg=cfg,
        ))
    except ScrapeInputError as e:
        logger.error(f">>> {e}")
        return 2

    # DB
    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    conn = db_connect(args.db)
    try:
        db_init(conn)
        stats = ingest_listings(conn, listings, ttl_hours=args.ttl_hours)
        logger.info(f">>> In DB: {stats['inserted']} new, {stats['updated']} updated, {stats['purged']} expired rows purged")

        if args.out:
            if args.export_store:
                df = export_store(conn, args.export_store)
                save_frame(df, args.out)
                logger.info(f">>> Export {args.export_store} store: {len(df)} rows -> {args.out}")
            else:
                save_output_rows(listings, args.out, logger)
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
