"""
CLI entry point for finance-scraper.

Usage:
    python -m finance_scraper --term 1031
    python -m finance_scraper --term 1031 --max-events 20
    python -m finance_scraper --term 1031 --output-format both --json-logs
"""

import argparse
import asyncio
import logging
import sys

import structlog

# Log level mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure structured logging."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    if json_output:
        renderer = structlog.processors.JSONRenderer()
        timestamper = structlog.processors.TimeStamper(fmt="iso")
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            timestamper,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Event funding portal scraper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape every funded event of a term
  python -m finance_scraper --term 1031

  # Only the first 20 listed events (for testing)
  python -m finance_scraper --term 1031 --max-events 20

  # Use a custom portal definition
  python -m finance_scraper --term 1031 --config /path/to/portal.yml
        """,
    )

    parser.add_argument(
        "--term",
        type=int,
        help="Funding term identifier to scrape",
    )

    parser.add_argument(
        "--max-events",
        type=int,
        help="Maximum listed events to process (for testing)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to portal.yml config file",
    )

    parser.add_argument(
        "--output",
        type=str,
        default="output",
        help="Output directory (default: output)",
    )

    parser.add_argument(
        "--output-format",
        choices=["json", "jsonl", "both"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON (for production)",
    )

    parser.add_argument(
        "--rate-limit",
        type=float,
        help="Requests per second (overrides portal config)",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    return parser


async def main_async(args):
    """Async main function."""
    from .config.loader import load_portal
    from .orchestrator import FinanceScraper

    logger = structlog.get_logger(__name__)

    logger.info(
        "starting_finance_scraper",
        term=args.term,
        max_events=args.max_events,
    )

    portal = load_portal(args.config)
    if args.rate_limit:
        portal.requests_per_second = args.rate_limit

    scraper = FinanceScraper(portal=portal, output_dir=args.output)
    records = await scraper.run(args.term, max_events=args.max_events)

    if records:
        if args.output_format in ["json", "both"]:
            scraper.save_json(records, f"apps-{args.term}.json")

        if args.output_format in ["jsonl", "both"]:
            scraper.save_jsonl(records, f"apps-{args.term}.jsonl")

        logger.info(
            "scraping_complete",
            total_records=len(records),
            output_dir=args.output,
        )
    else:
        logger.warning("no_events_listed", term=args.term)

    return records


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"finance-scraper {__version__}")
        sys.exit(0)

    if args.term is None:
        parser.error("--term is required")

    setup_logging(args.log_level, args.json_logs)

    try:
        asyncio.run(main_async(args))
        sys.exit(0)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.exception("fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
