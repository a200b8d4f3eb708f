from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from rich.console import Console

from locale_linkcheck.catalog import LocaleCatalog
from locale_linkcheck.checker import LinkChecker
from locale_linkcheck.config import LinkCheckConfig, resolve_config
from locale_linkcheck.constants import EXIT_CONFIG_ERROR, EXIT_FAILED_LINKS, EXIT_OK
from locale_linkcheck.errors import InvalidConfigError, LinkCheckError
from locale_linkcheck.logging import JsonlLogger
from locale_linkcheck.report import StreamReporter, print_summary
from locale_linkcheck.utils import default_run_id
from locale_linkcheck.validator import ValidationContext, ValidationReport, validate_locales

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Check the hyperlinks embedded in locale translation files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  locale-linkcheck --locales-dir config/locales
  locale-linkcheck --locales-dir config/locales --locale en --locale de
  locale-linkcheck --workers 8 --timeout-seconds 5 --log-dir logs/linkcheck
        """,
    )
    p.add_argument("--locales-dir", type=Path, default=None, help="Directory of locale YAML/JSON files")
    p.add_argument(
        "--locale",
        dest="locales",
        action="append",
        default=None,
        help="Locale to check (repeatable; default: every locale in the catalog)",
    )
    p.add_argument("--max-redirects", type=int, default=None, help="Requests allowed per link, redirects included")
    p.add_argument("--timeout-seconds", type=float, default=None, help="Timeout for each HTTP request")
    p.add_argument("--workers", type=int, default=None, help="Concurrent link checks (1 = sequential)")
    p.add_argument(
        "--retries",
        dest="retry_attempts",
        type=int,
        default=None,
        help="Attempts per request on connection errors (1 = no retry)",
    )
    p.add_argument("--user-agent", type=str, default=None)
    p.add_argument("--env-file", type=Path, default=None, help="Path to .env file with LINKCHECK_* settings")
    p.add_argument("--log-dir", type=Path, default=None, help="Write a JSONL run log under this directory")
    p.add_argument("--run-id", type=str, default=None, help="Run log directory name (default: generated)")
    p.add_argument("--no-summary", action="store_true", help="Only print failing links")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def run(config: LinkCheckConfig, *, show_summary: bool = True) -> ValidationReport:
    catalog = LocaleCatalog.from_directory(config.locales_dir)

    run_logger: JsonlLogger | None = None
    if config.log_dir is not None:
        run_id = config.run_id or default_run_id(prefix="linkcheck")
        try:
            run_logger = JsonlLogger(base_dir=config.log_dir, run_id=run_id)
        except OSError as e:
            raise InvalidConfigError("log_dir", f"cannot create run log under {config.log_dir}: {e}") from e
        logger.info(f"Run log: {run_logger.paths.root}")

    started = time.time()
    with LinkChecker(
        max_redirects=config.max_redirects,
        timeout_seconds=config.timeout_seconds,
        user_agent=config.user_agent,
        retry_attempts=config.retry_attempts,
    ) as checker:
        context = ValidationContext(checker, reporter=StreamReporter(sys.stdout), run_logger=run_logger)
        report = validate_locales(catalog, config.locales, context, workers=config.workers)

    if run_logger is not None:
        run_logger.write_run_metadata(
            {
                "locales_dir": str(config.locales_dir),
                "max_redirects": config.max_redirects,
                "timeout_seconds": config.timeout_seconds,
                "workers": config.workers,
                "retry_attempts": config.retry_attempts,
                "elapsed_seconds": round(time.time() - started, 3),
                **report.summary(),
            }
        )

    if show_summary:
        print_summary(report, Console(stderr=True))
    return report


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = resolve_config(
            {
                "locales_dir": args.locales_dir,
                "locales": args.locales,
                "max_redirects": args.max_redirects,
                "timeout_seconds": args.timeout_seconds,
                "workers": args.workers,
                "retry_attempts": args.retry_attempts,
                "user_agent": args.user_agent,
                "log_dir": args.log_dir,
                "run_id": args.run_id,
            },
            env_file=args.env_file,
        )
        report = run(config, show_summary=not args.no_summary)
    except LinkCheckError as e:
        logger.error(e.message)
        return EXIT_CONFIG_ERROR

    return EXIT_OK if report.ok else EXIT_FAILED_LINKS


if __name__ == "__main__":
    raise SystemExit(main())
