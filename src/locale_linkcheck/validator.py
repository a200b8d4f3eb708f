"""
Deduplicated link validation across every locale of a catalog.

A link that checks out once is remembered in the run's seen set and never
fetched again. Failing links are not remembered, so every failing occurrence
is reported on its own.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from locale_linkcheck.catalog import LocaleCatalog
from locale_linkcheck.checker import LinkChecker, LinkVerdict
from locale_linkcheck.extract import NodePath, iter_link_occurrences, traverse
from locale_linkcheck.logging import JsonlLogger
from locale_linkcheck.report import NullReporter, Reporter, format_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkFailure:
    locale: str | None
    path: NodePath
    link: str
    reason: str
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "locale": self.locale,
            "path": format_path(self.path),
            "link": self.link,
            "reason": self.reason,
            "status_code": self.status_code,
        }


@dataclass
class ValidationReport:
    locales: list[str]
    failures: list[LinkFailure] = field(default_factory=list)
    occurrences: dict[str, int] = field(default_factory=dict)
    checks: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures

    def failures_by_locale(self) -> Counter[str]:
        return Counter(f.locale for f in self.failures if f.locale is not None)

    def summary(self) -> dict[str, Any]:
        return {
            "locales": self.locales,
            "occurrences": dict(self.occurrences),
            "checks": self.checks,
            "failed_occurrences": len(self.failures),
            "failures_by_locale": dict(self.failures_by_locale()),
        }


class ValidationContext:
    """Run-wide state: the seen set, collected failures, and where to send them."""

    def __init__(
        self,
        checker: LinkChecker,
        *,
        reporter: Reporter | None = None,
        run_logger: JsonlLogger | None = None,
    ) -> None:
        self.checker = checker
        self.reporter: Reporter = reporter or NullReporter()
        self.run_logger = run_logger
        self.seen: set[str] = set()
        self.failures: list[LinkFailure] = []
        self.checked = 0
        self.locale: str | None = None
        self._lock = threading.Lock()

    def is_seen(self, link: str) -> bool:
        with self._lock:
            return link in self.seen

    def validate_occurrence(self, link: str, path: NodePath, *, locale: str | None = None) -> bool:
        if self.is_seen(link):
            return True
        verdict = self.checker.check(link)
        self.note_check(link, verdict)
        self.note_occurrence(link, path, verdict, locale=locale)
        return verdict.ok

    def note_check(self, link: str, verdict: LinkVerdict) -> None:
        with self._lock:
            self.checked += 1
        if self.run_logger is not None:
            self.run_logger.event(
                "link_checked",
                link=link,
                ok=verdict.ok,
                reason=verdict.reason,
                status_code=verdict.status_code,
                hops=verdict.hops,
                final_url=verdict.final_url,
            )

    def note_occurrence(
        self, link: str, path: NodePath, verdict: LinkVerdict, *, locale: str | None = None
    ) -> LinkFailure | None:
        if verdict.ok:
            with self._lock:
                self.seen.add(link)
            return None

        failure = LinkFailure(
            locale=locale if locale is not None else self.locale,
            path=tuple(path),
            link=link,
            reason=verdict.reason,
            status_code=verdict.status_code,
        )
        with self._lock:
            self.failures.append(failure)
        logger.debug(f"Failed link {link!r} at {format_path(path)} ({verdict.reason})")
        self.reporter.failure(failure)
        if self.run_logger is not None:
            self.run_logger.failure_row(failure.to_dict())
        return failure


def _validate_sequential(
    catalog: LocaleCatalog, locales: Sequence[str], context: ValidationContext, report: ValidationReport
) -> None:
    for locale in locales:
        tree = catalog.translations(locale)
        context.locale = locale
        report.occurrences[locale] = traverse(tree, (), context)
        logger.info(f"Locale {locale}: {report.occurrences[locale]} link occurrences")
    context.locale = None


def _validate_concurrent(
    catalog: LocaleCatalog,
    locales: Sequence[str],
    context: ValidationContext,
    report: ValidationReport,
    workers: int,
) -> None:
    occurrences: list[tuple[str, NodePath, str]] = []
    for locale in locales:
        tree = catalog.translations(locale)
        found = [(locale, path, link) for path, link in iter_link_occurrences(tree)]
        report.occurrences[locale] = len(found)
        occurrences.extend(found)
        logger.info(f"Locale {locale}: {len(found)} link occurrences")

    distinct = list(dict.fromkeys(link for _, _, link in occurrences if not context.is_seen(link)))
    logger.info(f"Checking {len(distinct)} distinct links with {workers} workers")

    verdicts: dict[str, LinkVerdict] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        future_to_link = {pool.submit(context.checker.check, link): link for link in distinct}
        for future in as_completed(future_to_link):
            link = future_to_link[future]
            verdicts[link] = future.result()
            context.note_check(link, verdicts[link])

    # Report in traversal order.
    for locale, path, link in occurrences:
        verdict = verdicts.get(link)
        if verdict is None:
            continue
        context.note_occurrence(link, path, verdict, locale=locale)


def validate_locales(
    catalog: LocaleCatalog,
    locales: Iterable[str] | None,
    context: ValidationContext,
    *,
    workers: int = 1,
) -> ValidationReport:
    """
    Validate the links of every locale in `locales` (all available when None).

    Unknown locales raise UnknownLocaleError before any link is checked.
    """
    selected = list(locales) if locales else catalog.available_locales()
    for locale in selected:
        catalog.translations(locale)

    report = ValidationReport(locales=selected)
    if workers > 1:
        _validate_concurrent(catalog, selected, context, report, workers)
    else:
        _validate_sequential(catalog, selected, context, report)

    report.failures = list(context.failures)
    report.checks = context.checked
    return report
