"""
Link reachability checks.

A link is first screened locally (empty, exempt prefix, scheme, character
set). Only links that pass are fetched: an HTTP GET, following 3xx responses
by hand so every hop counts against a fixed redirect budget. Requests are
always GET, never HEAD.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx

from locale_linkcheck.constants import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    EXEMPT_PREFIXES,
    FETCHABLE_SCHEMES,
    URI_CHARACTERS,
)
from locale_linkcheck.utils import retry_with_backoff

logger = logging.getLogger(__name__)

VALID_URI_RE = re.compile(f"[{URI_CHARACTERS}]*")

# Verdict reasons
OK = "ok"
EXEMPT = "exempt"
EMPTY = "empty"
UNSUPPORTED_SCHEME = "unsupported_scheme"
INVALID_CHARACTERS = "invalid_characters"
HTTP_STATUS = "http_status"
MISSING_LOCATION = "missing_location"
TOO_MANY_REDIRECTS = "too_many_redirects"
TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class LinkVerdict:
    ok: bool
    reason: str
    status_code: int | None = None
    hops: int = 0
    final_url: str | None = None
    detail: str | None = None


def screen_link(link: str | None) -> LinkVerdict | None:
    """
    Local rules, in order. Returns a verdict when the link can be decided
    without the network, None when it must be fetched.
    """
    if not link:
        return LinkVerdict(ok=False, reason=EMPTY)
    if link.startswith(EXEMPT_PREFIXES):
        return LinkVerdict(ok=True, reason=EXEMPT)
    if not link.startswith(FETCHABLE_SCHEMES):
        return LinkVerdict(ok=False, reason=UNSUPPORTED_SCHEME)
    if not VALID_URI_RE.fullmatch(link):
        return LinkVerdict(ok=False, reason=INVALID_CHARACTERS)
    return None


class LinkChecker:
    """
    Decides whether a link is okay.

    Owns its httpx client unless one is passed in; use as a context manager or
    call close() when done.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        retry_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=False,
            headers={"User-Agent": user_agent},
        )
        self.max_redirects = max_redirects
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay

    def __enter__(self) -> LinkChecker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def is_link_okay(self, link: str | None) -> bool:
        return self.check(link).ok

    def check(self, link: str | None) -> LinkVerdict:
        if link is None:
            return LinkVerdict(ok=False, reason=EMPTY)
        verdict = screen_link(link)
        if verdict is not None:
            return verdict
        return self.follow(link)

    def fetchable(self, uri: str, max_redirects: int | None = None) -> bool:
        return self.follow(uri, max_redirects).ok

    def follow(self, uri: str, max_redirects: int | None = None) -> LinkVerdict:
        """GET `uri`, following up to `max_redirects` responses in total (including the first)."""
        budget = self.max_redirects if max_redirects is None else max_redirects
        url = uri
        hops = 0
        while budget > 0:
            hops += 1
            try:
                status, location = self._get(url)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError, OSError) as e:
                logger.debug(f"GET {url} failed: {type(e).__name__}: {e}")
                return LinkVerdict(
                    ok=False,
                    reason=TRANSPORT_ERROR,
                    hops=hops,
                    final_url=url,
                    detail=f"{type(e).__name__}: {e}",
                )

            if 200 <= status < 300:
                return LinkVerdict(ok=True, reason=OK, status_code=status, hops=hops, final_url=url)

            if 300 <= status < 400:
                if not location:
                    return LinkVerdict(
                        ok=False, reason=MISSING_LOCATION, status_code=status, hops=hops, final_url=url
                    )
                try:
                    next_url = str(httpx.URL(url).join(location))
                except (httpx.InvalidURL, ValueError) as e:
                    return LinkVerdict(
                        ok=False,
                        reason=TRANSPORT_ERROR,
                        status_code=status,
                        hops=hops,
                        final_url=url,
                        detail=f"bad Location {location!r}: {e}",
                    )
                logger.debug(f"{status} {url} -> {next_url}")
                url = next_url
                budget -= 1
                continue

            return LinkVerdict(ok=False, reason=HTTP_STATUS, status_code=status, hops=hops, final_url=url)

        logger.debug(f"Redirect budget exhausted for {uri} after {hops} requests")
        return LinkVerdict(ok=False, reason=TOO_MANY_REDIRECTS, hops=hops, final_url=url)

    def _get(self, url: str) -> tuple[int, str | None]:
        def attempt() -> tuple[int, str | None]:
            # Body is never read; closing the stream releases the connection.
            with self.client.stream("GET", url, follow_redirects=False) as response:
                return response.status_code, response.headers.get("location")

        return retry_with_backoff(
            attempt,
            max_attempts=self.retry_attempts,
            base_delay=self.retry_base_delay,
            max_delay=DEFAULT_RETRY_MAX_DELAY,
            retryable_exceptions=(httpx.TransportError,),
        )
