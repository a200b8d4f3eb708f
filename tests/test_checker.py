"""Link checker tests: local screening rules and redirect following."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from locale_linkcheck import checker as checker_mod
from locale_linkcheck.checker import LinkChecker, screen_link


@pytest.mark.parametrize("link", ["", None])
def test_empty_link_rejected(checker: LinkChecker, web, link) -> None:
    assert checker.is_link_okay(link) is False
    assert web.requests == []


@pytest.mark.parametrize(
    "link",
    ["mailto:help@example.com", "/about", "#faq", "%{url}", "%{root}/path with spaces"],
)
def test_exempt_prefixes_accepted_without_network(checker: LinkChecker, web, link: str) -> None:
    assert checker.is_link_okay(link) is True
    assert web.requests == []


@pytest.mark.parametrize("link", ["ftp://bad.example", "www.example.com", "javascript:void(0)", "HTTP://x.example"])
def test_unsupported_scheme_rejected(checker: LinkChecker, web, link: str) -> None:
    assert checker.is_link_okay(link) is False
    assert web.requests == []


@pytest.mark.parametrize(
    "link",
    ["https://example.com/a b", "https://example.com/\ttab", "https://example.com/<x>", 'https://example.com/"q"'],
)
def test_invalid_characters_rejected(checker: LinkChecker, web, link: str) -> None:
    verdict = checker.check(link)
    assert verdict.ok is False
    assert verdict.reason == checker_mod.INVALID_CHARACTERS
    assert web.requests == []


def test_all_permitted_characters_pass_screening() -> None:
    link = "https://example.com/AZaz09_.~!*'();:@&=+$,/?#[]%-"
    assert screen_link(link) is None


def test_success_uses_get(checker: LinkChecker, web) -> None:
    web.add("https://example.com/page", 200)
    assert checker.is_link_okay("https://example.com/page") is True
    assert web.methods == {"GET"}
    assert web.hits("https://example.com/page") == 1


@pytest.mark.parametrize("status", [404, 410, 500, 503])
def test_non_success_status_rejected(checker: LinkChecker, web, status: int) -> None:
    web.add("https://example.com/page", status)
    verdict = checker.check("https://example.com/page")
    assert verdict.ok is False
    assert verdict.reason == checker_mod.HTTP_STATUS
    assert verdict.status_code == status


def test_single_redirect_followed(checker: LinkChecker, web) -> None:
    web.redirect("https://example.com/old", "https://example.com/new", status=301)
    web.add("https://example.com/new", 200)

    verdict = checker.check("https://example.com/old")
    assert verdict.ok is True
    assert verdict.hops == 2
    assert verdict.final_url == "https://example.com/new"


def test_redirect_to_other_host(checker: LinkChecker, web) -> None:
    web.redirect("http://example.com/go", "https://other.example/landing")
    web.add("https://other.example/landing", 200)
    assert checker.is_link_okay("http://example.com/go") is True


def test_relative_location_resolved_against_current_url(checker: LinkChecker, web) -> None:
    web.redirect("https://example.com/a/b", "../c")
    web.add("https://example.com/c", 200)
    assert checker.is_link_okay("https://example.com/a/b") is True


def test_redirect_without_location_rejected(checker: LinkChecker, web) -> None:
    web.add("https://example.com/moved", 302)
    verdict = checker.check("https://example.com/moved")
    assert verdict.ok is False
    assert verdict.reason == checker_mod.MISSING_LOCATION


def test_self_redirect_stops_after_budget(checker: LinkChecker, web) -> None:
    web.redirect("https://example.com/loop", "https://example.com/loop")

    verdict = checker.check("https://example.com/loop")
    assert verdict.ok is False
    assert verdict.reason == checker_mod.TOO_MANY_REDIRECTS
    assert web.hits("https://example.com/loop") == 10


def test_redirect_cycle_bounded(client: httpx.Client, web) -> None:
    web.redirect("https://a.example/x", "https://b.example/y")
    web.redirect("https://b.example/y", "https://a.example/x")

    checker = LinkChecker(client, max_redirects=4)
    assert checker.is_link_okay("https://a.example/x") is False
    assert len(web.requests) == 4


def test_chain_within_budget_succeeds(checker: LinkChecker, web) -> None:
    for i in range(9):
        web.redirect(f"https://example.com/{i}", f"https://example.com/{i + 1}")
    web.add("https://example.com/9", 200)

    verdict = checker.check("https://example.com/0")
    assert verdict.ok is True
    assert verdict.hops == 10


def test_chain_one_past_budget_fails(checker: LinkChecker, web) -> None:
    for i in range(10):
        web.redirect(f"https://example.com/{i}", f"https://example.com/{i + 1}")
    web.add("https://example.com/10", 200)

    assert checker.is_link_okay("https://example.com/0") is False
    assert web.hits("https://example.com/10") == 0


def test_fetchable_zero_budget_makes_no_request(checker: LinkChecker, web) -> None:
    web.add("https://example.com/page", 200)
    assert checker.fetchable("https://example.com/page", 0) is False
    assert checker.fetchable("https://example.com/page", -3) is False
    assert web.requests == []


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectError("connection refused"),
        httpx.ConnectTimeout("timed out"),
        httpx.ReadTimeout("timed out"),
        httpx.RemoteProtocolError("bad response"),
    ],
)
def test_transport_errors_become_failures(checker: LinkChecker, web, exc: Exception) -> None:
    web.fail("https://down.example/x", exc)
    verdict = checker.check("https://down.example/x")
    assert verdict.ok is False
    assert verdict.reason == checker_mod.TRANSPORT_ERROR
    assert type(exc).__name__ in (verdict.detail or "")


def test_transport_error_after_redirect(checker: LinkChecker, web) -> None:
    web.redirect("https://example.com/x", "https://down.example/y")
    web.fail("https://down.example/y", httpx.ConnectError("dns failure"))
    assert checker.is_link_okay("https://example.com/x") is False


def test_retry_recovers_from_transient_connect_error(web) -> None:
    calls = {"n": 0}
    original = web.handler

    def flaky(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ConnectError("transient")
        return original(request)

    web.add("https://example.com/page", 200)
    flaky_client = httpx.Client(transport=httpx.MockTransport(flaky))
    checker = LinkChecker(flaky_client, retry_attempts=2, retry_base_delay=0.0)
    with patch("locale_linkcheck.utils.time.sleep"):
        assert checker.is_link_okay("https://example.com/page") is True
    assert calls["n"] == 2


def test_status_codes_are_not_retried(client: httpx.Client, web) -> None:
    web.add("https://example.com/gone", 503)
    checker = LinkChecker(client, retry_attempts=3, retry_base_delay=0.0)
    assert checker.is_link_okay("https://example.com/gone") is False
    assert web.hits("https://example.com/gone") == 1


def test_injected_client_left_open(client: httpx.Client) -> None:
    with LinkChecker(client):
        pass
    assert not client.is_closed


def test_owned_client_closed_and_configured() -> None:
    checker = LinkChecker(timeout_seconds=3.0, user_agent="linkcheck-test/1.0")
    assert checker.client.headers["User-Agent"] == "linkcheck-test/1.0"
    assert checker.client.timeout.read == 3.0
    assert checker.client.follow_redirects is False
    checker.close()
    assert checker.client.is_closed


def test_check_none_is_empty_verdict(checker: LinkChecker, web) -> None:
    verdict = checker.check(None)
    assert verdict.ok is False
    assert verdict.reason == checker_mod.EMPTY
    assert web.requests == []
