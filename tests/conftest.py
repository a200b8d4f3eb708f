"""
Shared pytest fixtures for locale-linkcheck tests.

This module provides:
- A fake web (httpx.MockTransport) that records every request
- Helpers to write locale catalog files into a temp directory
"""

from __future__ import annotations

import json
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any, Union

import httpx
import pytest
import yaml

from locale_linkcheck.checker import LinkChecker

Route = Union[tuple[int, dict[str, str]], Exception]


class FakeWeb:
    """Serves canned responses by exact URL; unknown URLs answer 404."""

    def __init__(self, routes: dict[str, Route] | None = None) -> None:
        self.routes: dict[str, Route] = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def add(self, url: str, status: int, **headers: str) -> None:
        self.routes[url] = (status, headers)

    def redirect(self, url: str, location: str, status: int = 302) -> None:
        self.routes[url] = (status, {"location": location})

    def fail(self, url: str, exc: Exception) -> None:
        self.routes[url] = exc

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        status, headers = route
        return httpx.Response(status, headers=headers, text="")

    def hits(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url) == url)

    @property
    def methods(self) -> set[str]:
        return {r.method for r in self.requests}


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest.fixture
def client(web: FakeWeb) -> Generator[httpx.Client, None, None]:
    with httpx.Client(transport=httpx.MockTransport(web.handler)) as c:
        yield c


@pytest.fixture
def checker(client: httpx.Client) -> LinkChecker:
    return LinkChecker(client)


@pytest.fixture
def write_locales(tmp_path: Path) -> Callable[..., Path]:
    """Write `{filename: data}` into tmp_path/locales and return the directory."""
    root = tmp_path / "locales"

    def _write(files: dict[str, Any]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for name, data in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(data, str):
                path.write_text(data, encoding="utf-8")
            elif path.suffix == ".json":
                path.write_text(json.dumps(data), encoding="utf-8")
            else:
                path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
        return root

    return _write
