"""Error types for locale-linkcheck.

Link failures are never raised; they are collected as results. These
exceptions cover the problems that make a run impossible: a catalog that
cannot be loaded, or configuration that makes no sense.
"""

from __future__ import annotations

from typing import Any


class LinkCheckError(Exception):
    """Base class for locale-linkcheck errors."""

    def __init__(self, code: int, message: str, data: dict[str, Any] | None = None):
        self.code = code
        self.message = message
        self.data = data or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a JSON-serializable dictionary."""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


class CatalogError(LinkCheckError):
    """A locale catalog could not be loaded or queried."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            code=10,
            message=f"Catalog error: {source} - {reason}",
            data={"source": source, "reason": reason},
        )


class UnknownLocaleError(CatalogError):
    """Requested locale is not present in the catalog."""

    def __init__(self, locale: str, available: list[str]):
        super().__init__(source=locale, reason=f"unknown locale (available: {', '.join(available) or 'none'})")
        self.data["available"] = available


class InvalidConfigError(LinkCheckError):
    """Invalid configuration provided."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            code=20,
            message=f"Invalid config: {field} - {reason}",
            data={"field": field, "reason": reason},
        )
