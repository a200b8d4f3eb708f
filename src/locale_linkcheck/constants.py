"""
Centralized constants for locale-linkcheck configuration.

This module provides single-source-of-truth defaults for values used across
the extractor, checker and CLI.

Environment variable overrides:
- LINKCHECK_MAX_REDIRECTS: Redirect hops allowed per link
- LINKCHECK_TIMEOUT_SECONDS: Per-request HTTP timeout
- LINKCHECK_WORKERS: Number of concurrent link checks
- LINKCHECK_USER_AGENT: User-Agent header sent with every GET
- LINKCHECK_LOCALES_DIR: Directory holding the locale catalog files
- LINKCHECK_LOCALES: Comma-separated locales to check
- LINKCHECK_RETRY_ATTEMPTS: Attempts per request on connection errors
- LINKCHECK_LOG_DIR / LINKCHECK_RUN_ID: JSONL run log location
"""

from __future__ import annotations

# =============================================================================
# Link Rules
# =============================================================================

# Links with these prefixes are accepted without a network check.
# `%{` is an interpolation placeholder; the application fills in its own URL.
EXEMPT_PREFIXES = ("mailto:", "/", "#", "%{")

# Only these schemes are fetched
FETCHABLE_SCHEMES = ("http://", "https://")

# Characters permitted in a fetchable link (whitespace is not)
URI_CHARACTERS = "A-Za-z0-9_.~!*'();:@&=+$,/?#\\[\\]%-"

# =============================================================================
# Network Defaults
# =============================================================================

DEFAULT_MAX_REDIRECTS = 10

# Per-request timeout (seconds)
DEFAULT_TIMEOUT_SECONDS = 10.0

DEFAULT_WORKERS = 1

# Attempts per hop for transport failures (1 = no retry)
DEFAULT_RETRY_MAX_ATTEMPTS = 1
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_RETRY_MAX_DELAY = 10.0  # seconds

DEFAULT_USER_AGENT = "locale-linkcheck/0.1 (+https://github.com/locale-linkcheck)"

# =============================================================================
# Catalog Defaults
# =============================================================================

DEFAULT_LOCALES_DIR = "config/locales"

CATALOG_SUFFIXES = frozenset({".yml", ".yaml", ".json"})

PATH_SEPARATOR = "."

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0
EXIT_FAILED_LINKS = 1
EXIT_CONFIG_ERROR = 2
