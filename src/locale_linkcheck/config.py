from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from locale_linkcheck.constants import (
    DEFAULT_LOCALES_DIR,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    DEFAULT_WORKERS,
)
from locale_linkcheck.errors import InvalidConfigError

ENV_PREFIX = "LINKCHECK_"


def load_dotenv(path: Path) -> dict[str, str]:
    """
    Minimal .env loader:
    - supports KEY=VALUE and `export KEY=VALUE`
    - strips surrounding quotes
    - ignores blank lines and `#` comments
    - does not expand variables
    """
    out: dict[str, str] = {}
    if not path.exists():
        return out

    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip()
        v = v.strip()
        if not k:
            continue
        if len(v) >= 2 and ((v[0] == v[-1] == '"') or (v[0] == v[-1] == "'")):
            v = v[1:-1]
        out[k] = v
    return out


@dataclass(frozen=True)
class LinkCheckConfig:
    locales_dir: Path = Path(DEFAULT_LOCALES_DIR)
    locales: tuple[str, ...] = ()
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    workers: int = DEFAULT_WORKERS
    retry_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS
    user_agent: str = DEFAULT_USER_AGENT
    log_dir: Path | None = None
    run_id: str | None = None

    def validate(self) -> LinkCheckConfig:
        if self.max_redirects < 1:
            raise InvalidConfigError("max_redirects", f"must be >= 1, got {self.max_redirects}")
        if self.timeout_seconds <= 0:
            raise InvalidConfigError("timeout_seconds", f"must be > 0, got {self.timeout_seconds}")
        if self.workers < 1:
            raise InvalidConfigError("workers", f"must be >= 1, got {self.workers}")
        if self.retry_attempts < 1:
            raise InvalidConfigError("retry_attempts", f"must be >= 1, got {self.retry_attempts}")
        if not self.user_agent.strip():
            raise InvalidConfigError("user_agent", "must not be empty")
        return self


def _lookup(name: str, env: Mapping[str, str], dotenv: Mapping[str, str]) -> str | None:
    key = ENV_PREFIX + name
    val = env.get(key)
    if val is None or not val.strip():
        val = dotenv.get(key)
    if val is None or not val.strip():
        return None
    return val.strip()


def _as_int(field_name: str, raw: object) -> int:
    try:
        return int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidConfigError(field_name, f"expected an integer, got {raw!r}") from None


def _as_float(field_name: str, raw: object) -> float:
    try:
        return float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidConfigError(field_name, f"expected a number, got {raw!r}") from None


def resolve_config(
    overrides: Mapping[str, object] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    env_file: Path | None = None,
) -> LinkCheckConfig:
    """
    Build a validated config.

    Precedence: explicit overrides (CLI flags) > process environment >
    .env file > built-in defaults. Overrides set to None are ignored.
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    env = os.environ if env is None else env
    dotenv = load_dotenv(env_file) if env_file is not None else {}

    def pick(name: str, env_name: str) -> object | None:
        if name in overrides:
            return overrides[name]
        return _lookup(env_name, env, dotenv)

    kwargs: dict[str, object] = {}

    locales_dir = pick("locales_dir", "LOCALES_DIR")
    if locales_dir is not None:
        kwargs["locales_dir"] = Path(str(locales_dir))

    locales = pick("locales", "LOCALES")
    if locales is not None:
        if isinstance(locales, str):
            locales = [part.strip() for part in locales.split(",")]
        kwargs["locales"] = tuple(str(loc) for loc in locales if str(loc).strip())  # type: ignore[union-attr]

    max_redirects = pick("max_redirects", "MAX_REDIRECTS")
    if max_redirects is not None:
        kwargs["max_redirects"] = _as_int("max_redirects", max_redirects)

    timeout = pick("timeout_seconds", "TIMEOUT_SECONDS")
    if timeout is not None:
        kwargs["timeout_seconds"] = _as_float("timeout_seconds", timeout)

    workers = pick("workers", "WORKERS")
    if workers is not None:
        kwargs["workers"] = _as_int("workers", workers)

    retries = pick("retry_attempts", "RETRY_ATTEMPTS")
    if retries is not None:
        kwargs["retry_attempts"] = _as_int("retry_attempts", retries)

    user_agent = pick("user_agent", "USER_AGENT")
    if user_agent is not None:
        kwargs["user_agent"] = str(user_agent)

    log_dir = pick("log_dir", "LOG_DIR")
    if log_dir is not None:
        kwargs["log_dir"] = Path(str(log_dir))

    run_id = pick("run_id", "RUN_ID")
    if run_id is not None:
        kwargs["run_id"] = str(run_id)

    return LinkCheckConfig(**kwargs).validate()  # type: ignore[arg-type]
