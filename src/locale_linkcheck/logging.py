from __future__ import annotations

import json
import socket
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from locale_linkcheck.utils import safe_filename


def _now_unix() -> int:
    return int(time.time())


@dataclass(frozen=True)
class JsonlPaths:
    root: Path
    run_metadata: Path
    events: Path
    failures: Path


class JsonlLogger:
    """
    Run log for one link check:
    - run_metadata.json: one JSON object (config, locales, summary)
    - events.jsonl: JSONL stream of status events (one per checked link)
    - failures.jsonl: JSONL stream of failing occurrences
    - .hostname: identity file for the host that created the logs
    """

    def __init__(self, *, base_dir: Path, run_id: str) -> None:
        run_id = safe_filename(run_id)
        root = base_dir / run_id
        root.mkdir(parents=True, exist_ok=True)
        self.paths = JsonlPaths(
            root=root,
            run_metadata=root / "run_metadata.json",
            events=root / "events.jsonl",
            failures=root / "failures.jsonl",
        )
        self._lock = threading.Lock()

        try:
            (root / ".hostname").write_text(socket.gethostname(), encoding="utf-8")
        except OSError:
            pass

    def write_run_metadata(self, obj: dict) -> None:
        self.paths.run_metadata.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    def event(self, name: str, **fields: object) -> None:
        """
        Log an event with consistent schema.

        All events include:
        - `t`: Unix timestamp (seconds)
        - `event`: Event name (string)

        Additional fields are included as provided.
        """
        row = {"t": _now_unix(), "event": name, **fields}
        self._append(self.paths.events, row)

    def failure_row(self, row: dict) -> None:
        self._append(self.paths.failures, row)

    def _append(self, path: Path, row: dict) -> None:
        line = json.dumps(row, sort_keys=True) + "\n"
        with self._lock, path.open("a", encoding="utf-8") as f:
            f.write(line)
