"""JsonlReadingSink — append-only reading log, one JSON document per line.

Each document is stamped with a server-side ``created_at``.  The file
write runs in a worker thread so the event loop never blocks on disk.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from pydantic_core import to_jsonable_python

from aqi_watch.foundation.clock import utc_now


class JsonlReadingSink:
    """ReadingSink writing to a local JSON-lines file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def append(self, document: dict[str, Any]) -> None:
        stamped = {**document, "created_at": utc_now()}
        line = json.dumps(to_jsonable_python(stamped), ensure_ascii=False)
        await asyncio.to_thread(self._write_line, line)

    def _write_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
