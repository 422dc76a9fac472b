from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol
import uuid


class BatchInsertError(RuntimeError):
    """A sink rejected a whole batch; nothing from that batch was stored."""


class TradeSink(Protocol):
    def insert_batch(self, records: list[dict[str, Any]]) -> list[str]:
        ...


class MemoryTradeSink:
    def __init__(self, fail_on_batch: int | None = None) -> None:
        self.records: list[dict[str, Any]] = []
        self.batches = 0
        self.fail_on_batch = fail_on_batch

    def insert_batch(self, records: list[dict[str, Any]]) -> list[str]:
        if self.fail_on_batch is not None and self.batches == self.fail_on_batch:
            raise BatchInsertError(f"batch {self.batches} rejected")
        self.batches += 1
        ids = []
        for record in records:
            ids.append(str(len(self.records) + 1))
            self.records.append(dict(record))
        return ids


class JsonlTradeSink:
    """Appends one JSON object per trade to a file, tagging each with a generated id."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def insert_batch(self, records: list[dict[str, Any]]) -> list[str]:
        rows = [{"id": uuid.uuid4().hex, **record} for record in records]
        payload = "".join(json.dumps(row, sort_keys=True) + "\n" for row in rows)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(payload)
        except OSError as exc:
            raise BatchInsertError(f"cannot write {self.path}: {exc}") from exc
        return [row["id"] for row in rows]
