"""Keyed collections of pydantic records in one JSON file (fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonCollection(Generic[ModelT]):
    """Records of one model stored as ``{"<key>": [...]}`` and addressed by id.

    Every read-modify-write holds an exclusive lock on a sidecar lock file
    and replaces the data file atomically.

    Args:
        path: JSON file holding the collection.
        model: Record type.
        key: Top-level key of the record list.
    """

    def __init__(self, path: Path, model: type[ModelT], key: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.model = model
        self.key = key
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def locked(self) -> Iterator[dict[str, ModelT]]:
        """Yield all records by id; changes are written back on exit."""
        with open(self._lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            records = self.read()
            yield records
            self._write(records)

    def read(self) -> dict[str, ModelT]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text())
        records = (self.model(**item) for item in data.get(self.key, []))
        return {r.id: r for r in records}

    def _write(self, records: dict[str, ModelT]) -> None:
        data = {self.key: [r.model_dump(mode="json") for r in records.values()]}
        with tempfile.NamedTemporaryFile(
            "w", dir=self.path.parent, delete=False, suffix=".json"
        ) as tmp:
            json.dump(data, tmp, indent=2)
        os.replace(tmp.name, self.path)
