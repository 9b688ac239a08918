from __future__ import annotations
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Union

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class JsonStore:
    """Each collection is one pretty-printed JSON array under ``data_dir``.

    Saves rewrite the whole file. A lock per collection serializes
    load-modify-save cycles inside this process; separate processes writing
    the same directory can still lose updates.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, collection_name: str) -> Path:
        return self.data_dir / f"{collection_name}.json"

    def _lock(self, collection_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(collection_name, threading.Lock())

    def ensure_collections(self, *collection_names: str) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for name in collection_names:
            path = self.path_for(name)
            if not path.exists():
                self.save(name, [])
                logger.info(f"Created empty collection {path}")

    def load(self, collection_name: str) -> list[Record]:
        path = self.path_for(collection_name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning(f"Collection {path} does not exist, treating as empty")
            return []
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Collection {path} is not valid JSON, treating as empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Collection {path} is not a JSON array, treating as empty")
            return []
        return data

    def save(self, collection_name: str, records: list[Record]) -> None:
        path = self.path_for(collection_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        # NaN and Infinity are not JSON; refuse them before anything touches the disk
        text = json.dumps(records, indent=2, ensure_ascii=False, allow_nan=False)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)

    def mutate(self, collection_name: str, fn: Callable[[list[Record]], Any]) -> Any:
        """Run ``fn`` on the loaded collection and save it, holding the collection lock."""
        with self._lock(collection_name):
            records = self.load(collection_name)
            result = fn(records)
            self.save(collection_name, records)
            return result

    def append(self, collection_name: str, record: Record) -> Record:
        self.mutate(collection_name, lambda records: records.append(record))
        return record
