"""
JSON document store: a list of records kept as one pretty-printed JSON array.

A missing file reads as an empty list. Individual records that fail
validation are skipped on read so one bad record does not hide the rest, and
a document holding such records is never overwritten, so they are not lost.
"""

import json
import logging
import os
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from sleeplog.domain.errors import DocumentStoreError
from sleeplog.domain.ports import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonDocumentStore(DocumentStore[T], Generic[T]):
    def __init__(self, path: Path, model: type[T]):
        self.path = Path(path)
        self._adapter = TypeAdapter(model)

    def _load_raw(self) -> list:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise DocumentStoreError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(data, list):
            raise DocumentStoreError(f"Unexpected format in {self.path}: expected an array")
        return data

    async def read(self) -> list[T]:
        if not self.path.exists():
            return []

        items = []
        for i, raw in enumerate(self._load_raw()):
            try:
                items.append(self._adapter.validate_python(raw))
            except ValidationError as e:
                logger.warning(f"Skipping invalid record {i} in {self.path}: {e}")
        return items

    def _undecodable_records(self) -> list[int]:
        bad = []
        for i, raw in enumerate(self._load_raw()):
            try:
                self._adapter.validate_python(raw)
            except ValidationError:
                bad.append(i)
        return bad

    async def write(self, items: list[T]) -> None:
        """
        Replace the document with ``items``.

        Raises:
            DocumentStoreError: If the current document is unreadable or holds
                records that cannot be decoded; it is left untouched.
        """
        if self.path.exists():
            bad = self._undecodable_records()
            if bad:
                raise DocumentStoreError(
                    f"Refusing to overwrite {self.path}: records {bad} cannot be decoded"
                )

        payload = [self._adapter.dump_python(item, mode="json", by_alias=True) for item in items]
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise DocumentStoreError(f"Failed to write {self.path}: {e}") from e
