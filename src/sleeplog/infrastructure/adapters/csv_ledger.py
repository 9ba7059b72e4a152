"""
CSV Event Ledger — Infrastructure adapter for a local sleep log file.

The file carries the same columns as the spreadsheet it replaces. A new entry is
a stop exactly when the entry before it is a start; stops carry the elapsed
time since that start as H:MM:SS ("N/A" when the span is negative).
"""

import asyncio
import csv
import logging
import os
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from sleeplog.domain.constants import INVALID_DURATION, LEDGER_COLUMNS, LEDGER_TIME_FORMAT
from sleeplog.domain.errors import LedgerError
from sleeplog.domain.models import LogEntry
from sleeplog.domain.ports import EventLedger

logger = logging.getLogger(__name__)

LOCAL, LAT, LON, TZ, UTC, DURATION = LEDGER_COLUMNS


def format_duration(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 3600}:{total % 3600 // 60:02d}:{total % 60:02d}"


def parse_utc(value: str | None) -> datetime:
    return datetime.strptime(value or "", LEDGER_TIME_FORMAT).replace(tzinfo=timezone.utc)


class CsvEventLedger(EventLedger):
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def read_all(self) -> list[LogEntry]:
        entries = []
        for line, row in enumerate(self._read_rows(), start=2):
            entry = self._row_to_entry(row, line)
            if entry is not None:
                entries.append(entry)
        return entries

    async def append(self, entry: LogEntry) -> LogEntry:
        async with self._lock:
            rows = self._read_rows()
            stored = replace(entry, duration=self._duration_after(rows[-1] if rows else None, entry))

            try:
                new_file = not self.path.exists()
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", newline="", encoding="utf-8") as f:
                    writer = csv.DictWriter(f, fieldnames=LEDGER_COLUMNS)
                    if new_file:
                        writer.writeheader()
                    writer.writerow(self._entry_to_row(stored))
            except OSError as e:
                raise LedgerError(f"Failed to append to {self.path}: {e}") from e

        return stored

    async def replace_last(self, entry: LogEntry) -> LogEntry:
        async with self._lock:
            rows = self._read_rows()
            if not rows:
                raise LedgerError("No entry to replace")

            previous = rows[-2] if len(rows) > 1 else None
            stored = replace(entry, duration=self._duration_after(previous, entry))
            rows[-1] = self._entry_to_row(stored)
            self._write_rows(rows)

        return stored

    def _duration_after(self, previous: dict | None, entry: LogEntry) -> str | None:
        """
        Duration for an entry following ``previous``; None when it is a start.
        """
        if previous is None or previous.get(DURATION):
            return None
        try:
            start = parse_utc(previous.get(UTC))
        except ValueError:
            return INVALID_DURATION
        seconds = (entry.utc_time - start).total_seconds()
        if seconds < 0:
            return INVALID_DURATION
        return format_duration(seconds)

    def _read_rows(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                return list(csv.DictReader(f))
        except (OSError, csv.Error) as e:
            raise LedgerError(f"Failed to read {self.path}: {e}") from e

    def _write_rows(self, rows: list[dict]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=LEDGER_COLUMNS, extrasaction="ignore")
                writer.writeheader()
                writer.writerows(rows)
            os.replace(tmp, self.path)
        except OSError as e:
            raise LedgerError(f"Failed to write {self.path}: {e}") from e

    @staticmethod
    def _row_to_entry(row: dict, line: int) -> LogEntry | None:
        try:
            utc_time = parse_utc(row.get(UTC))
        except ValueError:
            logger.warning(f"Skipping ledger line {line}: bad UTC time {row.get(UTC)!r}")
            return None

        return LogEntry(
            local_time=row.get(LOCAL) or "",
            utc_time=utc_time,
            timezone_name=row.get(TZ) or "UTC",
            latitude=row.get(LAT) or "",
            longitude=row.get(LON) or "",
            duration=row.get(DURATION) or None,
        )

    @staticmethod
    def _entry_to_row(entry: LogEntry) -> dict:
        return {
            LOCAL: entry.local_time,
            LAT: entry.latitude,
            LON: entry.longitude,
            TZ: entry.timezone_name,
            UTC: entry.utc_time.astimezone(timezone.utc).strftime(LEDGER_TIME_FORMAT),
            DURATION: entry.duration or "",
        }
