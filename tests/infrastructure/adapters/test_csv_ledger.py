import csv
from datetime import datetime, timedelta, timezone

import pytest

from sleeplog.domain.constants import LEDGER_COLUMNS
from sleeplog.domain.errors import LedgerError
from sleeplog.infrastructure.adapters.csv_ledger import CsvEventLedger, format_duration

T0 = datetime(2024, 3, 1, 22, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger(tmp_path):
    return CsvEventLedger(tmp_path / "data" / "sleep-log.csv")


def _rows(ledger):
    with open(ledger.path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_format_duration():
    assert format_duration(0) == "0:00:00"
    assert format_duration(8 * 3600 + 15 * 60 + 9) == "8:15:09"
    assert format_duration(30 * 3600) == "30:00:00"


@pytest.mark.asyncio
async def test_missing_file_reads_empty(ledger):
    assert await ledger.read_all() == []
    assert await ledger.read_last() is None


@pytest.mark.asyncio
async def test_append_alternates_start_and_stop(ledger, make_entry):
    first = await ledger.append(make_entry(T0))
    second = await ledger.append(make_entry(T0 + timedelta(hours=7, minutes=30)))
    third = await ledger.append(make_entry(T0 + timedelta(hours=20)))

    assert first.duration is None
    assert second.duration == "7:30:00"
    assert third.duration is None

    rows = _rows(ledger)
    assert rows[0] == LEDGER_COLUMNS
    assert rows[1] == ["2024-03-01 22:00:00", "52.52", "13.40", "UTC", "2024-03-01 22:00:00", ""]
    assert rows[2][5] == "7:30:00"
    assert len(rows) == 4


@pytest.mark.asyncio
async def test_negative_span_is_marked_invalid(ledger, make_entry):
    await ledger.append(make_entry(T0))
    stop = await ledger.append(make_entry(T0 - timedelta(hours=1)))

    assert stop.duration == "N/A"
    assert stop.is_stop


@pytest.mark.asyncio
async def test_read_round_trip_keeps_local_fields(ledger, make_entry):
    await ledger.append(make_entry(T0, tz="Asia/Tokyo"))

    [entry] = await ledger.read_all()

    assert entry.local_time == "2024-03-02 07:00:00"
    assert entry.timezone_name == "Asia/Tokyo"
    assert entry.utc_time == T0
    assert entry.latitude == "52.52"


@pytest.mark.asyncio
async def test_read_recent(ledger, make_entry):
    for h in range(5):
        await ledger.append(make_entry(T0 + timedelta(hours=h)))

    recent = await ledger.read_recent(2)

    assert [e.utc_time for e in recent] == [T0 + timedelta(hours=3), T0 + timedelta(hours=4)]
    assert await ledger.read_recent(0) == []
    assert len(await ledger.read_recent(50)) == 5


@pytest.mark.asyncio
async def test_bad_rows_are_skipped(ledger, make_entry):
    await ledger.append(make_entry(T0))
    with open(ledger.path, "a", newline="", encoding="utf-8") as f:
        f.write("garbage,,,UTC,not-a-time,\n")
    await ledger.append(make_entry(T0 + timedelta(hours=8)))

    entries = await ledger.read_all()

    assert len(entries) == 2
    # The previous raw row was unreadable, so the new entry gets N/A
    assert entries[1].duration == "N/A"


@pytest.mark.asyncio
async def test_replace_last_stop_recomputes_duration(ledger, make_entry):
    await ledger.append(make_entry(T0))
    await ledger.append(make_entry(T0 + timedelta(hours=5)))

    replaced = await ledger.replace_last(make_entry(T0 + timedelta(hours=8)))

    assert replaced.duration == "8:00:00"
    entries = await ledger.read_all()
    assert len(entries) == 2
    assert entries[-1].utc_time == T0 + timedelta(hours=8)
    assert not ledger.path.with_name("sleep-log.csv.tmp").exists()


@pytest.mark.asyncio
async def test_replace_last_start_stays_a_start(ledger, make_entry):
    await ledger.append(make_entry(T0))
    await ledger.append(make_entry(T0 + timedelta(hours=8)))
    await ledger.append(make_entry(T0 + timedelta(hours=24)))

    replaced = await ledger.replace_last(make_entry(T0 + timedelta(hours=23)))

    assert replaced.duration is None
    assert len(await ledger.read_all()) == 3


@pytest.mark.asyncio
async def test_replace_last_on_empty_log(ledger, make_entry):
    with pytest.raises(LedgerError):
        await ledger.replace_last(make_entry(T0))
