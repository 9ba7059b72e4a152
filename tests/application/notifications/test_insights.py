from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from sleeplog.application.notifications.gate import NotificationGate
from sleeplog.application.notifications.insights import (
    InsightService,
    format_feedback_summary,
    format_sleep_history,
)
from sleeplog.application.stats import SleepStatsService
from sleeplog.domain.errors import DeliveryError, ReasoningError
from sleeplog.domain.notifications import Feedback, NotificationDecision, NotificationRecord
from sleeplog.infrastructure.adapters.json_store import JsonDocumentStore

NOW = datetime(2024, 3, 5, 16, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger(make_nights):
    ledger = AsyncMock()
    nights = [(datetime(2024, 3, d, 22, 0), 7.5) for d in range(1, 5)]
    ledger.read_recent.return_value = make_nights(nights)
    return ledger


@pytest.fixture
def gate(tmp_path):
    return NotificationGate(
        JsonDocumentStore(tmp_path / "sent-notifications.json", NotificationRecord)
    )


@pytest.fixture
def provider():
    provider = AsyncMock()
    provider.decide.return_value = NotificationDecision(
        should_send=True, title="Early night?", body="You're 2h short this week."
    )
    return provider


@pytest.fixture
def service(ledger, gate, provider, mock_dispatcher):
    return InsightService(SleepStatsService(ledger), gate, provider, mock_dispatcher)


@pytest.mark.asyncio
async def test_sends_and_records_when_provider_agrees(service, gate, mock_dispatcher):
    record = await service.check_ai_notification(NOW)

    assert record is not None
    assert record.title == "Early night?"
    notification = mock_dispatcher.send.await_args.args[0]
    assert notification.body == "You're 2h short this week."
    assert mock_dispatcher.send.await_args.kwargs["extra"] == {"id": record.id}

    [stored] = await gate.load_history()
    assert stored.id == record.id


@pytest.mark.asyncio
async def test_provider_declines(service, provider, gate, mock_dispatcher):
    provider.decide.return_value = NotificationDecision(should_send=False)

    assert await service.check_ai_notification(NOW) is None
    mock_dispatcher.send.assert_not_awaited()
    assert await gate.load_history() == []


@pytest.mark.asyncio
async def test_should_send_without_text_is_ignored(service, provider, mock_dispatcher):
    provider.decide.return_value = NotificationDecision(should_send=True, title="Only title")

    assert await service.check_ai_notification(NOW) is None
    mock_dispatcher.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_provider_failure_means_no_send(service, provider, mock_dispatcher):
    provider.decide.side_effect = ReasoningError("timeout")

    assert await service.check_ai_notification(NOW) is None
    mock_dispatcher.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_gate_rejection_skips_provider(service, provider, gate):
    await gate.record_sent(NOW - timedelta(minutes=30), "t", "b")

    assert await service.check_ai_notification(NOW) is None
    provider.decide.assert_not_awaited()


@pytest.mark.asyncio
async def test_quiet_hours_skip_provider(service, provider):
    assert await service.check_ai_notification(NOW.replace(hour=4)) is None
    provider.decide.assert_not_awaited()


@pytest.mark.asyncio
async def test_delivery_failure_is_not_recorded(service, gate, mock_dispatcher):
    mock_dispatcher.send.side_effect = DeliveryError("all transports failed")

    assert await service.check_ai_notification(NOW) is None
    assert await gate.load_history() == []


@pytest.mark.asyncio
async def test_disabled_or_missing_provider_is_noop(ledger, gate, mock_dispatcher, provider):
    disabled = InsightService(
        SleepStatsService(ledger), gate, provider, mock_dispatcher, enabled=False
    )
    no_provider = InsightService(SleepStatsService(ledger), gate, None, mock_dispatcher)

    assert await disabled.check_ai_notification(NOW) is None
    assert await no_provider.check_ai_notification(NOW) is None
    ledger.read_recent.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_log_is_noop(service, ledger, provider):
    ledger.read_recent.return_value = []

    assert await service.check_ai_notification(NOW) is None
    provider.decide.assert_not_awaited()


@pytest.mark.asyncio
async def test_ledger_failure_is_noop(service, ledger, provider):
    ledger.read_recent.side_effect = OSError("gone")

    assert await service.check_ai_notification(NOW) is None
    provider.decide.assert_not_awaited()


@pytest.mark.asyncio
async def test_prompt_contains_context(service, provider, gate):
    await gate.record_sent(NOW - timedelta(hours=5), "Morning recap", "7.5h last night")

    await service.check_ai_notification(NOW)

    prompt = provider.decide.await_args.args[0]
    assert "Current time: 2024-03-05 16:00 (UTC, Tuesday)" in prompt
    assert "Awake for" in prompt
    assert "300 minutes ago" in prompt
    assert '"Morning recap": 7.5h last night' in prompt
    assert "Average sleep: 7.5h" in prompt
    assert "Fell asleep: 2024-03-04 22:00:00" in prompt
    assert "between 2:00 and 8:00 local time" in prompt


@pytest.mark.asyncio
async def test_record_feedback_and_recent(service):
    record = await service.check_ai_notification(NOW)

    updated = await service.record_feedback(record.id, Feedback.NOT_USEFUL)
    recent = await service.recent_notifications(NOW + timedelta(hours=1))

    assert updated.feedback is Feedback.NOT_USEFUL
    assert [r.id for r in recent] == [record.id]


def test_format_sleep_history(make_entry):
    entries = [
        make_entry(datetime(2024, 3, 1, 22, 0)),
        make_entry(datetime(2024, 3, 2, 6, 0), duration="8:00:00"),
    ]

    assert format_sleep_history(entries) == (
        "Fell asleep: 2024-03-01 22:00:00\nWoke up: 2024-03-02 06:00:00 (slept 8:00:00)"
    )


def test_format_feedback_summary():
    records = [
        NotificationRecord(title="A", body="a", sent_at=NOW, feedback=Feedback.USEFUL),
        NotificationRecord(title="B", body="b", sent_at=NOW, feedback=Feedback.NOT_USEFUL),
        NotificationRecord(title="C", body="c", sent_at=NOW),
    ]

    summary = format_feedback_summary(records)

    assert summary.startswith("Useful: 1, not useful: 1")
    assert '- liked: "A": a' in summary
    assert '- disliked: "B": b' in summary
    assert format_feedback_summary([]) == "No feedback given yet."
