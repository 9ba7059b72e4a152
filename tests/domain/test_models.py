from datetime import datetime, timezone

from sleeplog.domain.models import LogEntry
from sleeplog.domain.notifications import NotificationRecord, generate_notification_id
from sleeplog.domain.push import PushSubscription

UTC_TIME = datetime(2024, 3, 1, 22, 0, tzinfo=timezone.utc)


def test_stop_is_decided_by_duration():
    assert not LogEntry("2024-03-01 22:00:00", UTC_TIME, "UTC").is_stop
    assert LogEntry("2024-03-01 22:00:00", UTC_TIME, "UTC", duration="8:00:00").is_stop
    assert LogEntry("2024-03-01 22:00:00", UTC_TIME, "UTC", duration="N/A").is_stop


def test_local_datetime_prefers_stored_local_time():
    entry = LogEntry("2024-03-02 07:00:00", UTC_TIME, "Asia/Tokyo")
    assert entry.local_datetime() == datetime(2024, 3, 2, 7, 0)


def test_local_datetime_falls_back_to_zone_conversion():
    entry = LogEntry("garbled", UTC_TIME, "America/New_York")
    assert entry.local_datetime() == datetime(2024, 3, 1, 17, 0)


def test_local_datetime_with_unknown_zone_uses_utc():
    entry = LogEntry("", UTC_TIME, "Nowhere/Special")
    assert entry.local_datetime() == datetime(2024, 3, 1, 22, 0)


def test_elapsed_hours():
    entry = LogEntry("", UTC_TIME, "UTC")
    assert entry.elapsed_hours(datetime(2024, 3, 2, 8, 30, tzinfo=timezone.utc)) == 10.5


def test_notification_ids_are_unique_ulids():
    ids = {generate_notification_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(i) == 26 for i in ids)


def test_record_accepts_aliases_and_field_names():
    by_alias = NotificationRecord.model_validate(
        {"title": "t", "body": "b", "sentAt": "2024-03-01T22:00:00Z", "unknown": 1}
    )
    by_name = NotificationRecord(title="t", body="b", sent_at=UTC_TIME)

    assert by_alias.sent_at == by_name.sent_at


def test_subscription_info_shape():
    sub = PushSubscription.model_validate(
        {
            "endpoint": "https://push.example.com/1",
            "expirationTime": None,
            "keys": {"p256dh": "p", "auth": "a"},
        }
    )

    assert sub.to_subscription_info() == {
        "endpoint": "https://push.example.com/1",
        "keys": {"p256dh": "p", "auth": "a"},
    }
