"""Fixed notification texts for log confirmations and reminders."""

from sleeplog.domain.models import LogEntry, Notification


def entry_notification(entry: LogEntry) -> Notification:
    return Notification(
        title="🌅 Sleep stop logged" if entry.is_stop else "🌃 Sleep start logged",
        body=short_entry_description(entry),
    )


def reminder_notification(elapsed_hours: float) -> Notification:
    return Notification(
        title="🔔 Sleep entry reminder",
        body=(
            f"It has been {round(elapsed_hours, 1)} hours since your last sleep entry. "
            "Don't forget to log your sleep!"
        ),
    )


def short_entry_description(entry: LogEntry) -> str:
    text = f"{entry.local_time} at {entry.timezone_name}"
    if entry.is_stop:
        text += f"\nDuration: {entry.duration}"
    return text
