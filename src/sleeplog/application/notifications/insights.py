"""
Adaptive insight notifications.

On every tick the service checks the hard gate rules, renders the sleep
context into a prompt and lets the reasoning provider decide whether anything
is worth sending. Provider failures mean "don't send", never a crash.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sleeplog.application.stats.service import SleepStatsService
from sleeplog.domain.constants import RECENT_ENTRIES_COUNT
from sleeplog.domain.models import LogEntry, Notification
from sleeplog.domain.notifications import (
    Feedback,
    NotificationRecord,
    generate_notification_id,
)
from sleeplog.domain.ports import ReasoningProvider

from .dispatcher import NotificationDispatcher
from .gate import NotificationGate

logger = logging.getLogger(__name__)


def format_sleep_history(entries: list[LogEntry]) -> str:
    lines = []
    for entry in entries:
        if entry.is_stop:
            lines.append(f"Woke up: {entry.local_time} (slept {entry.duration})")
        else:
            lines.append(f"Fell asleep: {entry.local_time}")
    return "\n".join(lines)


def format_sent_notifications(records: list[NotificationRecord]) -> str:
    if not records:
        return "No notifications sent in the last 24 hours."
    lines = []
    for r in records:
        line = f'[{r.sent_at.isoformat()}] "{r.title}": {r.body}'
        if r.feedback is Feedback.USEFUL:
            line += " (user found this useful)"
        elif r.feedback is Feedback.NOT_USEFUL:
            line += " (user found this NOT useful)"
        lines.append(line)
    return "\n".join(lines)


def format_feedback_summary(history: list[NotificationRecord]) -> str:
    useful = [r for r in history if r.feedback is Feedback.USEFUL]
    not_useful = [r for r in history if r.feedback is Feedback.NOT_USEFUL]
    if not useful and not not_useful:
        return "No feedback given yet."

    lines = [f"Useful: {len(useful)}, not useful: {len(not_useful)}"]
    for r in useful[-3:]:
        lines.append(f'- liked: "{r.title}": {r.body}')
    for r in not_useful[-3:]:
        lines.append(f'- disliked: "{r.title}": {r.body}')
    return "\n".join(lines)


class InsightService:
    """
    Orchestrates one insight-notification check.

    Depends on the stats service for sleep data, the gate for history and
    hard rules, the reasoning provider for judgment and the dispatcher for
    delivery.
    """

    def __init__(
        self,
        stats: SleepStatsService,
        gate: NotificationGate,
        provider: ReasoningProvider | None,
        dispatcher: NotificationDispatcher,
        enabled: bool = True,
        recent_count: int = RECENT_ENTRIES_COUNT,
    ):
        self._stats = stats
        self._gate = gate
        self._provider = provider
        self._dispatcher = dispatcher
        self.enabled = enabled
        self.recent_count = recent_count

    async def check_ai_notification(
        self, now: datetime | None = None
    ) -> NotificationRecord | None:
        """
        Run one check.

        Returns:
            The recorded notification if one was sent, otherwise None.
        """
        if not self.enabled or self._provider is None:
            return None

        now = now or datetime.now(timezone.utc)

        try:
            entries = await self._stats.get_recent_sleep_entries(self.recent_count)
        except Exception as e:
            logger.warning(f"Insight check skipped, could not read sleep log: {e}")
            return None

        if not entries:
            logger.info("Insight check skipped, sleep log is empty")
            return None

        last_entry = entries[-1]
        history = await self._gate.load_history()

        rejection = self._gate.rejection_reason(now, history, last_entry.timezone_name)
        if rejection is not None:
            logger.info(f"Insight check skipped by gate: {rejection.value}")
            return None

        prompt = self.render_prompt(now, entries, history)
        logger.debug(f"Insight prompt:\n{prompt}")

        try:
            decision = await self._provider.decide(prompt)
        except Exception as e:
            logger.error(f"Reasoning provider failed, not sending: {e}")
            return None

        logger.info(f"Reasoning decision: {decision.model_dump_json()}")
        if not (decision.should_send and decision.title and decision.body):
            return None

        notification_id = generate_notification_id()
        try:
            await self._dispatcher.send(
                Notification(title=decision.title, body=decision.body),
                extra={"id": notification_id},
            )
        except Exception as e:
            logger.error(f"Insight notification not delivered: {e}")
            return None

        try:
            return await self._gate.record_sent(
                now, decision.title, decision.body, notification_id=notification_id
            )
        except Exception as e:
            logger.error(f"Sent notification {notification_id} but could not record it: {e}")
            return None

    async def record_feedback(
        self, notification_id: str, feedback: Feedback
    ) -> NotificationRecord | None:
        return await self._gate.record_feedback(notification_id, feedback)

    async def recent_notifications(
        self, now: datetime | None = None
    ) -> list[NotificationRecord]:
        now = now or datetime.now(timezone.utc)
        return self._gate.recent(now, await self._gate.load_history())

    def render_prompt(
        self,
        now: datetime,
        entries: list[LogEntry],
        history: list[NotificationRecord],
    ) -> str:
        last_entry = entries[-1]
        zone_name = last_entry.timezone_name
        try:
            local_now = now.astimezone(ZoneInfo(zone_name))
        except (ZoneInfoNotFoundError, ValueError):
            local_now = now.astimezone(timezone.utc)

        hours = last_entry.elapsed_hours(now)
        if last_entry.is_stop:
            current_state = f"Awake for {hours:.1f} hours"
        else:
            current_state = f"Asleep for {hours:.1f} hours (or forgot to log waking up)"

        recent = self._gate.recent(now, history)
        if recent:
            minutes = (now - recent[-1].sent_at).total_seconds() / 60
            last_sent = f"{minutes:.0f} minutes ago"
        else:
            last_sent = "No notifications sent in the last 24 hours"

        policy = self._gate.policy
        spacing_hours = policy.min_spacing.total_seconds() / 3600
        stats = self._stats.get_sleep_stats(entries)

        return f"""You are a sleep health assistant that decides whether to send the user a notification right now. You are called periodically, roughly every 30 minutes.

## Current state
- Current time: {local_now:%Y-%m-%d %H:%M} ({zone_name}, {local_now:%A})
- User status: {current_state}
- Last notification sent: {last_sent}
- Notifications sent in the last 24 hours: {len(recent)} (limit {policy.daily_cap})

## Notifications sent in the last 24 hours
{format_sent_notifications(recent)}

## Feedback on past notifications
{format_feedback_summary(history)}

## Sleep stats
{stats.describe()}

## Recent sleep history (most recent last)
{format_sleep_history(entries)}

## Your guidelines
- Send at most {policy.daily_cap} notifications per day total. Don't overdo it.
- Types of notifications you can send:
  - Bedtime nudge: when it's getting close to or past their usual bedtime, gently remind them. Adapt based on their recent pattern.
  - Sleep pattern observation: if you notice something interesting (building sleep debt, inconsistent schedule, a good streak), share it. These work well in the afternoon.
  - Recovery suggestion: if they've had short nights recently, suggest prioritizing sleep tonight.
  - Morning recap: shortly after the user wakes up (2+ hours awake), summarize last night's sleep (duration, how it compares to their average). Good for once a day.
  - Forgotten log reminder: if the user appears to be "asleep" for an unusually long time (much longer than their typical sleep duration), they may have forgotten to log waking up. Gently remind them.
- Don't repeat the same kind of insight already sent in the last 24 hours.
- Prefer the kinds of notifications the user marked as useful; avoid those marked not useful.
- Notifications must be at least {spacing_hours:g} hours apart.
- Don't send notifications between {policy.quiet_start}:00 and {policy.quiet_end}:00 local time.
- Don't send notifications if the user just woke up (less than 2 hours awake).
- Keep titles short (3-5 words) and bodies to 1-2 sentences, push notifications truncate. Emojis are welcome.
- If there's nothing useful to say right now, don't send anything. It's fine to skip.

Decide: should you send a notification right now? If yes, provide the title and body."""
