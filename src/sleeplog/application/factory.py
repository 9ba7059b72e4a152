"""
Service Factory
Centralizes the wiring of adapters and services from configuration.
"""

from dataclasses import dataclass
from datetime import timedelta

from sleeplog.application.config import AppConfig
from sleeplog.application.notifications import (
    GatePolicy,
    InsightService,
    NotificationDispatcher,
    NotificationGate,
)
from sleeplog.application.push_subscriptions import PushSubscriptionStore
from sleeplog.application.reminders import ReminderService, ReminderWatchdog
from sleeplog.application.scheduler import PeriodicTask
from sleeplog.application.sleep_log import SleepLogService
from sleeplog.application.stats import SleepStatsService
from sleeplog.domain.notifications import NotificationRecord
from sleeplog.domain.ports import DeliveryTransport, EventLedger, ReasoningProvider
from sleeplog.domain.push import PushSubscription
from sleeplog.infrastructure.adapters import (
    AnthropicReasoningProvider,
    CsvEventLedger,
    JsonDocumentStore,
)
from sleeplog.infrastructure.adapters.delivery import PushbulletTransport, WebPushTransport


@dataclass
class Container:
    """Every long-lived service, built once per process."""

    config: AppConfig
    ledger: EventLedger
    stats: SleepStatsService
    gate: NotificationGate
    subscriptions: PushSubscriptionStore
    web_push: WebPushTransport | None
    dispatcher: NotificationDispatcher
    sleep_log: SleepLogService
    reminders: ReminderService
    insights: InsightService

    def loops(self) -> list[PeriodicTask]:
        loops = [
            PeriodicTask(
                "reminder-check",
                self.config.reminder_check_interval,
                self.reminders.check_reminder,
            )
        ]
        if self.insights.enabled:
            loops.append(
                PeriodicTask(
                    "ai-notification-check",
                    self.config.ai_check_interval,
                    self.insights.check_ai_notification,
                )
            )
        return loops


def get_reasoning_provider(config: AppConfig) -> ReasoningProvider | None:
    """
    Returns the reasoning provider, or None when insight notifications are off.
    """
    if not config.ai_notifications_enabled or not config.ai_api_key:
        return None
    return AnthropicReasoningProvider(
        api_key=config.ai_api_key,
        model=config.ai_model,
        base_url=config.ai_base_url,
    )


def get_transports(
    config: AppConfig, web_push: WebPushTransport | None
) -> list[DeliveryTransport]:
    transports: list[DeliveryTransport] = []
    if web_push is not None:
        transports.append(web_push)
    if config.pushbullet_api_key:
        transports.append(PushbulletTransport(config.pushbullet_api_key))
    return transports


def build_container(config: AppConfig) -> Container:
    ledger = CsvEventLedger(config.ledger_path)
    stats = SleepStatsService(ledger)

    gate = NotificationGate(
        JsonDocumentStore(config.notifications_path, NotificationRecord),
        GatePolicy(
            quiet_start=config.quiet_hours_start,
            quiet_end=config.quiet_hours_end,
            min_spacing=timedelta(hours=config.min_notification_spacing_hours),
            daily_cap=config.daily_notification_cap,
        ),
    )

    subscriptions = PushSubscriptionStore(
        JsonDocumentStore(config.subscriptions_path, PushSubscription),
        max_subscriptions=config.max_subscriptions,
    )
    web_push = WebPushTransport(subscriptions, config.vapid_keys_path, config.vapid_subject)
    dispatcher = NotificationDispatcher(get_transports(config, web_push))

    provider = get_reasoning_provider(config)

    return Container(
        config=config,
        ledger=ledger,
        stats=stats,
        gate=gate,
        subscriptions=subscriptions,
        web_push=web_push,
        dispatcher=dispatcher,
        sleep_log=SleepLogService(ledger, dispatcher, config.default_timezone),
        reminders=ReminderService(
            ledger,
            dispatcher,
            ReminderWatchdog(config.start_reminder_hours, config.stop_reminder_hours),
        ),
        insights=InsightService(
            stats,
            gate,
            provider,
            dispatcher,
            enabled=provider is not None,
            recent_count=config.recent_entries_count,
        ),
    )
