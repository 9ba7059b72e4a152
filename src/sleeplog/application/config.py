from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from sleeplog.domain.constants import (
    AI_CHECK_INTERVAL,
    DAILY_NOTIFICATION_CAP,
    MAX_SUBSCRIPTIONS,
    MIN_NOTIFICATION_SPACING_HOURS,
    QUIET_HOURS_END,
    QUIET_HOURS_START,
    RECENT_ENTRIES_COUNT,
    REMINDER_CHECK_INTERVAL,
    START_REMINDER_HOURS,
    STOP_REMINDER_HOURS,
)

CONFIG_FILES = [
    Path.home() / ".config/sleeplog/config.toml",
    Path.home() / ".sleeplog.toml",
]


class AppConfig(BaseSettings):
    """
    Runtime settings for the server, the loops and the CLI.

    Values come from keyword overrides, SLEEPLOG_* environment variables and
    the first TOML file found in CONFIG_FILES, in that order of precedence.
    """

    model_config = SettingsConfigDict(
        env_prefix="SLEEPLOG_",
        extra="ignore",
    )

    # Access
    api_key: str | None = None

    # Paths
    data_dir: Path = Path("./data")
    secret_dir: Path = Path("./secret")
    ledger_path: Path | None = None
    notifications_path: Path | None = None
    subscriptions_path: Path | None = None
    vapid_keys_path: Path | None = None

    # Event log
    default_timezone: str = "UTC"
    recent_entries_count: int = RECENT_ENTRIES_COUNT

    # Reminders
    start_reminder_hours: float = START_REMINDER_HOURS
    stop_reminder_hours: float = STOP_REMINDER_HOURS
    reminder_check_interval: float = REMINDER_CHECK_INTERVAL

    # Insight notifications
    ai_notifications_enabled: bool = False
    ai_api_key: str | None = None
    ai_base_url: str = "https://api.anthropic.com"
    ai_model: str = "claude-3-5-haiku-latest"
    ai_check_interval: float = AI_CHECK_INTERVAL

    # Gate
    quiet_hours_start: int = Field(default=QUIET_HOURS_START, ge=0, le=23)
    quiet_hours_end: int = Field(default=QUIET_HOURS_END, ge=0, le=23)
    min_notification_spacing_hours: float = MIN_NOTIFICATION_SPACING_HOURS
    daily_notification_cap: int = DAILY_NOTIFICATION_CAP

    # Delivery
    pushbullet_api_key: str | None = None
    vapid_subject: str = "mailto:noreply@example.com"
    max_subscriptions: int = MAX_SUBSCRIPTIONS

    # Runtime
    run_loops: bool = True
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        toml_file = next((f for f in CONFIG_FILES if f.is_file()), None)
        if toml_file is not None:
            sources.append(TomlConfigSettingsSource(settings_cls, toml_file=toml_file))
        # Earlier sources take precedence
        return tuple(sources)

    @field_validator("data_dir", "secret_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Build the effective configuration, with ``cli_overrides`` winning over
    environment and file values.

    File locations left unset are derived from data_dir and secret_dir.
    """
    config = AppConfig(**(cli_overrides or {}))

    if config.ledger_path is None:
        config.ledger_path = config.data_dir / "sleep-log.csv"
    if config.notifications_path is None:
        config.notifications_path = config.data_dir / "sent-notifications.json"
    if config.subscriptions_path is None:
        config.subscriptions_path = config.data_dir / "push-subscriptions.json"
    if config.vapid_keys_path is None:
        config.vapid_keys_path = config.secret_dir / "vapid-keys.json"

    return config
