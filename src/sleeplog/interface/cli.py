"""sleeplog CLI — server, stats, configuration and maintenance commands."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer

from sleeplog.application.config import AppConfig, resolve_config

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="sleeplog: sleep logging, stats and smart notifications.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage sleeplog configuration.")
app.add_typer(config_app, name="config")

push_app = typer.Typer(help="Web Push setup.", no_args_is_help=True)
app.add_typer(push_app, name="push")

notifications_app = typer.Typer(help="Sent notification history.", no_args_is_help=True)
app.add_typer(notifications_app, name="notifications")


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    return resolve_config({k: v for k, v in overrides.items() if v is not None})


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8000,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """[bold green]Serve[/bold green] the HTTP API and run the notification loops."""
    import uvicorn

    uvicorn.run("sleeplog.server:app", host=host, port=port, reload=reload)


@app.command()
def stats(
    count: Annotated[int, typer.Option(help="Number of recent log entries to use.")] = 20,
    ledger: Annotated[Path | None, typer.Option(help="Sleep log CSV file.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show sleep statistics over the most recent entries."""
    from sleeplog.application.stats import InsufficientData, SleepStatsService
    from sleeplog.infrastructure.adapters import CsvEventLedger

    config = _resolve_with_overrides(ledger_path=ledger)
    service = SleepStatsService(CsvEventLedger(config.ledger_path))

    async def run():
        entries = await service.get_recent_sleep_entries(count)
        return service.get_sleep_stats(entries)

    result = asyncio.run(run())

    if isinstance(result, InsufficientData):
        typer.secho(result.reason, fg="yellow")
        raise typer.Exit(1)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "sessions": result.session_count,
                    "average_hours": round(result.average_hours, 2),
                    "shortest_hours": round(result.shortest_hours, 2),
                    "longest_hours": round(result.longest_hours, 2),
                    "recent_debt_hours": round(result.recent_debt_hours, 2),
                    "bedtime_mean_hours": round(result.bedtime_mean_hours, 3),
                    "bedtime_std_hours": round(result.bedtime_std_hours, 3),
                },
                indent=2,
            )
        )
    else:
        typer.echo(f"Sessions: {result.session_count}")
        typer.echo(result.describe())


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    secrets = {"api_key", "ai_api_key", "pushbullet_api_key"}
    d = {
        k: ("***" if k in secrets and v else str(v) if isinstance(v, Path) else v)
        for k, v in config.model_dump().items()
    }
    typer.echo(json.dumps(d, indent=2))


# ---------------------------------------------------------------------------
# Push subgroup
# ---------------------------------------------------------------------------


@push_app.command("gen-keys")
def push_gen_keys(
    path: Annotated[Path | None, typer.Option(help="Where to write the key file.")] = None,
):
    """Generate the VAPID key pair used to sign Web Push messages."""
    from sleeplog.infrastructure.adapters.delivery import generate_vapid_keys

    config = _resolve_with_overrides(vapid_keys_path=path)
    try:
        keys = generate_vapid_keys(config.vapid_keys_path)
    except FileExistsError:
        typer.secho(f"VAPID keys already exist at {config.vapid_keys_path}", fg="yellow")
        typer.echo("Delete the file if you want to regenerate keys.")
        return

    typer.secho(f"VAPID keys generated and saved to {config.vapid_keys_path}", fg="green")
    typer.echo("\nPublic key (for frontend):")
    typer.echo(keys["publicKey"])


# ---------------------------------------------------------------------------
# Notifications subgroup
# ---------------------------------------------------------------------------


@notifications_app.command("migrate")
def notifications_migrate(
    path: Annotated[Path | None, typer.Option(help="Notification history file.")] = None,
):
    """Assign IDs to history records written before notifications had IDs."""
    from sleeplog.domain.notifications import generate_notification_id

    config = _resolve_with_overrides(notifications_path=path)
    history_path = config.notifications_path

    if not history_path.exists():
        typer.echo(f"No {history_path.name} found, nothing to migrate.")
        return

    try:
        raw = json.loads(history_path.read_text(encoding="utf-8"))
    except ValueError as e:
        typer.secho(f"Could not parse {history_path}: {e}", fg="red")
        raise typer.Exit(1)

    if not isinstance(raw, list):
        typer.secho("Unexpected format: expected an array.", fg="red")
        raise typer.Exit(1)

    migrated = 0
    for item in raw:
        if isinstance(item, dict) and not item.get("id"):
            item["id"] = generate_notification_id()
            migrated += 1

    history_path.write_text(json.dumps(raw, indent=2, ensure_ascii=False), encoding="utf-8")
    typer.echo(f"Migrated {migrated} notification(s), {len(raw) - migrated} already had IDs.")


@notifications_app.command("list")
def notifications_list(
    path: Annotated[Path | None, typer.Option(help="Notification history file.")] = None,
    limit: Annotated[int, typer.Option(help="Show at most this many records.")] = 10,
):
    """Show the most recently sent notifications."""
    from sleeplog.domain.notifications import NotificationRecord
    from sleeplog.infrastructure.adapters import JsonDocumentStore

    config = _resolve_with_overrides(notifications_path=path)
    store = JsonDocumentStore(config.notifications_path, NotificationRecord)
    records = asyncio.run(store.read())

    if not records:
        typer.secho("No notifications sent yet.", fg="yellow")
        return

    for r in records[-limit:]:
        feedback = f"  [{r.feedback.value}]" if r.feedback else ""
        typer.echo(f"{r.sent_at:%Y-%m-%d %H:%M}  {r.title}: {r.body}{feedback}")


def main():
    app()
