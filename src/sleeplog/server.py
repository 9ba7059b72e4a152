import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from sleeplog.application.factory import Container, build_container
from sleeplog.application.stats import InsufficientData
from sleeplog.consts import VERSION
from sleeplog.domain.errors import AuthorizationError, SleepLogError
from sleeplog.domain.models import GeoPosition, LogEntry
from sleeplog.domain.notifications import Feedback
from sleeplog.domain.push import PushSubscription

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("sleeplog.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    from sleeplog.application.config import resolve_config

    config = resolve_config()
    logging.getLogger("sleeplog").setLevel(config.log_level.upper())
    container = build_container(config)
    app.state.container = container

    loops = container.loops() if config.run_loops else []
    for loop in loops:
        loop.start()

    logger.info(f"Sleeplog Server v{VERSION} starting up...")
    yield
    # Shutdown
    for loop in loops:
        await loop.stop()
    logger.info("Sleeplog Server shutting down...")


app = FastAPI(
    title="Sleeplog Server",
    description="Sleep logging, stats and notification service.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


def get_container(request: Request) -> Container:
    return request.app.state.container


def require_api_key(
    container: Container = Depends(get_container),
    api_key: str | None = Query(default=None, alias="apiKey"),
) -> None:
    expected = container.config.api_key
    if not expected or api_key != expected:
        raise AuthorizationError("Invalid API key")


def success_response(data: Any, message: str) -> dict:
    return {"success": True, "data": data, "message": message}


@app.exception_handler(SleepLogError)
async def sleeplog_error_handler(request: Request, exc: SleepLogError):
    status = 401 if isinstance(exc, AuthorizationError) else 500
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status, content={"success": False, "message": str(exc)})


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class Coords(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None


class PositionRequest(BaseModel):
    coords: Coords
    timestamp: int  # epoch milliseconds
    timezone: str | None = None

    def to_position(self) -> GeoPosition:
        return GeoPosition(
            latitude=self.coords.latitude,
            longitude=self.coords.longitude,
            timestamp=self.timestamp,
            accuracy=self.coords.accuracy,
            timezone=self.timezone,
        )


class UnsubscribeRequest(BaseModel):
    endpoint: str


class FeedbackRequest(BaseModel):
    feedback: Feedback


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


def entry_to_dict(entry: LogEntry) -> dict:
    return {
        "localTime": entry.local_time,
        "utcTime": entry.utc_time.isoformat(),
        "timezone": entry.timezone_name,
        "latitude": entry.latitude,
        "longitude": entry.longitude,
        "duration": entry.duration,
        "isStop": entry.is_stop,
    }


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/api/sleep", dependencies=[Depends(require_api_key)])
async def log_sleep(req: PositionRequest, container: Container = Depends(get_container)):
    entry = await container.sleep_log.log_sleep(req.to_position())
    return success_response({"updatedRow": entry_to_dict(entry)}, "Successfully added sleep entry")


@app.get("/api/sleep", dependencies=[Depends(require_api_key)])
async def get_sleep(container: Container = Depends(get_container)):
    entries = await container.ledger.read_all()
    return success_response(
        [entry_to_dict(e) for e in entries], "Successfully retrieved sleep entries"
    )


@app.get("/api/sleep/last", dependencies=[Depends(require_api_key)])
async def get_last_sleep(container: Container = Depends(get_container)):
    entries = await container.ledger.read_all()
    data = {
        "lastSleepEntry": entry_to_dict(entries[-1]) if entries else None,
        "numberOfSleepEntries": len(entries),
    }
    return success_response(data, "Successfully retrieved last sleep entry")


@app.put("/api/sleep/last", dependencies=[Depends(require_api_key)])
async def replace_last_sleep(
    req: PositionRequest, container: Container = Depends(get_container)
):
    entry = await container.sleep_log.replace_last_sleep(req.to_position())
    return success_response(
        {"updatedRow": entry_to_dict(entry)}, "Successfully replaced last sleep entry"
    )


@app.get("/api/sleep/stats", dependencies=[Depends(require_api_key)])
async def get_sleep_stats(
    count: int = Query(default=20, ge=1, le=1000),
    container: Container = Depends(get_container),
):
    entries = await container.stats.get_recent_sleep_entries(count)
    stats = container.stats.get_sleep_stats(entries)
    if isinstance(stats, InsufficientData):
        return success_response(None, stats.reason)
    return success_response(
        {
            "sessionCount": stats.session_count,
            "averageHours": stats.average_hours,
            "shortestHours": stats.shortest_hours,
            "longestHours": stats.longest_hours,
            "recentDebtHours": stats.recent_debt_hours,
            "bedtimeMeanHours": stats.bedtime_mean_hours,
            "bedtimeStdHours": stats.bedtime_std_hours,
        },
        "Successfully computed sleep stats",
    )


@app.get("/api/push/vapid-public-key")
async def get_vapid_public_key(container: Container = Depends(get_container)):
    key = container.web_push.public_key if container.web_push else None
    return {"publicKey": key}


@app.post("/api/push/subscribe", dependencies=[Depends(require_api_key)])
async def subscribe(sub: PushSubscription, container: Container = Depends(get_container)):
    await container.subscriptions.add(sub)
    return success_response({}, "Subscribed to push notifications")


@app.post("/api/push/unsubscribe", dependencies=[Depends(require_api_key)])
async def unsubscribe(req: UnsubscribeRequest, container: Container = Depends(get_container)):
    await container.subscriptions.remove(req.endpoint)
    return success_response({}, "Unsubscribed from push notifications")


@app.get("/api/notifications", dependencies=[Depends(require_api_key)])
async def get_notifications(container: Container = Depends(get_container)):
    records = await container.insights.recent_notifications()
    return success_response(
        [r.model_dump(mode="json", by_alias=True) for r in records],
        "Successfully retrieved recent notifications",
    )


@app.post("/api/notifications/{notification_id}/feedback", dependencies=[Depends(require_api_key)])
async def notification_feedback(
    notification_id: str,
    req: FeedbackRequest,
    container: Container = Depends(get_container),
):
    record = await container.insights.record_feedback(notification_id, req.feedback)
    if record is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": f"Unknown notification {notification_id}"},
        )
    return success_response(record.model_dump(mode="json", by_alias=True), "Feedback recorded")
