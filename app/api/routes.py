from __future__ import annotations

import hmac
from time import perf_counter

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.core.constants import ZONES
from app.core.formatter import format_schedule_message
from app.core.serialization import SnapshotFormatError, parse_zone
from app.notify.dispatcher import send_bulk
from app.providers.yasno_api import ProviderError

router = APIRouter()


class SubscriptionRequest(BaseModel):
    zone: str


class BroadcastRequest(BaseModel):
    message: str = Field(min_length=1)


def require_admin(
    request: Request,
    x_admin_token: str | None = Header(default=None),
) -> None:
    expected = request.app.state.settings.admin_token
    if not expected or x_admin_token is None or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="admin token required")


@router.get("/healthz")
async def healthz(request: Request) -> dict:
    worker = request.app.state.worker
    return {
        "status": "ok",
        "scheduler": {
            "enabled": request.app.state.settings.enable_scheduler,
            "running": worker.is_running(),
            "lastRunStatus": worker.last_run_status,
            "lastRunStartedAt": worker.last_run_started_at.isoformat() if worker.last_run_started_at else None,
            "lastRunFinishedAt": worker.last_run_finished_at.isoformat() if worker.last_run_finished_at else None,
            "lastError": worker.last_error,
            "lastChangedZones": list(worker.last_changed_zones),
        },
    }


@router.get("/readyz")
async def readyz(request: Request) -> dict:
    repository = request.app.state.repository
    try:
        repository.ping()
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=503, detail=f"database not ready: {exc}") from exc

    return {"status": "ready"}


@router.get("/v1/schedule/latest")
async def latest_schedule(request: Request) -> dict:
    payload = request.app.state.repository.get_cached_payload()
    if not payload:
        raise HTTPException(status_code=404, detail="No schedule snapshot available")
    return payload


@router.get("/v1/schedule/zones/{zone}")
async def zone_schedule(request: Request, zone: str) -> dict:
    payload = request.app.state.repository.get_cached_payload()
    if zone not in payload:
        raise HTTPException(status_code=404, detail=f"No schedule for zone {zone}")

    return {
        "zone": zone,
        "message": format_schedule_message(zone, parse_zone(zone, payload[zone])),
        "data": payload[zone],
    }


@router.get("/v1/schedule/history")
async def schedule_history(
    request: Request,
    limit: int = Query(default=48, ge=1, le=500),
) -> dict:
    history = request.app.state.repository.get_history(limit)
    return {
        "count": len(history),
        "items": history,
    }


@router.put("/v1/subscriptions/{chat_id}")
async def subscribe(request: Request, chat_id: int, body: SubscriptionRequest) -> dict:
    if body.zone not in ZONES:
        raise HTTPException(status_code=422, detail=f"Unknown zone: {body.zone}")

    request.app.state.repository.subscribe(chat_id, body.zone)
    return {"chatId": chat_id, "zone": body.zone}


@router.get("/v1/subscriptions/{chat_id}")
async def get_subscription(request: Request, chat_id: int) -> dict:
    zone = request.app.state.repository.get_subscription(chat_id)
    if zone is None:
        raise HTTPException(status_code=404, detail="Not subscribed")
    return {"chatId": chat_id, "zone": zone}


@router.delete("/v1/subscriptions/{chat_id}")
async def unsubscribe(request: Request, chat_id: int) -> dict:
    removed = request.app.state.repository.unsubscribe(chat_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Not subscribed")
    return {"chatId": chat_id, "unsubscribed": True}


@router.post("/v1/admin/broadcast", dependencies=[Depends(require_admin)])
async def broadcast(request: Request, body: BroadcastRequest) -> dict:
    send_one = request.app.state.send_one
    if send_one is None:
        raise HTTPException(status_code=503, detail="Notifications are disabled")

    settings = request.app.state.settings
    chat_ids = request.app.state.repository.all_subscriber_chat_ids()
    outcome = await send_bulk(
        chat_ids,
        body.message,
        send_one,
        chunk_size=settings.dispatch_chunk_size,
        chunk_delay_seconds=settings.dispatch_chunk_delay_seconds,
    )
    request.app.state.metrics.mark_dispatch(outcome)
    return {
        "successful": outcome.successful,
        "failed": outcome.failed,
        "recipients": len(chat_ids),
    }


@router.get("/v1/admin/diagnostics", dependencies=[Depends(require_admin)])
async def diagnostics(request: Request) -> dict:
    provider = request.app.state.provider
    started = perf_counter()
    try:
        result = await provider.fetch_latest()
    except (httpx.HTTPError, ProviderError, SnapshotFormatError) as exc:
        return {
            "ok": False,
            "durationMs": round((perf_counter() - started) * 1000),
            "error": f"{type(exc).__name__}: {exc}",
        }

    zones = list(result.snapshot)
    return {
        "ok": True,
        "durationMs": round((perf_counter() - started) * 1000),
        "zoneCount": len(zones),
        "zones": zones,
        "hasUpdatedOn": any(zone.last_updated_at is not None for zone in result.snapshot.values()),
    }


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    payload, content_type = request.app.state.metrics.render()
    return Response(content=payload, media_type=content_type)
