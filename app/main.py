from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.routes import router as api_router
from app.config import Settings, load_settings
from app.notify.dispatcher import SendOne
from app.notify.telegram import TelegramClient
from app.observability.metrics import Metrics
from app.providers.registry import build_provider
from app.scheduler.worker import UpdateWorker
from app.storage.repository import ScheduleRepository

logger = logging.getLogger("yasno.app")


class NullWorker:
    last_run_status = "disabled"
    last_run_started_at = None
    last_run_finished_at = None
    last_error = None
    last_changed_zones: list[str] = []

    def is_running(self) -> bool:
        return False


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def build_sender(settings: Settings) -> SendOne | None:
    if not settings.telegram_token:
        logger.warning("TELEGRAM_TOKEN is not set, notifications are disabled")
        return None

    client = TelegramClient(
        token=settings.telegram_token,
        api_base=settings.telegram_api_base,
        timeout_seconds=settings.telegram_timeout_seconds,
    )
    return client.send_message


def create_app(settings: Settings | None = None) -> FastAPI:
    app_settings = settings or load_settings()
    configure_logging(app_settings.log_level)

    repository = ScheduleRepository(app_settings.database_path)
    repository.init_db()

    provider = build_provider(app_settings)
    send_one = build_sender(app_settings)
    metrics = Metrics()

    worker = (
        UpdateWorker(
            settings=app_settings,
            provider=provider,
            repository=repository,
            metrics=metrics,
            send_one=send_one,
        )
        if app_settings.enable_scheduler
        else None
    )

    app = FastAPI(title="yasno-outage-notifier", version="0.1.0")
    app.state.settings = app_settings
    app.state.repository = repository
    app.state.provider = provider
    app.state.send_one = send_one
    app.state.metrics = metrics
    app.state.worker = worker if worker is not None else NullWorker()

    @app.on_event("startup")
    async def _on_startup() -> None:
        if worker is not None:
            await worker.start()

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        if worker is not None:
            await worker.stop()

    app.include_router(api_router)
    return app


app = create_app()
