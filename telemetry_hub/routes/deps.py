"""
Telemetry Hub - Route Dependencies

Per-request database sessions, settings, the clock and the services
built on top of them.
"""

from datetime import datetime, timedelta

from fastapi import Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from telemetry_hub.config import Settings
from telemetry_hub.errors import ValidationError
from telemetry_hub.services.retention_sweeper import RetentionSweeper
from telemetry_hub.services.schedule_service import ScheduleService
from telemetry_hub.timeutil import utcnow


def get_db(request: Request):
    """Dependency for database session"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_now() -> datetime:
    return utcnow()


def get_schedule(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ScheduleService:
    return ScheduleService(db, settings.DEFAULT_UPLOAD_INTERVAL, settings.SAFETY_SLACK_FACTOR)


def get_sweeper(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RetentionSweeper:
    return RetentionSweeper(
        db,
        trigger_interval=timedelta(minutes=settings.CLEANUP_INTERVAL_MINUTES),
        retention_window=timedelta(minutes=settings.DELETE_TIMEOUT_MINUTES),
        batch_size=settings.PURGE_BATCH_SIZE,
        max_batches=settings.PURGE_MAX_BATCHES,
    )


def json_body(model):
    """Build a dependency that parses the request body into ``model``.

    Parsing happens inside the dependency chain, after the API key check.
    """

    async def dependency(request: Request):
        body = await request.body()
        try:
            return model.model_validate_json(body)
        except PydanticValidationError as e:
            raise ValidationError(f"Malformed request body: {_describe(e)}") from e

    return dependency


def _describe(error: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
        for err in error.errors()
    )
