"""
Telemetry Hub - Collector Download Route

Collectors page through the log store by id, seeing only lines older than
the schedule's safety cutoff.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from telemetry_hub.config import Settings
from telemetry_hub.routes.deps import get_db, get_now, get_schedule, get_settings, get_sweeper
from telemetry_hub.schemas import DownloadLogEntry, DownloadResponse
from telemetry_hub.security import COLLECTOR_KEY, require_api_key
from telemetry_hub.services.consistency_filter import ConsistencyFilter
from telemetry_hub.services.retention_sweeper import RetentionSweeper
from telemetry_hub.services.schedule_service import ScheduleService
from telemetry_hub.timeutil import format_timestamp

router = APIRouter()


@router.get(
    "/download",
    response_model=DownloadResponse,
    dependencies=[Depends(require_api_key(COLLECTOR_KEY))],
)
def download_logs(
    last_log_message_id: int = Query(..., ge=0, le=2**63 - 1),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    schedule: ScheduleService = Depends(get_schedule),
    sweeper: RetentionSweeper = Depends(get_sweeper),
    now: datetime = Depends(get_now),
):
    """Return up to MAX_LOG_ITEMS_PER_DOWNLOAD logs after the given id."""
    logs = ConsistencyFilter(db, schedule, settings.MAX_LOG_ITEMS_PER_DOWNLOAD).visible_logs(
        last_log_message_id, now
    )
    if settings.SWEEP_ON_DOWNLOAD:
        sweeper.maybe_sweep(now)

    return DownloadResponse(
        logs=[
            DownloadLogEntry(
                item_id=log.id,
                timestamp=format_timestamp(log.timestamp),
                node_id=log.node_id,
                message=log.message,
            )
            for log in logs
        ]
    )
