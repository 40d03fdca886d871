"""
Telemetry Hub - Operator Status Route

Reports queue depth and retention state for operators.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from telemetry_hub.config import Settings
from telemetry_hub.routes.deps import get_db, get_schedule, get_settings, get_sweeper
from telemetry_hub.security import CLI_KEY, require_api_key
from telemetry_hub.services.command_queue import CommandQueue
from telemetry_hub.services.log_store import LogStore
from telemetry_hub.services.retention_sweeper import RetentionSweeper
from telemetry_hub.services.schedule_service import ScheduleService
from telemetry_hub.timeutil import format_timestamp

router = APIRouter()


@router.get("/status", dependencies=[Depends(require_api_key(CLI_KEY))])
def hub_status(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    schedule: ScheduleService = Depends(get_schedule),
    sweeper: RetentionSweeper = Depends(get_sweeper),
):
    """Get pending command count, known nodes and retention settings"""
    last_swept = sweeper.last_swept()
    return {
        "pending_commands": CommandQueue(db).pending_count(),
        "known_nodes": LogStore(db).known_node_ids(),
        "margin_base": schedule.margin_base(),
        "last_swept": format_timestamp(last_swept) if last_swept else None,
        "cleanup_interval_minutes": settings.CLEANUP_INTERVAL_MINUTES,
        "delete_timeout_minutes": settings.DELETE_TIMEOUT_MINUTES,
    }
