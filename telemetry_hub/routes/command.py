"""
Telemetry Hub - Operator Command Route

Operators submit commands for one node (``parameters.node_id``) or for
every known node.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from telemetry_hub.config import Settings
from telemetry_hub.routes.deps import get_db, get_now, get_schedule, get_settings, json_body
from telemetry_hub.schemas import CommandRequest
from telemetry_hub.security import CLI_KEY, require_api_key
from telemetry_hub.services.command_service import CommandService
from telemetry_hub.services.schedule_service import ScheduleService

router = APIRouter()


@router.post(
    "/command",
    response_class=PlainTextResponse,
    dependencies=[Depends(require_api_key(CLI_KEY))],
)
def submit_command(
    command: CommandRequest = Depends(json_body(CommandRequest)),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    schedule: ScheduleService = Depends(get_schedule),
    now: datetime = Depends(get_now),
):
    CommandService(db, schedule, settings.ALLOWED_COMMANDS).submit(command, now)
    return PlainTextResponse("OK")
