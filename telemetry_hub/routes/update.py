"""
Telemetry Hub - Node Upload Route

Nodes post their log batch here and get back their pending commands and
the upload interval to use next.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from telemetry_hub.errors import ValidationError
from telemetry_hub.routes.deps import get_db, get_now, get_schedule, get_sweeper, json_body
from telemetry_hub.schemas import CommandOut, UpdateResponse, UploadRequest
from telemetry_hub.security import PROBE_KEY, require_api_key
from telemetry_hub.services.command_queue import CommandQueue
from telemetry_hub.services.command_service import MAX_NODE_ID
from telemetry_hub.services.log_store import LogStore
from telemetry_hub.services.retention_sweeper import RetentionSweeper
from telemetry_hub.services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_node_id(value: Optional[str]) -> int:
    if value is None:
        raise ValidationError("Missing X-Node-ID header")
    value = value.strip()
    if not value.isdigit() or int(value) > MAX_NODE_ID:
        raise ValidationError("Invalid node ID")
    return int(value)


@router.post(
    "/update",
    response_model=UpdateResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key(PROBE_KEY))],
)
def upload_logs(
    upload: UploadRequest = Depends(json_body(UploadRequest)),
    x_node_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    schedule: ScheduleService = Depends(get_schedule),
    sweeper: RetentionSweeper = Depends(get_sweeper),
    now: datetime = Depends(get_now),
):
    """
    Store a node's log batch, run the debounced retention sweep, and hand
    back the node's queued commands.

    The batch is committed as a whole or not at all.
    """
    node_id = parse_node_id(x_node_id)
    logger.debug("Received upload request. Node_id: %s, uploaded logline count: %d", node_id, len(upload.logs))

    LogStore(db).append_batch(node_id, [(entry.timestamp, entry.message) for entry in upload.logs])
    sweeper.maybe_sweep(now)
    commands = CommandQueue(db).drain_for(node_id)

    return UpdateResponse(
        commands=[CommandOut(**command) for command in commands],
        update_interval=schedule.effective_interval(now),
    )
