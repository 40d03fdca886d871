"""
Telemetry Hub - Command Submission Service

Validates operator commands and routes them: ``set_update_interval``
rewrites the schedule record, every other command is queued for one node
or broadcast to every node currently known from the log store.
"""

import logging
from datetime import datetime
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from telemetry_hub.config import MAX_UPLOAD_INTERVAL
from telemetry_hub.errors import ValidationError
from telemetry_hub.schemas import CommandRequest
from telemetry_hub.services.command_queue import CommandQueue
from telemetry_hub.services.log_store import LogStore
from telemetry_hub.services.schedule_service import ScheduleService
from telemetry_hub.timeutil import parse_time_of_day

logger = logging.getLogger(__name__)

MAX_NODE_ID = 2**32 - 1
MAX_PERIOD_SECONDS = MAX_UPLOAD_INTERVAL
SET_UPDATE_INTERVAL = "set_update_interval"

NodeId = Optional[Annotated[StrictInt, Field(ge=0, le=MAX_NODE_ID)]]


class CommandParameters(BaseModel):
    model_config = ConfigDict(extra="allow")

    node_id: NodeId = None


class SetUpdateIntervalParameters(CommandParameters):
    window_start: StrictStr
    window_end: StrictStr
    active_period: StrictInt = Field(gt=0, le=MAX_PERIOD_SECONDS)
    inactive_period: StrictInt = Field(gt=0, le=MAX_PERIOD_SECONDS)

    @field_validator("window_start", "window_end")
    @classmethod
    def _time_of_day(cls, value: str) -> str:
        parse_time_of_day(value)
        return value


class SetLogLevelParameters(CommandParameters):
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARN", "ERROR"]


COMMAND_PARAMETERS: Dict[str, Type[CommandParameters]] = {
    SET_UPDATE_INTERVAL: SetUpdateIntervalParameters,
    "set_log_level": SetLogLevelParameters,
}


def _normalize_parameters(parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    params = dict(parameters or {})
    # Older CLIs sent the node id under a key with a space
    if "node_id" not in params and "node id" in params:
        params["node_id"] = params.pop("node id")
    return params


class CommandService:
    """Accepts commands from operators."""

    def __init__(self, db: Session, schedule: ScheduleService, allowed_commands: Iterable[str]):
        self.db = db
        self.schedule = schedule
        self.allowed_commands = set(allowed_commands)
        self.queue = CommandQueue(db)
        self.log_store = LogStore(db)

    def validate(self, request: CommandRequest) -> CommandParameters:
        """
        Check the command name and its parameters.

        Raises:
            ValidationError: Unknown or disallowed command, or bad parameters
        """
        model = COMMAND_PARAMETERS.get(request.command)
        if model is None or request.command not in self.allowed_commands:
            raise ValidationError(f"Unknown command: {request.command}")
        try:
            return model.model_validate(_normalize_parameters(request.parameters))
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'parameters'}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(f"Invalid parameters for {request.command}: {problems}") from e

    def submit(self, request: CommandRequest, now: datetime) -> List[int]:
        """
        Validate and apply a command.

        Returns:
            Ids of the queued rows; empty for schedule changes and for
            broadcasts when no node is known yet
        """
        params = self.validate(request)
        node_id = params.node_id

        if request.command == SET_UPDATE_INTERVAL:
            apply = self.schedule.set_global if node_id is None else self.schedule.set_for_node
            apply(
                parse_time_of_day(params.window_start),
                parse_time_of_day(params.window_end),
                params.active_period,
                params.inactive_period,
                now=now,
            )
            return []

        payload: Dict[str, Any] = {"command": request.command}
        if request.parameters is not None:
            payload["parameters"] = request.parameters

        if node_id is not None:
            ids = [self.queue.enqueue(node_id, payload, now=now)]
            logger.info("Queued %s for node %s", request.command, node_id)
            return ids

        node_ids = self.log_store.known_node_ids()
        ids = self.queue.enqueue_broadcast(payload, node_ids, now=now)
        logger.info("Broadcast %s to %d known node(s)", request.command, len(node_ids))
        return ids
