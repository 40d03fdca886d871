"""
Telemetry Hub - Wire Schemas

Pydantic models for request and response bodies. Unknown fields in
request bodies are ignored.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from telemetry_hub.timeutil import parse_timestamp


class LogEntryIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    timestamp: datetime
    message: str

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        return parse_timestamp(value)


class UploadRequest(BaseModel):
    """Body of POST /update."""

    model_config = ConfigDict(extra="ignore")

    logs: List[LogEntryIn]


class CommandOut(BaseModel):
    command: str
    parameters: Optional[Dict[str, Any]] = None


class UpdateResponse(BaseModel):
    commands: List[CommandOut]
    update_interval: int


class DownloadLogEntry(BaseModel):
    item_id: int
    timestamp: str
    node_id: int
    message: str


class DownloadResponse(BaseModel):
    logs: List[DownloadLogEntry]


class CommandRequest(BaseModel):
    """Body of POST /command."""

    model_config = ConfigDict(extra="ignore")

    command: str
    parameters: Optional[Dict[str, Any]] = None
