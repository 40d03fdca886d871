"""
Telemetry Hub - Models

Importing this package registers every table on ``Base.metadata``.
"""

from telemetry_hub.database import Base
from telemetry_hub.models.log_message import LogMessage
from telemetry_hub.models.pending_command import PendingCommand
from telemetry_hub.models.retention_marker import RetentionMarker
from telemetry_hub.models.schedule_config import ScheduleConfig

__all__ = [
    "Base",
    "LogMessage",
    "PendingCommand",
    "RetentionMarker",
    "ScheduleConfig",
]
