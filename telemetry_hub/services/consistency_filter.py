"""
Telemetry Hub - Consistency Filter

Decides which log lines are safe to hand to collectors.

Nodes upload in batches on their own cadence, so a line with a low id
may still be followed by older lines that are sitting on another node.
Lines timestamped after the schedule's safety cutoff are withheld until
every node has had a full (slack-stretched) interval to upload.

This relies on ``margin_base`` being at least as large as every node's
real upload interval. It is an assumption, not a proof.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from telemetry_hub.models import LogMessage
from telemetry_hub.services.log_store import LogStore
from telemetry_hub.services.schedule_service import ScheduleService

logger = logging.getLogger(__name__)


class ConsistencyFilter:
    def __init__(self, db: Session, schedule: ScheduleService, max_items: int):
        self.log_store = LogStore(db)
        self.schedule = schedule
        self.max_items = max_items

    def cutoff(self, now: datetime) -> datetime:
        return self.schedule.safety_cutoff(now)

    def visible_logs(self, last_id: int, now: datetime) -> List[LogMessage]:
        """
        Logs after ``last_id`` that are older than the safety cutoff.

        Args:
            last_id: Highest id the collector already has
            now: Current time

        Returns:
            At most ``max_items`` rows, ascending by id
        """
        cutoff = self.cutoff(now)
        logs = self.log_store.range_after(last_id, cutoff, self.max_items)
        logger.debug(
            "Fetched %d log(s) for download: last_id=%s, cutoff=%s, now=%s",
            len(logs),
            last_id,
            cutoff,
            now,
        )
        return logs
