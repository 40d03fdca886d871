"""
Telemetry Hub - Retention Sweeper

Opportunistic cleanup of expired log lines and orphaned commands.
There is no timer: the sweep runs inline on request paths and only does
work when the last completed sweep is at least ``trigger_interval`` old.
``trigger_interval`` controls how often the check does work and is
independent of ``retention_window``, which is how long data lives.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from telemetry_hub.errors import StoreError
from telemetry_hub.models import RetentionMarker
from telemetry_hub.models.retention_marker import MARKER_ROW_ID
from telemetry_hub.services.command_queue import CommandQueue
from telemetry_hub.services.log_store import LogStore

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Debounced purge of both the log store and the command queue.

    Two requests racing to sweep are harmless: purges are idempotent and
    the marker write is last-write-wins.
    """

    def __init__(
        self,
        db: Session,
        trigger_interval: timedelta,
        retention_window: timedelta,
        batch_size: int,
        max_batches: int = 1,
    ):
        self.db = db
        self.trigger_interval = trigger_interval
        self.retention_window = retention_window
        self.batch_size = batch_size
        self.max_batches = max_batches
        self.log_store = LogStore(db)
        self.command_queue = CommandQueue(db)

    def last_swept(self) -> Optional[datetime]:
        try:
            marker = self.db.get(RetentionMarker, MARKER_ROW_ID, populate_existing=True)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to read retention marker") from e
        return marker.last_swept if marker else None

    def is_due(self, now: datetime) -> bool:
        last = self.last_swept()
        return last is None or now - last >= self.trigger_interval

    def maybe_sweep(self, now: datetime) -> bool:
        """
        Sweep if the debounce interval has elapsed.

        Returns:
            True if a sweep ran
        """
        if not self.is_due(now):
            return False
        self.sweep(now)
        return True

    def sweep(self, now: datetime) -> dict:
        """
        Purge everything older than the retention window and advance the marker.

        Each table gets at most ``max_batches`` bounded purge calls. If the
        last call on either table came back full, the marker is left alone
        so the next request sweeps again until the backlog is gone.

        Returns:
            Dictionary with the number of purged logs and commands
        """
        threshold = now - self.retention_window
        logs, logs_backlog = self._purge(self.log_store.purge_older_than, threshold)
        commands, commands_backlog = self._purge(self.command_queue.purge_older_than, threshold)
        backlog = logs_backlog or commands_backlog
        if not backlog:
            self._mark(now)
        if logs or commands:
            logger.info(
                "Retention sweep removed %d log line(s) and %d command(s) older than %s",
                logs,
                commands,
                threshold,
            )
        return {"logs": logs, "commands": commands, "backlog": backlog}

    def _purge(self, purge, threshold: datetime) -> Tuple[int, bool]:
        total = 0
        for _ in range(self.max_batches):
            removed = purge(threshold, self.batch_size)
            total += removed
            if removed < self.batch_size:
                return total, False
        return total, True

    def _mark(self, now: datetime) -> None:
        stmt = (
            update(RetentionMarker)
            .where(RetentionMarker.id == MARKER_ROW_ID)
            .values(last_swept=now)
            .execution_options(synchronize_session=False)
        )
        try:
            try:
                if self.db.execute(stmt).rowcount == 0:
                    self.db.add(RetentionMarker(id=MARKER_ROW_ID, last_swept=now))
                self.db.commit()
            except IntegrityError:
                # Another request created the marker first
                self.db.rollback()
                self.db.execute(stmt)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to update retention marker") from e
