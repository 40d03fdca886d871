"""
Telemetry Hub - Pending Command Model

SQLAlchemy model for the pending_commands table.
Each row is one command waiting to be picked up by its node.
"""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, Text
from sqlalchemy.sql import func

from telemetry_hub.database import Base


class PendingCommand(Base):
    """
    Per-node mailbox entry.

    ``command`` holds the JSON-encoded ``{"command": ..., "parameters": ...}``
    payload exactly as it will be delivered. Rows leave the table either
    through a drain or through the retention sweep.
    """
    __tablename__ = "pending_commands"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    enqueued_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    node_id = Column(BigInteger, nullable=False)
    command = Column(Text, nullable=False)

    __table_args__ = (
        Index("idx_pending_commands_node", "node_id", "id"),
        {"sqlite_autoincrement": True},
    )
