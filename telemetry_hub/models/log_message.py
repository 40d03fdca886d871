"""
Telemetry Hub - Log Message Model

SQLAlchemy model for the log_messages table.
Holds every log line uploaded by a node until the retention sweep removes it.
"""

from sqlalchemy import BigInteger, Column, DateTime, Integer, Text

from telemetry_hub.database import Base


class LogMessage(Base):
    """
    One uploaded log line.

    ``id`` is assigned by the store on insert and defines read order.
    ``timestamp`` is the capture time reported by the node; it is not
    trusted to be monotonic with ``id``.
    """
    __tablename__ = "log_messages"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    node_id = Column(BigInteger, nullable=False, index=True)
    message = Column(Text, nullable=False)

    __table_args__ = {"sqlite_autoincrement": True}
