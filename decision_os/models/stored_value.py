"""
Persisted application state.

Each row holds one JSON document under a fixed key (profile, journal,
latest scans, resolved findings, change projects). Writes replace the
whole document; the last writer wins.
"""
from sqlalchemy import Column, DateTime, JSON, String
from sqlalchemy.sql import func

from decision_os.database import Base


class StoredValue(Base):
    """One keyed JSON document."""

    __tablename__ = "stored_values"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredValue {self.key}>"
