"""Data models for the doorlog access and presence ledgers."""

import datetime as dt

from pydantic import BaseModel, ConfigDict
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.orm import declarative_base

# SQLAlchemy base
Base = declarative_base()


# Database models
class AccessRecord(Base):
    """Single badge tap at an access point, granted or denied."""

    __tablename__ = "rfid_access"
    __table_args__ = (
        Index("ix_rfid_access_date_time", "date", "time"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    person_name = Column(String(200), nullable=False)
    badge_id = Column(String(64), nullable=False)
    granted = Column(Boolean, nullable=False)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)


class PresenceRecord(Base):
    """Entry/exit interval for one person on one day."""

    __tablename__ = "rfid_presence"
    __table_args__ = (
        Index("ix_rfid_presence_person_date", "person_name", "date"),
        Index("ix_rfid_presence_date_entry", "date", "entry_time"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    person_name = Column(String(200), nullable=False)
    date = Column(Date, nullable=False)
    entry_time = Column(Time, nullable=False)
    entry_valid = Column(Boolean, nullable=False)
    exit_time = Column(Time, nullable=True)
    exit_valid = Column(Boolean, nullable=True)


# Read models
class AccessEntry(BaseModel):
    """Detached view of an access record."""

    id: int
    person_name: str
    badge_id: str
    granted: bool
    date: dt.date
    time: dt.time
    display_date: str

    model_config = ConfigDict(frozen=True)

    @property
    def moment(self) -> tuple[dt.date, dt.time]:
        """Return the (date, time) pair identifying this tap."""
        return self.date, self.time


class PresenceEntry(BaseModel):
    """Detached view of a presence interval."""

    id: int
    person_name: str
    date: dt.date
    entry_time: dt.time
    entry_valid: bool
    exit_time: dt.time | None = None
    exit_valid: bool | None = None
    display_date: str

    model_config = ConfigDict(frozen=True)

    @property
    def is_open(self) -> bool:
        """Return True while the interval has no exit recorded."""
        return self.exit_time is None

    @property
    def moment(self) -> tuple[dt.date, dt.time]:
        """Return the (date, entry time) pair ordering this interval."""
        return self.date, self.entry_time
