from enum import Enum

from sqlalchemy import Column, String, Integer, Date, ForeignKey, Table, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import BaseModel, Base


class Part(str, Enum):
    PROPS = "props"
    FOOTSTEPS = "footsteps"
    MOVEMENTS = "movements"
    DIALOGUE = "dialogue"
    ADR = "adr"
    MUSIC = "music"
    BACKGROUND = "background"
    OTHER = "other"


class Activity(str, Enum):
    RECORD = "record"
    EDIT = "edit"
    SERVICE = "service"
    SPOTTING = "spotting"
    OTHER = "other"


# Association table: which users took part in a work session
session_users = Table(
    "session_users",
    Base.metadata,
    Column("session_id", String(36), ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class WorkSession(BaseModel, Base):
    """A recorded block of work on one episode."""
    __tablename__ = "sessions"

    duration = Column(Integer, nullable=False)  # minutes
    session_date = Column(Date, nullable=False)
    episode_id = Column(String(36), ForeignKey("episodes.id", ondelete="CASCADE"), nullable=False, index=True)
    part_worked_on = Column(
        SAEnum(Part, name="part", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    activity_done = Column(
        SAEnum(Activity, name="activity", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    episode = relationship("Episode", back_populates="sessions")
    users = relationship("User", secondary=session_users)

    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_sessions_duration_positive"),
    )
