from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Episode(BaseModel, Base):
    __tablename__ = "episodes"

    title = Column(String(255), nullable=True)
    episode_number = Column(Integer, nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    project = relationship("Project", back_populates="episodes")
    sessions = relationship(
        "WorkSession",
        back_populates="episode",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("project_id", "episode_number", name="uq_episodes_project_number"),
        CheckConstraint("episode_number >= 0", name="ck_episodes_number_nonnegative"),
    )
