from sqlalchemy import Column, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Project(BaseModel, Base):
    __tablename__ = "projects"

    title = Column(String(255), nullable=False)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)

    client = relationship("Client", back_populates="projects")
    episodes = relationship(
        "Episode",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Episode.episode_number",
    )

    __table_args__ = (
        Index("ix_projects_title", "title"),
    )
