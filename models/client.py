from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Client(BaseModel, Base):
    __tablename__ = "clients"

    client_name = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Client: RESTRICT deletion while projects reference it
    projects = relationship("Project", back_populates="client", passive_deletes="all")
