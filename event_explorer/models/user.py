"""User ORM model (reference data for initiators and requesters)."""
from sqlalchemy import Column, Integer, String

from event_explorer.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(250), nullable=False)
    email = Column(String(254), nullable=False, unique=True)
