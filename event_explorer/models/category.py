"""Category ORM model (reference data for events)."""
from sqlalchemy import Column, Integer, String

from event_explorer.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
