# backend/models.py
import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime
from .db import Base

FOLDER_TYPE = "folder"


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class Document(Base):
    """A file or a folder. Folders have type "folder" and empty content."""
    __tablename__ = "documents"
    # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    # plain integer, not a ForeignKey: deleting a folder leaves children pointing at it
    parent_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER_TYPE
