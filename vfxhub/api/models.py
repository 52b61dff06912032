from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from vfxhub.api.database import Base


class DocumentModel(Base):
    """Key-value document: one JSON-encoded collection per key (e.g. vfx_projects)"""

    __tablename__ = "documents"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)  # JSON array of records
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
