from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from neemamed.database import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)  # JSON-encoded collection or session
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
