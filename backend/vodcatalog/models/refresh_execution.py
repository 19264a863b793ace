from sqlalchemy import Column, Integer, String, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from vodcatalog.db.base_class import Base
import enum

class RefreshStatus(str, enum.Enum):
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"

class RefreshExecution(Base):
    __tablename__ = "refresh_executions"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, nullable=False, index=True)
    source = Column(String, nullable=False, default="xtream")  # "xtream" or "m3u"
    started_at = Column(DateTime, server_default=func.now(), nullable=False)
    completed_at = Column(DateTime, nullable=True)
    status = Column(SQLEnum(RefreshStatus), nullable=False, default=RefreshStatus.RUNNING)
    movies_processed = Column(Integer, default=0)
    series_processed = Column(Integer, default=0)
    relations_removed = Column(Integer, default=0)
    orphans_removed = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
