"""Column mixins shared by source tables and derived (rebuilt) tables."""
from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_mixin

@declarative_mixin
class IdMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)

@declarative_mixin
class TimestampMixin:
    """Rows written by ingestion and patched in place."""
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

@declarative_mixin
class SnapshotMixin:
    """Rows produced by a batch job; every rebuild stamps them again."""
    score_schema_version = Column(String(10), nullable=False, default="v2")
    calculated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
