"""
SQLAlchemy ORM Models for SQLShift

- ConversionCacheEntry: durable (shared) tier of the conversion cache,
  one row per (content_hash, ai_model)
"""

from sqlalchemy import (
    Column, String, Text, TIMESTAMP, Index, TypeDecorator, UniqueConstraint, JSON,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import UUID as PostgreSQL_UUID, JSONB
import uuid
from datetime import datetime

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


# UUID type that works with both PostgreSQL and SQLite
class UUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as String(36).
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgreSQL_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name == 'postgresql':
            return value
        return str(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value)))

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


# =============================================================================
# Conversion Cache
# =============================================================================

class ConversionCacheEntry(Base):
    """Cached Sybase → Oracle conversion, shared across processes."""
    __tablename__ = "conversion_cache"
    __table_args__ = (
        UniqueConstraint('content_hash', 'ai_model', name='uq_conversion_cache_hash_model'),
        Index('idx_conversion_cache_created', 'created_at'),
    )

    entry_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    content_hash = Column(String(64), nullable=False)
    ai_model = Column(String(255), nullable=False)
    original_code = Column(Text, nullable=False)
    converted_code = Column(Text, nullable=False)
    metrics = Column(JSONType, default=dict)            # PerformanceMetrics.to_dict()
    issues = Column(JSONType, default=list)             # [ConversionIssue.to_dict()]
    data_type_mapping = Column(JSONType, default=list)  # [DataTypeMapping.to_dict()]
    result_json = Column(Text, nullable=True)           # full ConversionResult as JSON
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ConversionCacheEntry(hash='{self.content_hash[:12]}', model='{self.ai_model}')>"
