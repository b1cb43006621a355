from sqlalchemy import Column, Integer, String, JSON, DateTime, Index
from sqlalchemy.sql import func

from magicsell.core.database import Base


class CollectionRecord(Base):
    """
    One document of a logical collection (orders, customers, dailySales, ...).

    Collections are replaced wholesale, so rows carry their position to keep
    the original sequence on reload.
    """
    __tablename__ = "collection_records"

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(String(50), nullable=False)
    position = Column(Integer, nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('ix_collection_records_collection_position', 'collection', 'position'),
    )

    def __repr__(self):
        return f"<CollectionRecord(collection={self.collection}, position={self.position})>"


class Counter(Base):
    __tablename__ = "counters"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Counter(name={self.name}, value={self.value})>"
