from sqlalchemy import Column, Integer, String, Float, Index, func
from datadash.db.base import Base
from datadash.db.types import UTCDateTime


class DataEntry(Base):
    """
    DataEntry = one numeric observation tagged with a category and a source.
    `timestamp` is fixed at creation; updates touch value/category/source only.
    """

    __tablename__ = "data_entries"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(UTCDateTime, nullable=False, server_default=func.now())
    value = Column(Float, nullable=False)
    category = Column(String(100), nullable=False)
    source = Column(String(100), nullable=False)

    __table_args__ = (
        Index("ix_data_entries_timestamp", "timestamp"),
        Index("ix_data_entries_dupe_probe", "value", "category", "source", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<DataEntry id={self.id} value={self.value} category={self.category!r} source={self.source!r}>"
