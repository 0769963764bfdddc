from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from livegrid.db import Base


class SharedGrid(Base):
    __tablename__ = "shared_grids"

    id = Column(Integer, primary_key=True, index=True)

    # Short opaque id used in share links
    share_id = Column(String(32), nullable=False, unique=True, index=True)

    rows = Column(Integer, nullable=False)
    cols = Column(Integer, nullable=False)

    # {"{row}-{col}": {"url": ..., "is_editing": ...}}
    cell_data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)

    # Fingerprint of rows/cols/urls only, used for dedup
    state_hash = Column(String(64), nullable=False, index=True)

    type = Column(
        String(20),
        nullable=False,
        server_default="grid",  # grid, multi-track
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
