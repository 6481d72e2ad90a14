"""Harvested items, unique per (source, external id)."""

import uuid

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

TagsType = JSON().with_variant(JSONB(), "postgresql")


class Record(Base):
    __tablename__ = "records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    source_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Platform-native identifier (comment id, etc.); conflict key together with source_id
    external_id: Mapped[str] = mapped_column(Text, nullable=False)

    author: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Creation time at the origin
    created_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Refreshed on every insert or update
    harvested_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    lang: Mapped[str | None] = mapped_column(Text, nullable=True)
    product: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[dict] = mapped_column(TagsType, nullable=False, default=dict)

    source = relationship("Source", back_populates="records")

    __table_args__ = (
        Index("records_source_external_unique", "source_id", "external_id", unique=True),
        Index("ix_records_created_at", "created_at"),
        Index("ix_records_rating", "rating"),
        Index("ix_records_product", "product"),
    )
