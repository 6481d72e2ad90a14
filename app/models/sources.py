"""Registered external origins that records are harvested from."""

import uuid

from sqlalchemy import DateTime, Index, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


class Source(Base):
    """One row per (kind, url) origin.

    Uniqueness is enforced by lookup-before-insert in the resolver, not by a
    database constraint; concurrent creators can race.
    """

    __tablename__ = "sources"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(Text, nullable=False)

    # Platform kind: youtube | reddit
    kind: Mapped[str] = mapped_column(Text, nullable=False)

    url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    records = relationship("Record", back_populates="source", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (Index("ix_sources_kind_url", "kind", "url"),)
