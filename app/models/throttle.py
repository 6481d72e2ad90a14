"""Per-key ingestion cooldowns."""

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ThrottleEntry(Base):
    __tablename__ = "job_throttle"

    # e.g. "pull:youtube:<video id>"
    key: Mapped[str] = mapped_column(Text, primary_key=True)

    next_allowed_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
