"""Weekly report documents."""

from sqlalchemy import BigInteger, Date, DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Report(Base):
    __tablename__ = "reports"

    # BIGSERIAL on PostgreSQL, INTEGER PRIMARY KEY (rowid) on SQLite
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    week_start: Mapped[Date] = mapped_column(Date, nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)

    body: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
