"""Pact model — the contract between one consumer version and one provider."""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from broker.database import Base


class Pact(Base):
    __tablename__ = "pacts"
    __table_args__ = (
        UniqueConstraint("consumer_version_id", "provider_id", name="pacts_consumer_version_provider_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    consumer_version_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("versions.id", ondelete="CASCADE"), nullable=False,
    )
    provider_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pacticipants.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    # Canonical JSON text; content_sha is the SHA-256 of exactly these bytes
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_sha: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
