"""Verification model — one provider version's attempt at a pact."""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Integer, ForeignKey, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from broker.database import Base


class Verification(Base):
    __tablename__ = "verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pact_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pacts.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    provider_version_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("versions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    build_url: Mapped[str] = mapped_column(String(1000), nullable=True)
    verified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
