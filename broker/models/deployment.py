"""Deployment model — a version deployed into an environment."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from broker.database import Base


class Deployment(Base):
    __tablename__ = "deployments"
    __table_args__ = (
        # At most one active (undeployed_at IS NULL) row per version/environment
        Index(
            "deployments_active_version_env_idx",
            "version_id",
            "environment_id",
            unique=True,
            sqlite_where=text("undeployed_at IS NULL"),
            postgresql_where=text("undeployed_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    version_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("versions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    environment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("environments.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    deployed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    undeployed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def active(self) -> bool:
        return self.undeployed_at is None
