from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Follow(Base):
    """Follow edge. ``is_approved=False`` is a pending request; rows are hard-deleted."""

    __tablename__ = "follows"

    follow_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    followed_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    is_approved: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    follower = relationship("User", foreign_keys=[follower_id], lazy="raise")
    followed = relationship("User", foreign_keys=[followed_id], lazy="raise")

    __table_args__ = (
        sa.UniqueConstraint("follower_id", "followed_id", name="uq_follows_pair"),
        sa.CheckConstraint("follower_id != followed_id", name="ck_follows_no_self"),
        sa.Index("idx_follows_follower_id", "follower_id"),
        sa.Index("idx_follows_followed_approved", "followed_id", "is_approved"),
    )
