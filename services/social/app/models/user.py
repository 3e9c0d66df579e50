from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base


class User(Base):
    """Account row owned by the auth service; only profile fields used here are mapped."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(sa.String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="")
    # Private accounts approve each follower by hand.
    is_private: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
