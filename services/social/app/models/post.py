from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import LikeTargetType, like_target_type_enum


def _now() -> datetime:
    return datetime.now(timezone.utc)


post_hashtags = sa.Table(
    "post_hashtags",
    Base.metadata,
    sa.Column("post_id", sa.ForeignKey("posts.post_id", ondelete="CASCADE"), primary_key=True),
    sa.Column(
        "hashtag_id", sa.ForeignKey("hashtags.hashtag_id", ondelete="CASCADE"), primary_key=True
    ),
)


class Post(Base):
    __tablename__ = "posts"

    post_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(sa.String(300), nullable=False)
    body: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
    like_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )

    hashtags = relationship("Hashtag", secondary=post_hashtags, lazy="selectin")

    __table_args__ = (sa.Index("ix_posts_author_id", "author_id"),)


class Comment(Base):
    __tablename__ = "comments"

    comment_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    parent_comment_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("comments.comment_id", ondelete="CASCADE"), nullable=True
    )
    body: Mapped[str] = mapped_column(sa.Text, nullable=False)
    like_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    # Direct replies only
    comment_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (sa.Index("ix_comments_post_id", "post_id"),)


class Like(Base):
    __tablename__ = "likes"

    like_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    target_type: Mapped[LikeTargetType] = mapped_column(like_target_type_enum, nullable=False)
    # Post or comment id depending on target_type (polymorphic, no FK)
    target_id: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        sa.UniqueConstraint("user_id", "target_type", "target_id", name="uq_likes_user_target"),
    )


class Hashtag(Base):
    __tablename__ = "hashtags"

    hashtag_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False, unique=True)
