"""
SnipStash Backend — Snippet SQLAlchemy Model
==============================================

What:  ORM model representing the `snippets` table.
Who:   Written by SnippetService; queried by SearchService and TagAnalytics.

Table Design:
    - user_id: the single owner. Set at creation, never reassigned.
    - usage_count: starts at 0, only ever incremented by record_usage().
    - last_used_at: NULL until the first recorded use.
    - created_at / updated_at: assigned explicitly by the service performing
      the mutation (model defaults only cover direct inserts).

    Tags and folders are NOT attributes of this model. Membership lives in
    the snippet_tags / snippet_folders join tables and is read through the
    explicit loaders on SnippetService.

    Composite index (user_id, updated_at DESC):
        Every search is scoped to one user and the default ordering is
        most-recently-updated first.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, Integer, String, Text, TIMESTAMP, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from snipstash.database import Base


class Snippet(Base):
    """A stored piece of code or note text owned by exactly one user."""

    __tablename__ = "snippets"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Free-form language label, compared case-sensitively by the language filter
    language: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    usage_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    last_used_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        default=None,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_snippets_user_updated", "user_id", updated_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Snippet(id={self.id}, user_id={self.user_id}, "
            f"title='{self.title}', language='{self.language}')>"
        )
