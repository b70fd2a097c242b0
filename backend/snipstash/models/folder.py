"""
SnipStash Backend — Folder SQLAlchemy Model
=============================================

What:  ORM model for the `folders` table.

Constraints:
    - Exactly one owning user (user_id).
    - Folder names are unique per user, not globally: two users may both
      have a folder called "work". Enforced by uq_folders_user_name.
    - A snippet may sit in many folders; membership lives in snippet_folders.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, String, Text, TIMESTAMP, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from snipstash.database import Base


class Folder(Base):
    __tablename__ = "folders"

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

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

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
        UniqueConstraint("user_id", "name", name="uq_folders_user_name"),
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, user_id={self.user_id}, name='{self.name}')>"
