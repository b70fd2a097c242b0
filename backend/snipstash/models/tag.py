"""
SnipStash Backend — Tag SQLAlchemy Model
==========================================

What:  ORM model for the `tags` table, a vocabulary shared by all users.

Uniqueness:
    `name` carries a UNIQUE constraint and is compared case-sensitively.
    TagService.find_or_create_tag relies on that constraint to settle
    concurrent creates of the same name: the losing insert fails and the
    loser re-reads the winner's row.

    Tags are never deleted when the last snippet referencing them goes away.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, TIMESTAMP, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from snipstash.database import Base


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"
