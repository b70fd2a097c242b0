"""
SnipStash Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Read by the identity resolver on every authenticated request;
       written by UserService on registration.

Ownership:
    Users own snippets and folders exclusively. The link is stored only on
    the owned side (snippets.user_id, folders.user_id); this model has no
    collection attributes pointing back at them.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, String, TIMESTAMP, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from snipstash.database import Base


class User(Base):
    """A registered account. Email is unique across the whole system."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    # bcrypt hash; the plain password never reaches the database
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
