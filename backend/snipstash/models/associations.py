"""
SnipStash Backend — Join Tables
=================================

What:  Plain id-pair tables linking snippets to tags and to folders.
How:   Core `Table` objects (no mapped classes, no relationship()). Services
       insert, delete and join against them directly.

Both tables use the pair as a composite primary key, so a snippet can never
carry the same tag, or sit in the same folder, twice.
"""

from sqlalchemy import Column, ForeignKey, Index, Table, Uuid

from snipstash.database import Base


snippet_tags = Table(
    "snippet_tags",
    Base.metadata,
    Column(
        "snippet_id",
        Uuid(as_uuid=True),
        ForeignKey("snippets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Uuid(as_uuid=True),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    # Tag analytics and tag-intersection search join from the tag side
    Index("idx_snippet_tags_tag_id", "tag_id"),
)


snippet_folders = Table(
    "snippet_folders",
    Base.metadata,
    Column(
        "snippet_id",
        Uuid(as_uuid=True),
        ForeignKey("snippets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "folder_id",
        Uuid(as_uuid=True),
        ForeignKey("folders.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("idx_snippet_folders_folder_id", "folder_id"),
)
