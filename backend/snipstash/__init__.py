"""
SnipStash Backend — Application Package Initializer
===================================================

What: Marks the `snipstash` directory as a Python package.
Who:  Imported by uvicorn (`snipstash.main:app`), Alembic, and pytest.

Architecture Note:
    The backend keeps the same layered split for every resource:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, identity resolution
    ├─────────────────────────────────────┤
    │   Services (Search, Tags, Store)    │  ← Ownership scoping, query composition
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services never read an ambient "current user": the owning user id is an
    explicit argument to every snippet, folder, search and analytics call.
"""

__version__ = "1.0.0"
