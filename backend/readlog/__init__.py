"""
Readlog Backend - Application Package Initializer
==================================================

What: Marks the `readlog` directory as a Python package.
Who:  Imported by uvicorn (`readlog.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP decoding, envelopes
    ├─────────────────────────────────────┤
    │      Services (Business Rules)      │  ← validation, hashing, conflicts
    ├─────────────────────────────────────┤
    │     Gateway (Persistence Access)    │  ← ORM queries, error mapping
    ├─────────────────────────────────────┤
    │   Models & Schemas / Database       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    Routes never touch the ORM session directly; they ask FastAPI for a
    PersistenceGateway and hand it to a service.
"""

__version__ = "1.0.0"
