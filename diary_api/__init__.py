"""
Diary API — Application Package
=================================

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (DiaryService, Images)   │  ← lifecycle rules, file storage
    ├─────────────────────────────────────┤
    │   Repositories, Models & Schemas    │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
