"""
NoteApp: Application Package
=============================

A small note-taking web application: create, list, edit and delete short
text notes, rendered as server-side HTML.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + Templates (HTML layer)   │  ← forms, redirects, error pages
    ├─────────────────────────────────────┤
    │        Services (NoteService)       │  ← queries, commits, error kinds
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic forms
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async engine, per-request sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
