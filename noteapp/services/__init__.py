# Services package init
"""
NoteApp: Services Layer
========================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - NoteService: list, look up, create, update and delete notes, turning
      database failures into the application's error kinds
"""
