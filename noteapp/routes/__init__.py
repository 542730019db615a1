# Routes package init
"""
NoteApp: Routes Package
========================

Route Inventory:
    - notes.py:   GET /, /notes              (list)
                  GET/POST /notes/create     (create)
                  GET/POST /notes/edit/{id}  (edit)
                  GET/POST /notes/delete/{id} (delete)
    - health.py:  GET /health                (service health check)

Routes stay thin: they read the request, call NoteService, and choose
between a template, a redirect or a 404.
"""
