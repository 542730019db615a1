# Middleware package init
"""
NoteApp: Middleware Package
============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [Session] → Route Handler

    1. Request ID: sets the request id and trace id used by logs and the
       error page
    2. Logging: one access line per request, tagged with the request id
    3. GZip: compresses larger HTML responses
    4. Session: signed cookie holding the anti-forgery token
"""
