# Security package init
"""
NoteApp: Security Package
==========================

What:  Request-level protections shared by the HTML routes.

Contents:
    - csrf.py: anti-forgery tokens for every state-changing form submission
"""
