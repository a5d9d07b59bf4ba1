"""
Integration tests package.

Flask test client against the full app, backed by SqlStorage on an
in-memory SQLite database.
"""
