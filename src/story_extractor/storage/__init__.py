"""Persistence collaborators.

Modules:
    base: The abstract :class:`StoryStorage` interface.
    database: SQLAlchemy implementation.
    memory: In-memory implementation.
    files: Rendered HTML artifacts on disk.
"""
