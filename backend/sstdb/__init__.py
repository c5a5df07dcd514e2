# backend/sstdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- The package exposes a clear surface.

The actual model classes are kept in sstdb/apps/*/models.py.
"""

from .apps.evaluations import models as evaluations_models    # templates, attempts, answers

__all__ = [
    "evaluations_models",
]
