"""Metadata registry importing every table model.

Alembic and the test suite import ``SQLModel`` from here so that all tables
are registered before ``create_all`` or autogenerate runs.
"""

from __future__ import annotations

from sqlmodel import SQLModel

from .. import models  # noqa: F401

metadata = SQLModel.metadata

__all__ = ["SQLModel", "metadata"]
