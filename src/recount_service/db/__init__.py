"""Database utilities."""

from __future__ import annotations

from recount_service.db.engine import Store, build_engine

__all__ = ["Store", "build_engine"]
