"""System health checks executed on startup."""

from __future__ import annotations

from recount_service.system_checks.runner import run_checks

__all__ = ["run_checks"]
