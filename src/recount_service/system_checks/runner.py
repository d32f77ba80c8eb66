"""Health check runner."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Iterable, Protocol

from sqlalchemy import inspect, text

from recount_service.db import Store
from recount_service.logging import logger
from recount_service.models import metadata


class Check(Protocol):
    name: str

    async def run(self) -> "CheckResult":
        ...


@dataclass(slots=True)
class CheckResult:
    name: str
    ok: bool
    details: str


class DatabaseCheck:
    name = "database"

    def __init__(self, store: Store) -> None:
        self.store = store

    async def run(self) -> CheckResult:
        try:
            with self.store.engine.connect() as connection:
                connection.execute(text("SELECT 1")).fetchone()
        except Exception as exc:
            return CheckResult(name=self.name, ok=False, details=str(exc))
        return CheckResult(name=self.name, ok=True, details=f"{self.store.engine.dialect.name} reachable")


class SchemaCheck:
    """All recount tables exist, i.e. migrations have been applied."""

    name = "schema"

    def __init__(self, store: Store) -> None:
        self.store = store

    async def run(self) -> CheckResult:
        try:
            existing = set(inspect(self.store.engine).get_table_names())
        except Exception as exc:
            return CheckResult(name=self.name, ok=False, details=str(exc))
        missing = sorted(set(metadata.tables) - existing)
        if missing:
            return CheckResult(name=self.name, ok=False, details=f"missing tables: {', '.join(missing)}")
        return CheckResult(name=self.name, ok=True, details=f"{len(metadata.tables)} tables present")


async def run_checks(checks: Iterable[Check]) -> list[CheckResult]:
    checks = list(checks)
    results = await asyncio.gather(*(check.run() for check in checks))
    status = all(result.ok for result in results)
    for result in results:
        if result.ok:
            logger.info("Health check passed", check=result.name, details=result.details)
        else:
            logger.error("Health check failed", check=result.name, details=result.details)
    logger.info("Overall health", ok=status)
    return list(results)
