"""
Tooth Time — Plan Store.

Holds the current plan in memory and mirrors it to the key-value DB after
every change. Reads that fail for any reason fall back to the default plan;
writes that fail are logged and left for the next change to overwrite.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable

from src.data.db import KeyValueDB, WriteResult
from src.data.models import CorruptPlanError, Plan, plan_from_dict, plan_to_dict

logger = logging.getLogger(__name__)

PLAN_KEY = "tooth_time_pixel_v4"


class PlanStore:
    """In-memory current plan backed by a single persisted snapshot."""

    def __init__(self, db: KeyValueDB, default_factory: Callable[[], Plan]) -> None:
        self._db = db
        self._default_factory = default_factory
        self._plan = self._load()

    @property
    def plan(self) -> Plan:
        return self._plan

    def _load(self) -> Plan:
        try:
            raw = self._db.get_json(PLAN_KEY)
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Stored plan unreadable, using defaults: %s", exc)
            return self._default_factory()

        if raw is None:
            logger.info("No stored plan, starting from defaults")
            return self._default_factory()

        try:
            plan = plan_from_dict(raw, defaults=self._default_factory())
        except CorruptPlanError as exc:
            logger.warning("Stored plan corrupt, using defaults: %s", exc)
            return self._default_factory()

        logger.info("Plan loaded (streak %d)", plan.streak)
        return plan

    def commit(self, plan: Plan) -> WriteResult:
        """Replace the current plan and persist it best-effort."""
        self._plan = plan
        return self._db.set_json(PLAN_KEY, plan_to_dict(plan))

    def reset(self) -> Plan:
        """Drop the persisted snapshot and start over from defaults."""
        self._db.delete(PLAN_KEY)
        self._plan = self._default_factory()
        logger.info("Plan reset to defaults")
        return self._plan
