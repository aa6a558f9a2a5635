"""Least-loaded auto-assignment of new sales to back-office workers.

Candidates are available users of an assignable role. Those skilled in the
sale's product are preferred; if nobody is skilled every candidate is
eligible. Among the pool, the candidate with the fewest pending sales wins,
ties broken by the lexicographic order of the candidate id.

Pending loads are counted concurrently. Each count runs on a worker thread
with its own database connection and its own timeout, so one slow count
never holds up the others. A candidate whose count fails or times out is
left out of the ranking instead of failing the whole assignment.

Known limitation: loads are read before the new sale is written and nothing
is locked, so two sales created at the same moment can both go to the same
least-loaded worker.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional

from asgiref.sync import async_to_sync, sync_to_async
from django.conf import settings
from django.db import close_old_connections

from authentication.models import User
from .models import Sale

logger = logging.getLogger(__name__)

POOL_SKILLED = "skilled"
POOL_FALLBACK = "fallback"
POOL_EMPTY = "empty"

# Shared by all engines; a timed-out count keeps its thread until the query returns.
_load_counters = ThreadPoolExecutor(max_workers=8, thread_name_prefix="assignment-load")


@dataclass(frozen=True)
class CandidateLoad:
    candidate: User
    load: int


@dataclass
class AssignmentDecision:
    """Outcome of one assignment run, kept for logging and the audit trail."""

    product_id: object
    pool: str
    assignee: Optional[User] = None
    loads: list[CandidateLoad] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)

    def as_metadata(self) -> dict:
        return {
            "product_id": None if self.product_id is None else str(self.product_id),
            "pool": self.pool,
            "assignee": str(self.assignee.pk) if self.assignee else None,
            "loads": {str(item.candidate.pk): item.load for item in self.loads},
            "excluded": self.excluded,
        }


class AssignmentEngine:
    """Pick the best assignee for a new sale of a given product."""

    def __init__(
        self,
        pending_status_id: Optional[int] = None,
        load_timeout: Optional[float] = None,
        assignable_roles: Optional[Iterable[str]] = None,
    ):
        self.pending_status_id = (
            settings.SALES_PENDING_STATUS_ID if pending_status_id is None else pending_status_id
        )
        self.load_timeout = (
            settings.ASSIGNMENT_LOAD_TIMEOUT_SECONDS if load_timeout is None else load_timeout
        )
        self.assignable_roles = list(
            settings.ASSIGNABLE_ROLES if assignable_roles is None else assignable_roles
        )

    def fetch_candidates(self) -> list[User]:
        """Available users of an assignable role with an active account."""

        return list(
            User.objects.filter(
                role__in=self.assignable_roles,
                is_active=True,
                status=User.Status.ACTIVE,
            ).order_by("id")
        )

    @staticmethod
    def skilled_candidates(candidates: list[User], product_id) -> list[User]:
        return [candidate for candidate in candidates if candidate.has_skill(product_id)]

    def _count_pending_blocking(self, candidate_id) -> int:
        try:
            return Sale.objects.filter(assigned_to_id=candidate_id, status_id=self.pending_status_id).count()
        finally:
            close_old_connections()

    async def count_pending_load(self, candidate: User) -> int:
        """Number of pending sales currently assigned to ``candidate``."""

        count = sync_to_async(self._count_pending_blocking, thread_sensitive=False, executor=_load_counters)
        return await count(candidate.pk)

    async def _timed_load(self, candidate: User) -> int:
        return await asyncio.wait_for(self.count_pending_load(candidate), timeout=self.load_timeout)

    async def measure_loads(self, pool: list[User]) -> tuple[list[CandidateLoad], list[str]]:
        """Count loads for the whole pool concurrently; return (loads, excluded ids)."""

        results = await asyncio.gather(*(self._timed_load(candidate) for candidate in pool), return_exceptions=True)
        loads: list[CandidateLoad] = []
        excluded: list[str] = []
        for candidate, result in zip(pool, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Excluding candidate %s from assignment: load count failed (%s: %s)",
                    candidate.pk,
                    type(result).__name__,
                    result,
                )
                excluded.append(str(candidate.pk))
                continue
            loads.append(CandidateLoad(candidate=candidate, load=int(result)))
        return loads, excluded

    def decide(self, product_id) -> AssignmentDecision:
        candidates = self.fetch_candidates()
        if not candidates:
            logger.info("No available candidates for product %s; sale stays unassigned", product_id)
            return AssignmentDecision(product_id=product_id, pool=POOL_EMPTY)

        skilled = self.skilled_candidates(candidates, product_id)
        if skilled:
            pool, pool_name = skilled, POOL_SKILLED
        else:
            pool, pool_name = candidates, POOL_FALLBACK
            logger.info("No candidate skilled for product %s; falling back to all %d", product_id, len(pool))

        loads, excluded = async_to_sync(self.measure_loads)(pool)
        loads.sort(key=lambda item: (item.load, str(item.candidate.pk)))

        decision = AssignmentDecision(product_id=product_id, pool=pool_name, loads=loads, excluded=excluded)
        if loads:
            decision.assignee = loads[0].candidate
            logger.info(
                "Auto-assigned product %s to %s (load %d, %s pool)",
                product_id,
                decision.assignee.pk,
                loads[0].load,
                pool_name,
            )
        else:
            logger.warning("Every candidate failed load evaluation for product %s; sale stays unassigned", product_id)
        return decision

    def choose(self, product_id) -> Optional[User]:
        """Return the chosen assignee, or None to leave the sale unassigned."""

        return self.decide(product_id).assignee


__all__ = ["AssignmentEngine", "AssignmentDecision", "CandidateLoad"]
