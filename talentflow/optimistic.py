"""
Client-side job list with optimistic reordering.

The list shows a reorder immediately, then either keeps it once the service
confirms or snaps back to the last confirmed list if the service refuses.
Because a failed reorder changes nothing in the store, the confirmed list is
always the right thing to fall back to.
"""

import copy
from typing import Any, Dict, List, Optional

from .errors import TalentFlowError
from .ordering import shift_plan


class OptimisticJobList:
    """Confirmed jobs plus a working copy shown to the user."""

    def __init__(self, jobs: Optional[List[Dict[str, Any]]] = None):
        self.jobs: List[Dict[str, Any]] = []
        self.optimistic_jobs: List[Dict[str, Any]] = []
        self.pending_reorder: Optional[Dict[str, int]] = None
        self.set_jobs(jobs or [])

    def set_jobs(self, jobs: List[Dict[str, Any]]) -> None:
        self.jobs = sorted((dict(job) for job in jobs), key=lambda job: job["order"])
        self.optimistic_jobs = copy.deepcopy(self.jobs)
        self.pending_reorder = None

    def reorder_optimistically(self, job_id: int, from_order: int, to_order: int) -> None:
        self.pending_reorder = {"job_id": job_id, "from_order": from_order, "to_order": to_order}
        if not any(job["id"] == job_id for job in self.optimistic_jobs):
            return

        plan = shift_plan(from_order, to_order)
        if plan is not None:
            low, high, delta = plan
            for job in self.optimistic_jobs:
                if job["id"] == job_id:
                    job["order"] = to_order
                elif low <= job["order"] <= high:
                    job["order"] += delta
        self.optimistic_jobs.sort(key=lambda job: job["order"])

    def commit(self) -> None:
        self.jobs = copy.deepcopy(self.optimistic_jobs)
        self.pending_reorder = None

    def rollback(self) -> None:
        self.optimistic_jobs = copy.deepcopy(self.jobs)
        self.pending_reorder = None

    def visible_ids(self) -> List[int]:
        return [job["id"] for job in self.optimistic_jobs]


def apply_reorder(view: OptimisticJobList, service, job_id: int, from_order: int, to_order: int) -> Dict[str, Any]:
    """
    Reorder through the service with an optimistic local update.

    On success the optimistic list is committed; on any service error it is
    rolled back and the error re-raised.
    """
    view.reorder_optimistically(job_id, from_order, to_order)
    try:
        moved = service.reorder_job(job_id, from_order, to_order)
    except TalentFlowError:
        view.rollback()
        raise
    view.commit()
    return moved
