"""
Order maintenance for job postings.

Live jobs hold orders 1..N with no gaps and no duplicates. Orders change only
through shift_range(), called by the placement routines below, always inside
a unit of work so a failure part-way leaves every order as it was.

Moving a job from position f to position t:

    f < t   jobs in [f+1, t] move up one (order - 1), job takes t
    f > t   jobs in [t, f-1] move down one (order + 1), job takes t
"""

from collections import Counter
from typing import Iterable, List, Optional, Tuple

from .database import Job
from .errors import Conflict, InvalidArgument, OrderingViolation
from .schema import is_positive_int
from .store import UnitOfWork


def shift_plan(from_order: int, to_order: int) -> Optional[Tuple[int, int, int]]:
    """
    Range of neighbours displaced by a move and the direction they shift.

    Returns:
        (low, high, delta) with low/high inclusive, or None when nothing moves
    """
    if from_order == to_order:
        return None
    if from_order < to_order:
        return from_order + 1, to_order, -1
    return to_order, from_order - 1, 1


def shift_range(
    uow: UnitOfWork,
    low: int,
    high: int,
    delta: int,
    exclude_id: Optional[int] = None,
) -> List[Job]:
    """Shift every job with low <= order <= high by delta."""
    jobs = [job for job in uow.range_by_order(low, high) if job.id != exclude_id]
    uow.update_many(jobs, delta)
    return jobs


def move_record(uow: UnitOfWork, job: Job, from_order: int, to_order: int) -> List[Job]:
    """
    Shared routine behind reorder and update-with-reposition.

    Shifts the jobs between the two positions, then places job at to_order.

    Returns:
        The neighbouring jobs that were shifted
    """
    plan = shift_plan(from_order, to_order)
    if plan is None:
        return []
    low, high, delta = plan
    shifted = shift_range(uow, low, high, delta, exclude_id=job.id)
    uow.checkpoint("shifted")
    uow.update(job.id, {"order": to_order})
    return shifted


def assign_order(uow: UnitOfWork, requested_order: Optional[int] = None) -> int:
    """
    Order for a job about to be inserted.

    Appends when no position is requested. A requested position that is
    already held pushes that job and everything after it down by one.
    Positions past the end are clamped to N+1.
    """
    current_max = uow.max_order()
    if requested_order is None:
        uow.checkpoint("shifted")
        return current_max + 1

    if not is_positive_int(requested_order):
        raise InvalidArgument(
            "Requested order must be a positive integer",
            [f"Invalid order: {requested_order!r}"],
        )

    if uow.at_order(requested_order) is None:
        uow.checkpoint("shifted")
        return min(requested_order, current_max + 1)

    shift_range(uow, requested_order, current_max, 1)
    uow.checkpoint("shifted")
    return requested_order


def check_target(uow: UnitOfWork, to_order: int) -> None:
    """A job can only be moved to a position inside 1..N."""
    if not is_positive_int(to_order):
        raise InvalidArgument(
            "Target order must be a positive integer",
            [f"Invalid order: {to_order!r}"],
        )
    total = uow.count()
    if to_order > total:
        raise InvalidArgument(
            f"Target order {to_order} is past the last position ({total})",
            [f"Order out of range: {to_order}"],
        )


def reorder(uow: UnitOfWork, job_id: int, from_order: int, to_order: int) -> Job:
    """
    Move job_id from from_order to to_order.

    Raises:
        NotFound: job_id does not exist
        InvalidArgument: from_order/to_order not usable positions
        Conflict: the job's stored order is not from_order
    """
    job = uow.require(job_id)
    if not is_positive_int(from_order):
        raise InvalidArgument(
            "Current order must be a positive integer",
            [f"Invalid order: {from_order!r}"],
        )
    if job.order != from_order:
        raise Conflict(
            f"Job order mismatch: job {job_id} is at {job.order}, not {from_order}"
        )
    if from_order == to_order:
        return job

    check_target(uow, to_order)
    move_record(uow, job, from_order, to_order)
    uow.checkpoint("placed")
    return job


def remove_record(uow: UnitOfWork, job: Job) -> List[Job]:
    """Delete job and close the gap it leaves."""
    position = job.order
    current_max = uow.max_order()
    uow.delete(job)
    shifted = shift_range(uow, position + 1, current_max, -1)
    uow.checkpoint("shifted")
    return shifted


def find_violations(orders: Iterable[int]) -> List[str]:
    """Describe every way orders fails to be exactly 1..N."""
    orders = list(orders)
    problems: List[str] = []
    counts = Counter(orders)
    duplicates = sorted(o for o, n in counts.items() if n > 1)
    if duplicates:
        problems.append(f"Duplicate orders: {duplicates}")
    expected = set(range(1, len(orders) + 1))
    missing = sorted(expected - set(orders))
    if missing:
        problems.append(f"Missing orders: {missing}")
    extra = sorted(set(orders) - expected)
    if extra:
        problems.append(f"Out of range orders: {extra}")
    return problems


def check_dense(orders: Iterable[int]) -> None:
    problems = find_violations(orders)
    if problems:
        raise OrderingViolation("; ".join(problems))
