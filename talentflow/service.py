"""
Job service.

Request-level handlers for job postings: validate input, run each mutation as
one unit of work on the ordered store, log the outcome and return plain dicts.
A call that raises has changed nothing, so callers may re-read and retry.
"""

import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .database import JOB_STATUSES, Job
from .errors import InvalidArgument, TalentFlowError, TransactionFailure
from .logger import StructuredLogger
from .ordering import (
    assign_order,
    check_dense,
    check_target,
    move_record,
    remove_record,
    reorder,
)
from .schema import is_positive_int, validate_job
from .slugs import generate_unique_slug
from .store import OrderedJobStore, UnitOfWork

SORT_FIELDS = {
    "title": Job.title,
    "created_at": Job.created_at,
    "updated_at": Job.updated_at,
    "order": Job.order,
}


def _raise_if_invalid(errors: List[str]) -> None:
    if errors:
        raise InvalidArgument("; ".join(errors), errors)


def _matches(job: Job, needle: str) -> bool:
    if needle in job.title.lower():
        return True
    return any(needle in tag.lower() for tag in job.tags or [])


class JobService:
    """Job posting operations over an OrderedJobStore."""

    def __init__(self, store: OrderedJobStore, logger: Optional[StructuredLogger] = None):
        self.store = store
        self.logger = logger or store.logger

    def _run(self, operation: str, fn: Callable[[UnitOfWork], Any], **context) -> Any:
        try:
            result = self.store.run_as_unit(fn, operation=operation)
        except TransactionFailure as e:
            self.logger.error(f"{operation} failed, store unchanged", error=e.message, **context)
            raise
        except TalentFlowError as e:
            self.logger.warning(f"{operation} rejected", code=e.code, error=e.message, **context)
            raise
        self.logger.info(f"{operation} committed", **context)
        return result

    # Reads

    def list_jobs(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
        sort: str = "order",
    ) -> Dict[str, Any]:
        errors = []
        if sort not in SORT_FIELDS:
            errors.append(f"Unknown sort field: {sort}")
        if status is not None and status not in JOB_STATUSES:
            errors.append(f"Field 'status' must be one of: {', '.join(JOB_STATUSES)}")
        if not is_positive_int(page):
            errors.append("Page must be a positive integer")
        if not is_positive_int(page_size):
            errors.append("Page size must be a positive integer")
        _raise_if_invalid(errors)

        with self.store.snapshot() as uow:
            jobs = uow.session.query(Job).order_by(SORT_FIELDS[sort], Job.id).all()
            if search:
                needle = search.lower()
                jobs = [job for job in jobs if _matches(job, needle)]
            if status:
                jobs = [job for job in jobs if job.status == status]
            total_count = len(jobs)
            start = (page - 1) * page_size
            data = [job.to_dict() for job in jobs[start:start + page_size]]

        total_pages = math.ceil(total_count / page_size)
        return {
            "data": data,
            "pagination": {
                "page": page,
                "page_size": page_size,
                "total_count": total_count,
                "total_pages": total_pages,
                "has_more": page < total_pages,
            },
        }

    def get_job(self, job_id: int) -> Dict[str, Any]:
        with self.store.snapshot() as uow:
            return uow.require(job_id).to_dict()

    def verify_ordering(self) -> int:
        """
        Check that live orders are exactly 1..N.

        Returns:
            N, the number of live jobs

        Raises:
            OrderingViolation: duplicates, gaps or out-of-range orders found
        """
        orders = self.store.orders()
        check_dense(orders)
        return len(orders)

    # Mutations

    def create_job(self, fields: Dict[str, Any], requested_order: Optional[int] = None) -> Dict[str, Any]:
        """
        Create a job, appending it or inserting it at requested_order.

        fields may carry the position as "order" instead of requested_order.
        """
        fields = dict(fields)
        if requested_order is None:
            requested_order = fields.pop("order", None)
        else:
            fields.pop("order", None)
        _raise_if_invalid(validate_job(fields))
        if requested_order is not None and not is_positive_int(requested_order):
            raise InvalidArgument(
                "Requested order must be a positive integer",
                [f"Invalid order: {requested_order!r}"],
            )

        title = fields["title"].strip()

        def _op(uow: UnitOfWork) -> Dict[str, Any]:
            order = assign_order(uow, requested_order)
            now = datetime.now()
            job = uow.add({
                "title": title,
                "slug": generate_unique_slug(title, uow.all_slugs()),
                "status": fields.get("status", "active"),
                "tags": list(fields.get("tags", [])),
                "order": order,
                "created_at": now,
                "updated_at": now,
            })
            uow.checkpoint("placed")
            return job.to_dict()

        return self._run("create", _op, title=title, requested_order=requested_order)

    def update_job(self, job_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update a job's fields. A changed "order" repositions the job first,
        shifting its neighbours exactly as a reorder would.
        """
        _raise_if_invalid(validate_job(fields, partial=True))

        def _op(uow: UnitOfWork) -> Dict[str, Any]:
            job = uow.require(job_id)
            if "order" in fields and fields["order"] != job.order:
                check_target(uow, fields["order"])
                move_record(uow, job, job.order, fields["order"])

            changes: Dict[str, Any] = {"updated_at": datetime.now()}
            if "title" in fields:
                title = fields["title"].strip()
                changes["title"] = title
                if title != job.title:
                    changes["slug"] = generate_unique_slug(title, uow.all_slugs(exclude_id=job.id))
            if "status" in fields:
                changes["status"] = fields["status"]
            if "tags" in fields:
                changes["tags"] = list(fields["tags"])
            uow.update(job.id, changes)
            uow.checkpoint("placed")
            return job.to_dict()

        return self._run("update", _op, job_id=job_id, fields=sorted(fields))

    def reorder_job(self, job_id: int, from_order: int, to_order: int) -> Dict[str, Any]:
        """
        Move a job from from_order to to_order.

        Raises:
            NotFound: no such job
            InvalidArgument: orders are not positive integers or to_order > N
            Conflict: the job is no longer at from_order; re-read and retry
            TransactionFailure: the move did not commit; nothing changed
        """
        def _op(uow: UnitOfWork) -> Dict[str, Any]:
            return reorder(uow, job_id, from_order, to_order).to_dict()

        return self._run("reorder", _op, job_id=job_id, from_order=from_order, to_order=to_order)

    def delete_job(self, job_id: int) -> Dict[str, Any]:
        """Delete a job; every job after it moves up one position."""
        def _op(uow: UnitOfWork) -> Dict[str, Any]:
            job = uow.require(job_id)
            deleted = job.to_dict()
            remove_record(uow, job)
            return deleted

        return self._run("delete", _op, job_id=job_id)
