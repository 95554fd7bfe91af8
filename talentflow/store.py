"""
Ordered job store.

Every change to job orders goes through a unit of work: one lock, one
SQLite transaction, fault checkpoints along the way. A unit either commits
all of its writes or none of them.
"""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy import func

from .database import Job, get_session_factory, init_database
from .errors import InvalidArgument, NotFound, TalentFlowError, TransactionFailure
from .faults import NoFaults
from .logger import StructuredLogger, get_logger


UPDATABLE_FIELDS = frozenset(c.name for c in Job.__table__.columns) - {"id"}


class UnitOfWork:
    """Store operations bound to one open transaction."""

    def __init__(
        self,
        session,
        operation: str,
        fault_hook: Callable[[str, str], None],
        read_only: bool = False,
    ):
        self.session = session
        self.operation = operation
        self.read_only = read_only
        self._fault_hook = fault_hook
        self.writes = 0

    def checkpoint(self, stage: str) -> None:
        self._fault_hook(self.operation, stage)

    def get(self, job_id: int) -> Optional[Job]:
        return self.session.get(Job, job_id)

    def require(self, job_id: int) -> Job:
        job = self.get(job_id)
        if job is None:
            raise NotFound(f"Job not found: {job_id}")
        return job

    def range_by_order(self, low: int, high: int) -> List[Job]:
        """Jobs with low <= order <= high (both inclusive)."""
        if low > high:
            return []
        return (
            self.session.query(Job)
            .filter(Job.order >= low, Job.order <= high)
            .all()
        )

    def at_order(self, order: int) -> Optional[Job]:
        return self.session.query(Job).filter(Job.order == order).first()

    def max_order(self) -> int:
        return self.session.query(func.max(Job.order)).scalar() or 0

    def count(self) -> int:
        return self.session.query(Job).count()

    def orders(self) -> List[int]:
        return [row[0] for row in self.session.query(Job.order).order_by(Job.order).all()]

    def all_jobs(self) -> List[Job]:
        return self.session.query(Job).order_by(Job.order).all()

    def all_slugs(self, exclude_id: Optional[int] = None) -> List[str]:
        query = self.session.query(Job.slug)
        if exclude_id is not None:
            query = query.filter(Job.id != exclude_id)
        return [row[0] for row in query.all()]

    def add(self, fields: Dict[str, Any]) -> Job:
        job = Job(**fields)
        self.session.add(job)
        self.session.flush()
        self.writes += 1
        return job

    def update(self, job_id: int, fields: Dict[str, Any]) -> Job:
        """Merge fields into a stored job, order included. The id never changes."""
        rejected = sorted(set(fields) - UPDATABLE_FIELDS)
        if rejected:
            raise InvalidArgument(
                "Cannot update fields: " + ", ".join(rejected),
                [f"Field '{key}' cannot be updated" for key in rejected],
            )
        job = self.require(job_id)
        for key, value in fields.items():
            setattr(job, key, value)
        self.session.flush()
        self.writes += 1
        return job

    def update_many(self, jobs: List[Job], delta: int) -> None:
        """Batch-shift the given jobs' orders by delta."""
        for job in jobs:
            job.order = job.order + delta
        if jobs:
            self.session.flush()
            self.writes += len(jobs)

    def delete(self, job: Job) -> None:
        self.session.delete(job)
        self.session.flush()
        self.writes += 1


class OrderedJobStore:
    """
    SQLite-backed table of jobs keyed by id with a secondary index on order.

    Args:
        db_path: Path to SQLite database file
        fault_hook: Callable(operation, stage) invoked at unit-of-work checkpoints
        logger: StructuredLogger (default: global logger)
    """

    def __init__(
        self,
        db_path: Path,
        fault_hook: Optional[Callable[[str, str], None]] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.db_path = Path(db_path)
        init_database(self.db_path)
        self._Session = get_session_factory(self.db_path)
        self.engine = self._Session.kw["bind"]
        self._lock = threading.Lock()
        self._local = threading.local()
        self.fault_hook = fault_hook or NoFaults()
        self.logger = logger or get_logger()
        self.writes = 0

    @contextmanager
    def unit_of_work(self, operation: str) -> Iterator[UnitOfWork]:
        """
        Run a block of store operations as one all-or-nothing transaction.

        Application errors raised inside the block propagate unchanged; any
        other exception (database error, injected fault) is raised as
        TransactionFailure. Either way nothing is committed.

        Store calls made on the same thread while a unit is open join that
        unit and commit or roll back with it.
        """
        active = self._active()
        if active is not None:
            if active.read_only:
                raise RuntimeError(f"{operation} cannot write inside a read-only snapshot")
            yield active
            return

        with self._lock:
            session = self._Session()
            uow = UnitOfWork(session, operation, self.fault_hook)
            self.logger.record_mutation_attempt(operation)
            self._local.uow = uow
            try:
                uow.checkpoint("begin")
                yield uow
                uow.checkpoint("before_commit")
                session.commit()
            except TalentFlowError as e:
                session.rollback()
                self.logger.record_mutation_rollback(operation, type(e).__name__)
                raise
            except Exception as e:
                session.rollback()
                self.logger.record_mutation_rollback(operation, type(e).__name__)
                self.logger.warning(
                    "Unit of work rolled back",
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise TransactionFailure(f"{operation} did not complete: {e}") from e
            finally:
                self._local.uow = None
                session.close()
            self.writes += uow.writes
            self.logger.record_mutation_commit(operation)
            self.logger.debug("Unit of work committed", operation=operation, writes=uow.writes)

    @contextmanager
    def snapshot(self) -> Iterator[UnitOfWork]:
        """Read-only view; never fault-injected, never committed."""
        active = self._active()
        if active is not None:
            yield active
            return

        with self._lock:
            session = self._Session()
            self._local.uow = UnitOfWork(session, "read", NoFaults(), read_only=True)
            try:
                yield self._local.uow
            finally:
                self._local.uow = None
                session.rollback()
                session.close()

    def _active(self) -> Optional[UnitOfWork]:
        return getattr(self._local, "uow", None)

    def run_as_unit(self, fn: Callable[[UnitOfWork], Any], operation: str = "unit") -> Any:
        with self.unit_of_work(operation) as uow:
            return fn(uow)

    def get(self, job_id: int) -> Optional[Dict[str, Any]]:
        with self.snapshot() as uow:
            job = uow.get(job_id)
            return job.to_dict() if job is not None else None

    def range_by_order(self, low: int, high: int) -> List[Dict[str, Any]]:
        with self.snapshot() as uow:
            return [job.to_dict() for job in uow.range_by_order(low, high)]

    def put(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one job as given; callers choose its order."""
        with self.unit_of_work("put") as uow:
            return uow.add(fields).to_dict()

    def update(self, job_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self.unit_of_work("update") as uow:
            return uow.update(job_id, fields).to_dict()

    def orders(self) -> List[int]:
        with self.snapshot() as uow:
            return uow.orders()

    def order_map(self) -> Dict[int, int]:
        """Mapping of job id to order."""
        with self.snapshot() as uow:
            return {job.id: job.order for job in uow.all_jobs()}

    def dispose(self) -> None:
        self.engine.dispose()
