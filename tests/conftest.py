"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Dict

from talentflow.logger import get_logger, reset_logger
from talentflow.service import JobService
from talentflow.store import OrderedJobStore


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Fresh global logger writing only to a temporary directory."""
    reset_logger()
    logger = get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "talentflow.db"


@pytest.fixture
def store(db_path):
    """Empty store with no fault injection."""
    s = OrderedJobStore(db_path)
    yield s
    s.dispose()


@pytest.fixture
def service(store) -> JobService:
    return JobService(store)


@pytest.fixture
def seeded_service(service) -> JobService:
    """Service holding five jobs, 'Job 1'..'Job 5', at orders 1..5."""
    for i in range(1, 6):
        service.create_job({"title": f"Job {i}", "tags": ["remote"] if i % 2 else ["onsite"]})
    return service


@pytest.fixture
def ids_by_title(seeded_service) -> Dict[str, int]:
    """Job ids of the seeded jobs keyed by title."""
    result = seeded_service.list_jobs(page_size=100)
    return {job["title"]: job["id"] for job in result["data"]}
