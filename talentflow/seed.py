"""
Seed data for a fresh database.

Creates a board of job postings with orders 1..N, the same shape the demo
board starts with.
"""

import random
from typing import Any, Dict, List, Optional

from .database import Job

JOB_TITLES = [
    "Frontend Engineer",
    "Backend Engineer",
    "Full Stack Developer",
    "DevOps Engineer",
    "Data Scientist",
    "Product Manager",
    "UX Designer",
    "QA Engineer",
    "Mobile Developer",
    "Machine Learning Engineer",
    "Site Reliability Engineer",
    "Technical Writer",
    "Engineering Manager",
    "Security Engineer",
    "Data Engineer",
]

TAGS = [
    "remote",
    "hybrid",
    "onsite",
    "senior",
    "junior",
    "mid-level",
    "full-time",
    "part-time",
    "contract",
    "urgent",
]


def seed_jobs(service, count: int = 25, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """
    Replace all jobs with count generated postings.

    Args:
        service: JobService to create jobs through
        count: Number of jobs to create
        rng: Random source (default: unseeded)

    Returns:
        Created jobs in order
    """
    rng = rng or random.Random()

    with service.store.unit_of_work("seed_clear") as uow:
        uow.session.query(Job).delete()

    created = []
    for _ in range(count):
        fields = {
            "title": rng.choice(JOB_TITLES),
            "status": "active" if rng.random() < 0.7 else "archived",
            "tags": rng.sample(TAGS, rng.randint(1, 4)),
        }
        created.append(service.create_job(fields))

    service.logger.info("Seeded jobs", count=len(created))
    return created
