"""
Fault injection for units of work.

A fault hook is any callable ``hook(operation, stage)``. The store calls it at
fixed checkpoints inside every mutating unit of work; raising ``InjectedFault``
aborts the unit and the transaction is rolled back.

Stages, in the order they are reached:
    begin          transaction opened, nothing read yet
    shifted        neighbouring jobs shifted, moved/new job not placed yet
    placed         moved/new job written, other field changes applied
    before_commit  immediately before COMMIT
"""

import random
from typing import Optional

from .errors import InjectedFault

STAGES = ("begin", "shifted", "placed", "before_commit")

REORDER_OPERATIONS = {"reorder"}


class NoFaults:
    """Default hook: never fails."""

    def __call__(self, operation: str, stage: str) -> None:
        return None


class FailAt:
    """
    Fail deterministically at one stage.

    Args:
        stage: Stage name to fail at
        operation: Only fail for this operation (default: any)
        times: Number of failures before the hook goes quiet (default: always)
    """

    def __init__(self, stage: str, operation: Optional[str] = None, times: Optional[int] = None):
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage}")
        self.stage = stage
        self.operation = operation
        self.remaining = times
        self.fired = 0

    def __call__(self, operation: str, stage: str) -> None:
        if stage != self.stage:
            return
        if self.operation is not None and operation != self.operation:
            return
        if self.remaining is not None:
            if self.remaining <= 0:
                return
            self.remaining -= 1
        self.fired += 1
        raise InjectedFault(operation, stage)


class RandomFaults:
    """Fail at any checkpoint with a fixed probability."""

    def __init__(self, rate: float, rng: Optional[random.Random] = None):
        self.rate = rate
        self.rng = rng or random.Random()

    def __call__(self, operation: str, stage: str) -> None:
        if self.rng.random() < self.rate:
            raise InjectedFault(operation, stage)


class ChaosFaults:
    """
    Simulated server failures, decided once per operation just before commit.

    Reorders fail more often than other mutations so the client rollback path
    gets regular exercise.
    """

    def __init__(
        self,
        reorder_rate: float = 0.15,
        mutation_rate: float = 0.075,
        rng: Optional[random.Random] = None,
    ):
        self.reorder_rate = reorder_rate
        self.mutation_rate = mutation_rate
        self.rng = rng or random.Random()

    def __call__(self, operation: str, stage: str) -> None:
        if stage != "before_commit":
            return
        rate = self.reorder_rate if operation in REORDER_OPERATIONS else self.mutation_rate
        if self.rng.random() < rate:
            raise InjectedFault(operation, stage)
