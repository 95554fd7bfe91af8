"""
Runtime configuration read from the environment.

A .env file in the working directory is loaded first; variables already set
in the environment win.
"""

import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

from .faults import ChaosFaults, NoFaults

_TRUTHY = {"1", "true", "yes", "on"}


def load_env() -> None:
    """Load .env from the current directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    db_path: Path = Path("data/talentflow.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    chaos: bool = False
    reorder_failure_rate: float = 0.15
    mutation_failure_rate: float = 0.075
    retries: int = 0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=Path(os.getenv("TALENTFLOW_DB", "data/talentflow.db")),
            log_level=os.getenv("TALENTFLOW_LOG_LEVEL", "INFO").upper(),
            log_dir=Path(os.getenv("TALENTFLOW_LOG_DIR", "logs")),
            chaos=os.getenv("TALENTFLOW_CHAOS", "").strip().lower() in _TRUTHY,
            reorder_failure_rate=_env_float("TALENTFLOW_REORDER_FAILURE_RATE", 0.15),
            mutation_failure_rate=_env_float("TALENTFLOW_MUTATION_FAILURE_RATE", 0.075),
            retries=_env_int("TALENTFLOW_RETRIES", 0),
        )

    def fault_hook(self, rng: Optional[random.Random] = None) -> Callable[[str, str], None]:
        if not self.chaos:
            return NoFaults()
        return ChaosFaults(
            reorder_rate=self.reorder_failure_rate,
            mutation_rate=self.mutation_failure_rate,
            rng=rng,
        )
