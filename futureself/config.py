"""
Configuration management for the Future Self simulator.

Centralized configuration with environment variable support. Values feed the
default simulation settings, the sample fan-out, and the API host.
"""

import logging
import os
from typing import List, Optional

from pydantic import BaseModel

from futureself.models.domain import SimulationSettings

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class SimulationConfig(BaseModel):
    """Defaults for every simulate call that does not pass its own settings."""
    samples_per_archetype: int = 250
    random_seed: Optional[int] = None
    pattern_threshold: float = 0.15
    outlier_threshold: float = 0.10

    def to_settings(self) -> SimulationSettings:
        return SimulationSettings(**self.model_dump())


class ExecutionConfig(BaseModel):
    """Sample fan-out configuration."""
    parallel: bool = False
    executor: str = "process"  # "process" | "thread" | "none"
    max_workers: Optional[int] = None
    timeout_seconds: float = 30.0


class APIConfig(BaseModel):
    """API server configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["*"]


class FutureSelfConfig(BaseModel):
    """Master configuration for the simulator."""
    simulation: SimulationConfig = SimulationConfig()
    execution: ExecutionConfig = ExecutionConfig()
    api: APIConfig = APIConfig()
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "FutureSelfConfig":
        """Load configuration from FUTURESELF_* environment variables."""
        seed = os.getenv("FUTURESELF_RANDOM_SEED")
        workers = os.getenv("FUTURESELF_MAX_WORKERS")
        origins = os.getenv("FUTURESELF_CORS_ORIGINS", "*")
        return cls(
            simulation=SimulationConfig(
                samples_per_archetype=int(os.getenv("FUTURESELF_SAMPLES_PER_ARCHETYPE", 250)),
                random_seed=int(seed) if seed else None,
                pattern_threshold=float(os.getenv("FUTURESELF_PATTERN_THRESHOLD", 0.15)),
                outlier_threshold=float(os.getenv("FUTURESELF_OUTLIER_THRESHOLD", 0.10)),
            ),
            execution=ExecutionConfig(
                parallel=os.getenv("FUTURESELF_PARALLEL", "false").lower() in ("1", "true", "yes"),
                executor=os.getenv("FUTURESELF_EXECUTOR", "process"),
                max_workers=int(workers) if workers else None,
                timeout_seconds=float(os.getenv("FUTURESELF_TIMEOUT_SECONDS", 30.0)),
            ),
            api=APIConfig(
                host=os.getenv("FUTURESELF_HOST", "0.0.0.0"),
                port=int(os.getenv("FUTURESELF_PORT", 8000)),
                cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            ),
            log_level=os.getenv("FUTURESELF_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_LOG_FORMAT)
    root.setLevel(level)
