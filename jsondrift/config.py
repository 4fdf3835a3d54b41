# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Walker limits, sampling defaults, worker fan-out and the drift
#   / planner thresholds, read from JSONDRIFT_* environment variables
#   (or a .env file) into typed dataclasses.
#
# CLASSES:
# --------
# - WalkerConfig (dataclass)
#     max_depth: int         (default 64)
#     max_examples: int      (default 10)
#
# - SamplingConfig (dataclass)
#     sample_size: int       (default 5000)
#     production_mode: bool  (default False)
#
# - ExecutionConfig (dataclass)
#     workers: int           (default 1, i.e. no fan-out)
#     batch_size: int        (default 500 documents per worker batch)
#
# - AppConfig (dataclass)
#     walker: WalkerConfig
#     sampling: SamplingConfig
#     execution: ExecutionConfig
#     drift: DriftThresholds       (from analysis/findings.py)
#     planner: PlannerThresholds   (from sampling/planner.py)
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Reads .env via python-dotenv on first call, then caches.
#
# - reset_config() -> None
#     Drop the cached singleton (tests change the environment).
#
# USAGE:
# ------
#   from jsondrift.config import get_config
#   config = get_config()
#   print(config.walker.max_depth)
#   print(config.sampling.sample_size)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from jsondrift.analysis.findings import DriftThresholds
from jsondrift.sampling.planner import PlannerThresholds


_TRUE_VARIANTS = {"1", "true", "yes", "on"}


@dataclass
class WalkerConfig:
    """JSON tree walking limits."""
    max_depth: int = 64
    max_examples: int = 10

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_examples < 0:
            raise ValueError(f"max_examples must be >= 0, got {self.max_examples}")


@dataclass
class SamplingConfig:
    """Default sampling request for an analysis run."""
    sample_size: int = 5000
    production_mode: bool = False


@dataclass
class ExecutionConfig:
    """Parallel document folding."""
    workers: int = 1
    batch_size: int = 500

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")


@dataclass
class AppConfig:
    """Main application configuration."""
    walker: WalkerConfig = field(default_factory=WalkerConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    drift: DriftThresholds = field(default_factory=DriftThresholds)
    planner: PlannerThresholds = field(default_factory=PlannerThresholds)


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VARIANTS


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    walker_config = WalkerConfig(
        max_depth=int(os.getenv("JSONDRIFT_MAX_DEPTH", "64")),
        max_examples=int(os.getenv("JSONDRIFT_MAX_EXAMPLES", "10")),
    )

    sampling_config = SamplingConfig(
        sample_size=int(os.getenv("JSONDRIFT_SAMPLE_SIZE", "5000")),
        production_mode=_env_bool("JSONDRIFT_PRODUCTION_MODE", False),
    )

    execution_config = ExecutionConfig(
        workers=int(os.getenv("JSONDRIFT_WORKERS", "1")),
        batch_size=int(os.getenv("JSONDRIFT_BATCH_SIZE", "500")),
    )

    _config_instance = AppConfig(
        walker=walker_config,
        sampling=sampling_config,
        execution=execution_config,
    )

    return _config_instance


def reset_config() -> None:
    """Forget the cached configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
