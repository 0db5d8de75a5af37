"""Engine configuration loaded from YAML."""

from __future__ import annotations

import logging
import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .models import MatchingFilters, MatchingWeights
from .scoring import CapacityPenalty, PenaltyMode

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ScoringConfig(BaseModel):
    """How the capacity penalty is derived and combined with the total."""

    capacity_penalty: CapacityPenalty = CapacityPenalty.LAST_SLOT
    penalty_mode: PenaltyMode = PenaltyMode.SUBTRACTIVE


class MatchingConfig(BaseModel):
    top_n: int = Field(3, ge=1, le=20, description="Recommendations kept per mentee")
    # Used for new models and when no default model exists.
    default_weights: MatchingWeights = Field(default_factory=MatchingWeights)
    default_filters: MatchingFilters = Field(default_factory=MatchingFilters)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration, falling back to defaults when no file exists.

    ``MENTORMATCH_CONFIG`` selects the file when no path is given;
    ``MENTORMATCH_TOP_N`` and ``MENTORMATCH_LOG_LEVEL`` override single values.
    """

    config_path = config_path or os.environ.get("MENTORMATCH_CONFIG", "config.yaml")
    data = {}
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

    env_top_n = os.environ.get("MENTORMATCH_TOP_N")
    if env_top_n:
        data.setdefault("matching", {})
        data["matching"]["top_n"] = int(env_top_n)

    env_log_level = os.environ.get("MENTORMATCH_LOG_LEVEL")
    if env_log_level:
        data.setdefault("logging", {})
        data["logging"]["level"] = env_log_level

    return AppConfig(**data)


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level.upper(), format=LOG_FORMAT)


__all__ = [
    "AppConfig",
    "LoggingConfig",
    "MatchingConfig",
    "ScoringConfig",
    "configure_logging",
    "load_config",
]
