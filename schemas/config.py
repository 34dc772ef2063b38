from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_INCONSISTENCY_THRESHOLD = 0.1


class BenchmarkConfig(BaseModel):
    """Benchmark settings. Loaded from YAML by tools.config_loader.load_config."""

    runs: int = Field(default=3, ge=1, description="Generator trials per case.")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-trial timeout for the external generator.")
    model: str = Field(default="sonnet", description="Generator model name, recorded for reporting only.")
    inconsistency_threshold: float = Field(
        default=DEFAULT_INCONSISTENCY_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="F1 stddev above which a case is flagged inconsistent.",
    )
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = None
    manifest_path: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level
