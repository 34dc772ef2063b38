from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from schemas.config import BenchmarkConfig

logger = logging.getLogger(__name__)

# env var -> config key; env wins over the YAML file
_ENV_OVERRIDES = {
    "BENCH_RUNS": "runs",
    "BENCH_TIMEOUT_SECONDS": "timeout_seconds",
    "BENCH_MODEL": "model",
    "BENCH_LOG_LEVEL": "log_level",
}


def load_yaml(path: str | Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config root must be a mapping: {path}")
    return data


def _env_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    for var, key in _ENV_OVERRIDES.items():
        val = env.get(var)
        if val is not None and val.strip():
            out[key] = val.strip()
    return out


def load_config(path: str | Path | None = None, *, environ: Optional[Dict[str, str]] = None) -> BenchmarkConfig:
    """
    Build BenchmarkConfig from an optional YAML file plus BENCH_* environment overrides.
    The YAML may nest settings under a top-level `benchmark:` key.
    """
    raw: Dict[str, Any] = {}
    if path is not None:
        raw = load_yaml(path)
        raw = raw.get("benchmark", raw) or {}
    overrides = _env_overrides(environ)
    if overrides:
        logger.info("Config overridden from environment: %s", ", ".join(sorted(overrides)))
    return BenchmarkConfig.model_validate({**raw, **overrides})
