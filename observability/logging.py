import logging
import sys
from pathlib import Path
from typing import Optional

from schemas.config import BenchmarkConfig

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER = "a11y_bench"


def _level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logger(
    name: str = ROOT_LOGGER,
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """Logger with a stdout handler and, when log_file is set, a UTF-8 file handler. Re-running replaces both."""
    lvl = _level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(lvl)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def setup_from_config(config: BenchmarkConfig, name: str = ROOT_LOGGER) -> logging.Logger:
    """Configure the package logger from log_level / log_file of the benchmark config."""
    return setup_logger(name, level=config.log_level, log_file=config.log_file)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Existing logger, or a default-configured one when it has no handlers yet."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


class BenchmarkLogger:
    """Per-trial and per-case progress lines for a scoring run."""

    def __init__(self, name: str = f"{ROOT_LOGGER}.benchmark"):
        self.logger = get_logger(name)

    def log_trial(self, case_id: str, run_index: int, duration_ms: float, error: Optional[str] = None, **counts):
        if error is not None:
            self.logger.warning(f"Trial - Case: {case_id} | Run: {run_index} | {duration_ms:.0f}ms | Error: {error}")
            return
        counts_str = " ".join(f"{k}={v}" for k, v in counts.items())
        self.logger.info(f"Trial - Case: {case_id} | Run: {run_index} | {duration_ms:.0f}ms | {counts_str}")

    def log_case(self, case_id: str, f1_mean: float, f1_stddev: float, inconsistent: bool = False):
        flag = " | INCONSISTENT" if inconsistent else ""
        self.logger.info(f"Case - {case_id} | F1: {f1_mean:.3f} +/- {f1_stddev:.3f}{flag}")
