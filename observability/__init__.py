from .logging import setup_logger, setup_from_config, get_logger, BenchmarkLogger
from .metrics import UsageCollector, UsageTotals

__all__ = ["setup_logger", "setup_from_config", "get_logger", "BenchmarkLogger", "UsageCollector", "UsageTotals"]
