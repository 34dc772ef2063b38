from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from schemas.defects import TokenUsage


@dataclass
class UsageTotals:
    """Resource usage summed over external generator calls."""
    calls: int = 0
    errors: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cost_usd: float = 0.0
    error_tags: Counter = field(default_factory=Counter)


class UsageCollector:
    """Collect token/cost accounting and error counts for generator calls."""

    def __init__(self):
        self.totals = UsageTotals()

    def record_call(self, tokens: Optional[TokenUsage] = None, error: Optional[str] = None):
        """Record one call. tokens may be missing (failed or unaccounted calls)."""
        self.totals.calls += 1
        if tokens is not None:
            self.totals.input_tokens += tokens.input_tokens
            self.totals.output_tokens += tokens.output_tokens
            self.totals.cache_read_input_tokens += tokens.cache_read_input_tokens
            self.totals.cache_creation_input_tokens += tokens.cache_creation_input_tokens
            self.totals.cost_usd += tokens.cost_usd
        if error is not None:
            self.totals.errors += 1
            # bucket by the tag before any ':' detail
            self.totals.error_tags[error.split(":")[0].strip()] += 1

    def get_summary(self) -> Dict[str, Any]:
        """Totals plus per-call averages."""
        t = self.totals
        calls = max(1, t.calls)
        return {
            "calls": t.calls,
            "errors": t.errors,
            "error_rate": t.errors / calls,
            "error_tags": dict(t.error_tags),
            "input_tokens": t.input_tokens,
            "output_tokens": t.output_tokens,
            "cache_read_input_tokens": t.cache_read_input_tokens,
            "cache_creation_input_tokens": t.cache_creation_input_tokens,
            "cost_usd": t.cost_usd,
            "avg_input_tokens": t.input_tokens / calls,
            "avg_output_tokens": t.output_tokens / calls,
            "avg_cost_usd": t.cost_usd / calls,
        }

