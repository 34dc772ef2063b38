from __future__ import annotations

from typing import Optional

from schemas.defects import TokenUsage


class GeneratorError(RuntimeError):
    """
    External generator call failed. `tag` is the short label recorded on the trial;
    `tokens` carries any usage reported before the failure so it still reaches the report.
    """

    def __init__(self, tag: str, detail: str = "", *, tokens: Optional[TokenUsage] = None):
        self.tag = tag
        self.detail = detail
        self.tokens = tokens
        super().__init__(f"{tag}: {detail}" if detail else tag)


class GeneratorTimeout(GeneratorError):
    def __init__(self, timeout_ms: float):
        self.timeout_ms = timeout_ms
        super().__init__(f"Timeout after {int(timeout_ms)}ms")


class RateLimited(GeneratorError):
    def __init__(self, detail: str = ""):
        super().__init__("Rate limited", detail)


class ResponseParseError(GeneratorError):
    def __init__(self, detail: str, *, tokens: Optional[TokenUsage] = None):
        super().__init__(f"Parse error: {detail}", tokens=tokens)
