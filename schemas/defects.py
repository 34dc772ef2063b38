from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Impact(str, Enum):
    """Severity tier. Total order: critical > serious > moderate > minor."""

    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"

    @property
    def rank(self) -> int:
        return _IMPACT_RANK[self]

    @classmethod
    def coerce(cls, value: "Impact | str") -> "Impact":
        """Case/whitespace-insensitive lookup. Unknown values raise ValueError."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"impact must be a string, got {type(value).__name__}")
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"unknown impact '{value}' (expected one of: {allowed})") from None

    def is_adjacent(self, other: "Impact") -> bool:
        return abs(self.rank - other.rank) == 1


_IMPACT_RANK = {
    Impact.CRITICAL: 3,
    Impact.SERIOUS: 2,
    Impact.MODERATE: 1,
    Impact.MINOR: 0,
}


class WireRecord(BaseModel):
    """Immutable record; accepts snake_case names or camelCase wire names."""

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


class _ImpactRecord(WireRecord):
    impact: Impact

    @field_validator("impact", mode="before")
    @classmethod
    def _coerce_impact(cls, v):
        return Impact.coerce(v)


class ExpectedDefect(_ImpactRecord):
    """Ground-truth defect for one case. Identity is structural."""

    rule_id: str = Field(min_length=1, description="Rule id expected to fire.")
    selector_pattern: str = Field(description="Substring expected inside the reported selector.")


class StructuredDefect(_ImpactRecord):
    """Defect emitted by the structured detector (or a before/after audit)."""

    rule_id: str = Field(min_length=1)
    selector: str = Field(description="Selector of the offending element.")
    message: Optional[str] = Field(default=None)


class FreeTextDefect(_ImpactRecord):
    """
    Defect reported in free text by the external generator.
    element/issue are natural language; impact is self-reported and may be wrong.
    """

    element: str = Field(description="Selector-like description of the element.")
    issue: str = Field(default="", description="Free-text description of the problem.")
    criterion: str = Field(
        default="",
        validation_alias=AliasChoices("wcagCriterion", "criterion", "wcag_criterion"),
        serialization_alias="wcagCriterion",
        description="WCAG success criterion tag, e.g. '1.1.1' or 'SC 4.1.2'.",
    )

    @field_validator("element", "issue", "criterion", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v


class DefectFingerprint(_ImpactRecord):
    """Reduced (rule id, impact) record used by the render-fidelity comparison."""

    rule_id: str = Field(min_length=1)

    @property
    def key(self) -> str:
        return f"{self.rule_id}|{self.impact.value}"


class TokenUsage(WireRecord):
    """Resource accounting for one external call. Passed through untouched."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_read_input_tokens: int = Field(default=0, ge=0)
    cache_creation_input_tokens: int = Field(default=0, ge=0)
    cost_usd: float = Field(default=0.0, ge=0.0)


__all__ = [
    "WireRecord",
    "Impact",
    "ExpectedDefect",
    "StructuredDefect",
    "FreeTextDefect",
    "DefectFingerprint",
    "TokenUsage",
]
