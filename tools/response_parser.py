from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from schemas.defects import FreeTextDefect, TokenUsage

from .errors import GeneratorError, ResponseParseError

logger = logging.getLogger(__name__)

# Envelope fields searched for the payload, in order.
_PAYLOAD_FIELDS = ("structured_output", "result", "content", "output")

_JSON_FENCE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)```")
_HTML_FENCE = re.compile(r"```(?:html)?\s*\n?([\s\S]*?)```")


@dataclass
class GeneratorResponse:
    """Validated output of one generator call."""
    defects: List[FreeTextDefect] = field(default_factory=list)
    tokens: Optional[TokenUsage] = None


@dataclass
class FixResponse:
    html: str = ""
    tokens: Optional[TokenUsage] = None


def _as_int(v: Any) -> int:
    try:
        return int(v or 0)
    except (TypeError, ValueError):
        return 0


def _as_float(v: Any) -> float:
    try:
        return float(v or 0.0)
    except (TypeError, ValueError):
        return 0.0


def extract_token_usage(envelope: Dict[str, Any]) -> Optional[TokenUsage]:
    """
    Token usage from the envelope. Per-model `modelUsage` (first model) carries the real counts;
    top-level `usage` + `total_cost_usd` is the fallback.
    """
    model_usage = envelope.get("modelUsage")
    if isinstance(model_usage, dict) and model_usage:
        m = next(iter(model_usage.values()))
        if isinstance(m, dict):
            cost = m.get("costUSD")
            return TokenUsage(
                input_tokens=_as_int(m.get("inputTokens")),
                output_tokens=_as_int(m.get("outputTokens")),
                cache_read_input_tokens=_as_int(m.get("cacheReadInputTokens")),
                cache_creation_input_tokens=_as_int(m.get("cacheCreationInputTokens")),
                cost_usd=_as_float(cost if cost is not None else envelope.get("total_cost_usd")),
            )

    usage = envelope.get("usage")
    if not isinstance(usage, dict):
        return None
    return TokenUsage(
        input_tokens=_as_int(usage.get("input_tokens")),
        output_tokens=_as_int(usage.get("output_tokens")),
        cache_read_input_tokens=_as_int(usage.get("cache_read_input_tokens")),
        cache_creation_input_tokens=_as_int(usage.get("cache_creation_input_tokens")),
        cost_usd=_as_float(envelope.get("total_cost_usd")),
    )


def _first_balanced_object(text: str) -> Optional[str]:
    """Slice of text from the first '{' to its matching '}', or None."""
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def _violations_from(parsed: Any, *, allow_bare_list: bool = True) -> Optional[List[Any]]:
    if isinstance(parsed, dict) and isinstance(parsed.get("violations"), list):
        return parsed["violations"]
    if allow_bare_list and isinstance(parsed, list):
        return parsed
    return None


def _try_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def extract_violation_items(payload: Any) -> Optional[List[Any]]:
    """
    Raw violation items from one payload field: an object with `violations`, a JSON string,
    a fenced JSON block, or free text containing a `{...}` object with `violations`.
    """
    found = _violations_from(payload, allow_bare_list=False)
    if found is not None:
        return found
    if not isinstance(payload, str):
        return None
    text = payload.strip()

    found = _violations_from(_try_json(text))
    if found is not None:
        return found

    fence = _JSON_FENCE.search(text)
    if fence:
        found = _violations_from(_try_json(fence.group(1).strip()))
        if found is not None:
            return found

    obj = _first_balanced_object(text)
    if obj:
        return _violations_from(_try_json(obj), allow_bare_list=False)
    return None


def validate_defects(items: List[Any], *, tokens: Optional[TokenUsage] = None) -> List[FreeTextDefect]:
    """Validate every raw item. One invalid item makes the whole response unparseable."""
    defects: List[FreeTextDefect] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ResponseParseError(f"violation #{idx} is not an object", tokens=tokens)
        try:
            defects.append(FreeTextDefect.model_validate(item))
        except ValidationError as e:
            raise ResponseParseError(f"violation #{idx} invalid: {e.errors()[0].get('msg', e)}", tokens=tokens) from e
    return defects


def _load_envelope(stdout: str) -> Dict[str, Any]:
    try:
        envelope = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"{e}. Raw: {stdout[:200]}") from e
    if not isinstance(envelope, dict):
        raise ResponseParseError(f"envelope is not an object. Raw: {stdout[:200]}")
    return envelope


def _check_error_subtype(envelope: Dict[str, Any], tokens: Optional[TokenUsage]) -> None:
    subtype = envelope.get("subtype")
    if isinstance(subtype, str) and subtype.startswith("error"):
        raise GeneratorError(f"Generator error: {subtype}", tokens=tokens)


def parse_generator_output(stdout: str) -> GeneratorResponse:
    """
    Parse the generator's JSON envelope into validated free-text defects.
    Raises GeneratorError (error subtype) or ResponseParseError (nothing usable).
    """
    envelope = _load_envelope(stdout)
    tokens = extract_token_usage(envelope)
    _check_error_subtype(envelope, tokens)

    for name in _PAYLOAD_FIELDS:
        payload = envelope.get(name)
        if payload is None:
            continue
        items = extract_violation_items(payload)
        if items is not None:
            return GeneratorResponse(defects=validate_defects(items, tokens=tokens), tokens=tokens)

    keys = ", ".join(envelope.keys())
    result = envelope.get("result")
    preview = "(empty string)" if result == "" else str(result)[:200]
    logger.debug("No violations found in envelope; keys=[%s]", keys)
    raise ResponseParseError(f"could not extract violations. Envelope keys: [{keys}]. result: {preview}", tokens=tokens)


def extract_html(payload: Any) -> Optional[str]:
    """HTML from a remediation payload: {html}, JSON string, fenced block, or raw markup."""
    if isinstance(payload, dict):
        html = payload.get("html")
        return html if isinstance(html, str) else None
    if not isinstance(payload, str):
        return None
    text = payload.strip()

    parsed = _try_json(text)
    if isinstance(parsed, dict) and isinstance(parsed.get("html"), str):
        return parsed["html"]

    fence = _HTML_FENCE.search(text)
    if fence:
        return fence.group(1).strip()

    if text.startswith("<"):
        return text
    return None


def parse_fix_output(stdout: str) -> FixResponse:
    envelope = _load_envelope(stdout)
    tokens = extract_token_usage(envelope)
    _check_error_subtype(envelope, tokens)

    for name in _PAYLOAD_FIELDS:
        payload = envelope.get(name)
        if payload is None:
            continue
        html = extract_html(payload)
        if html is not None:
            return FixResponse(html=html, tokens=tokens)

    keys = ", ".join(envelope.keys())
    raise ResponseParseError(f"could not extract HTML. Envelope keys: [{keys}]", tokens=tokens)
