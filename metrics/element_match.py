"""
Element similarity between a free-text element descriptor and a selector pattern.

Scoring (case-insensitive, trimmed):
- exact equality -> 10
- either string contains the other -> 7
- otherwise the sum of: leading tag equality (+3), each shared [attr] token
  (+3 full match, +1 attribute-name-only match), same nth-of-type index (+2).
0 means "no evidence of a match", never an error.
"""

from __future__ import annotations

import re
from typing import List, Optional

EXACT_SCORE = 10
CONTAINMENT_SCORE = 7
TAG_SCORE = 3
ATTR_FULL_SCORE = 3
ATTR_NAME_SCORE = 1
NTH_OF_TYPE_SCORE = 2

_TAG_RE = re.compile(r"^([a-z][a-z0-9]*)")
_ATTR_RE = re.compile(r"\[([^\]]+)\]")
_NTH_RE = re.compile(r"nth-of-type\((\d+)\)")


def _normalize(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def leading_tag(descriptor: str) -> Optional[str]:
    m = _TAG_RE.match(descriptor)
    return m.group(1) if m else None


def attribute_tokens(descriptor: str) -> List[str]:
    """Contents of every [...] group, in order: 'input[name=\"q\"][required]' -> ['name="q"', 'required']."""
    return _ATTR_RE.findall(descriptor)


def nth_of_type(descriptor: str) -> Optional[str]:
    m = _NTH_RE.search(descriptor)
    return m.group(1) if m else None


def element_match_score(element: Optional[str], selector_pattern: Optional[str]) -> int:
    ce = _normalize(element)
    sp = _normalize(selector_pattern)
    if not ce or not sp:
        return 0

    if ce == sp:
        return EXACT_SCORE
    if ce in sp or sp in ce:
        return CONTAINMENT_SCORE

    score = 0
    ce_tag, sp_tag = leading_tag(ce), leading_tag(sp)
    if ce_tag and ce_tag == sp_tag:
        score += TAG_SCORE

    sp_attrs = attribute_tokens(sp)
    for ca in attribute_tokens(ce):
        for sa in sp_attrs:
            if ca == sa:
                score += ATTR_FULL_SCORE
            elif ca.split("=")[0] == sa.split("=")[0]:
                score += ATTR_NAME_SCORE

    ce_nth, sp_nth = nth_of_type(ce), nth_of_type(sp)
    if ce_nth and ce_nth == sp_nth:
        score += NTH_OF_TYPE_SCORE

    return score
