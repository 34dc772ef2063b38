"""
Candidate rule ids for a free-text defect.

Two independent signals, unioned:
- criterion: the WCAG criterion tag looked up in schemas.taxonomy (one-to-many).
- keywords: every keyword pattern matching the issue text contributes its rule id.
Candidates keep first-seen order (criterion rules first, then keyword order) so
the primary candidate is deterministic. An empty result is legitimate.
"""

from __future__ import annotations

import logging
import re
from typing import List, Pattern, Tuple

from schemas.defects import FreeTextDefect
from schemas.taxonomy import UNKNOWN_RULE_ID, rules_for_criterion

logger = logging.getLogger(__name__)

# (regex source, rule id); order matters only for candidate ordering.
_KEYWORD_SOURCES: Tuple[Tuple[str, str], ...] = (
    # text-alternatives
    (r"\balt\b.*\b(missing|attribute|text)\b", "text-alternatives/img-alt"),
    (r"\bimg\b.*\b(missing|no)\b.*\balt\b", "text-alternatives/img-alt"),
    (r"\bimage\b.*\b(missing|no)\b.*\balt\b", "text-alternatives/img-alt"),
    (r"\balt\b.*\b(suspicious|decorative|placeholder|redundant|filename)\b", "text-alternatives/image-alt-words"),
    (r"\bimage\b.*\balt\b.*\b(word|text)\b", "text-alternatives/image-alt-words"),
    (r"\binput.*type.*image\b.*\balt\b", "text-alternatives/input-image-alt"),
    (r"\brole.*img\b.*\b(alt|label|name)\b", "text-alternatives/role-img-alt"),
    (r"\bsvg\b.*\b(alt|label|name|title)\b", "text-alternatives/svg-img-alt"),
    # labels-and-names
    (r"\bbutton\b.*\b(name|label|text)\b", "labels-and-names/button-name"),
    (r"\b(form|input|select|textarea)\b.*\blabel\b", "labels-and-names/form-label"),
    (r"\blabel\b.*\b(form|input|select|textarea)\b", "labels-and-names/form-label"),
    (r"\binput.*button\b.*\bname\b", "labels-and-names/input-button-name"),
    (r"\b(iframe|frame)\b.*\btitle\b", "labels-and-names/frame-title"),
    (r"\bdialog\b.*\b(name|label)\b", "labels-and-names/aria-dialog-name"),
    (r"\balertdialog\b.*\b(name|label)\b", "labels-and-names/aria-dialog-name"),
    # navigable
    (r"\bheading\b.*\b(order|hierarchy|level|skip)\b", "navigable/heading-order"),
    (r"\bempty\b.*\bheading\b", "navigable/empty-heading"),
    (r"\bheading\b.*\bempty\b", "navigable/empty-heading"),
    (r"\b(page|document)\b.*\bheading\b.*\bone\b", "navigable/page-has-heading-one"),
    (r"\bh1\b.*\bmissing\b", "navigable/page-has-heading-one"),
    (r"\bmissing\b.*\bh1\b", "navigable/page-has-heading-one"),
    (r"\blink\b.*\b(name|text|accessible)\b", "navigable/link-name"),
    (r"\bdocument\b.*\btitle\b", "navigable/document-title"),
    (r"\btitle\b.*\b(missing|element)\b", "navigable/document-title"),
    (r"\bbypass\b.*\bblock", "navigable/bypass"),
    (r"\bskip\b.*\b(link|nav|content)\b", "navigable/bypass"),
    # readable
    (r"\blang\b.*\b(attribute|missing)\b", "readable/html-has-lang"),
    (r"\blanguage\b.*\b(missing|attribute|html)\b", "readable/html-has-lang"),
    # aria
    (r"\b(invalid|unknown)\b.*\brole\b", "aria/aria-roles"),
    (r"\brole\b.*\b(invalid|unknown|not allowed)\b", "aria/aria-roles"),
    (r"\baria\b.*\b(attribute|value)\b.*\binvalid\b", "aria/aria-valid-attr-value"),
    (r"\binvalid\b.*\baria\b.*\b(attribute|value)\b", "aria/aria-valid-attr-value"),
    (r"\brole\b.*\bnot\b.*\ballowed\b", "aria/aria-allowed-role"),
    (r"\ballowed\b.*\brole\b", "aria/aria-allowed-role"),
    (r"\baria-hidden\b.*\bfocus", "aria/aria-hidden-focus"),
    (r"\bfocus\b.*\baria-hidden\b", "aria/aria-hidden-focus"),
    (r"\bpresentation\b.*\b(role|conflict)\b", "aria/presentation-role-conflict"),
    (r"\bpresentational\b.*\bchildren\b.*\bfocus", "aria/presentational-children-focusable"),
    # landmarks
    (r"\b(main|landmark)\b.*\b(missing|region)\b", "landmarks/landmark-main"),
    (r"\bbanner\b.*\b(top.level|nested)\b", "landmarks/banner-is-top-level"),
    (r"\bcontentinfo\b.*\b(top.level|nested)\b", "landmarks/contentinfo-is-top-level"),
    (r"\bcomplementary\b.*\b(top.level|nested)\b", "landmarks/complementary-is-top-level"),
    (r"\bregion\b.*\b(landmark|outside)\b", "landmarks/region"),
    (r"\bcontent\b.*\boutside\b.*\blandmark\b", "landmarks/region"),
    # adaptable
    (r"\blist\b.*\bchildren\b", "adaptable/list-children"),
    (r"\blist\b.*\b(item|li)\b.*\bparent\b", "adaptable/listitem-parent"),
    (r"\bdefinition\b.*\blist\b", "adaptable/definition-list"),
    (r"\bscope\b.*\b(attribute|invalid)\b", "adaptable/scope-attr-valid"),
    (r"\bempty\b.*\btable\b.*\bheader\b", "adaptable/empty-table-header"),
    (r"\btable\b.*\bheader\b.*\bempty\b", "adaptable/empty-table-header"),
    # distinguishable
    (r"\bmeta\b.*\bviewport\b", "distinguishable/meta-viewport"),
    (r"\bviewport\b.*\b(scal|zoom)\b", "distinguishable/meta-viewport"),
    (r"\buser.scal", "distinguishable/meta-viewport"),
    # keyboard
    (r"\btabindex\b", "keyboard-accessible/tabindex"),
    (r"\btab\b.*\border\b.*\bpositive\b", "keyboard-accessible/tabindex"),
    # enough-time
    (r"\bblink\b", "enough-time/blink"),
    (r"\bmarquee\b", "enough-time/marquee"),
)

KEYWORD_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = tuple(
    (re.compile(src, re.IGNORECASE), rule_id) for src, rule_id in _KEYWORD_SOURCES
)


def criterion_candidates(criterion: str | None) -> List[str]:
    return list(rules_for_criterion(criterion))


def keyword_candidates(issue: str | None) -> List[str]:
    """Rule ids of every keyword pattern that matches the issue text (duplicates removed, order kept)."""
    text = issue or ""
    out: List[str] = []
    for pattern, rule_id in KEYWORD_PATTERNS:
        if rule_id not in out and pattern.search(text):
            out.append(rule_id)
    return out


def candidate_rule_ids(defect: FreeTextDefect) -> List[str]:
    """Union of both signals, deduplicated, in first-seen order. May be empty."""
    candidates: List[str] = []
    for rule_id in criterion_candidates(defect.criterion) + keyword_candidates(defect.issue):
        if rule_id not in candidates:
            candidates.append(rule_id)
    if not candidates:
        logger.debug("Unattributable report: element=%r criterion=%r", defect.element, defect.criterion)
    return candidates


def primary_rule_id(defect: FreeTextDefect) -> str:
    """First candidate, or 'unknown' when the report cannot be attributed."""
    candidates = candidate_rule_ids(defect)
    return candidates[0] if candidates else UNKNOWN_RULE_ID
