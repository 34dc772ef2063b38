"""
WCAG rule taxonomy: SSOT (Single Source of Truth).

Maps a WCAG 2.1 success criterion to the structured rule ids that enforce it.
One criterion may be realised by several concrete checks (one-to-many), and a
rule id may appear under more than one criterion (e.g. meta-viewport).
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Tuple

UNKNOWN_RULE_ID = "unknown"

CRITERION_TO_RULES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "1.1.1": (
        "text-alternatives/img-alt",
        "text-alternatives/image-alt-words",
        "text-alternatives/input-image-alt",
        "text-alternatives/role-img-alt",
        "text-alternatives/svg-img-alt",
    ),
    "1.3.1": (
        "adaptable/list-children",
        "adaptable/listitem-parent",
        "adaptable/definition-list",
        "adaptable/scope-attr-valid",
        "adaptable/empty-table-header",
    ),
    "1.3.6": (
        "landmarks/landmark-main",
        "landmarks/banner-is-top-level",
        "landmarks/contentinfo-is-top-level",
        "landmarks/complementary-is-top-level",
    ),
    "1.4.4": ("distinguishable/meta-viewport",),
    "1.4.10": ("distinguishable/meta-viewport",),
    "2.1.1": ("keyboard-accessible/tabindex",),
    "2.2.2": ("enough-time/blink", "enough-time/marquee"),
    "2.4.1": ("navigable/bypass", "landmarks/region"),
    "2.4.2": ("navigable/document-title",),
    "2.4.4": ("navigable/link-name",),
    "2.4.6": (
        "navigable/heading-order",
        "navigable/empty-heading",
        "navigable/page-has-heading-one",
    ),
    "3.1.1": ("readable/html-has-lang",),
    "4.1.1": (
        "aria/aria-roles",
        "aria/aria-valid-attr-value",
        "aria/aria-allowed-role",
    ),
    "4.1.2": (
        "labels-and-names/button-name",
        "labels-and-names/form-label",
        "labels-and-names/input-button-name",
        "labels-and-names/frame-title",
        "labels-and-names/aria-dialog-name",
    ),
    "4.1.3": (
        "aria/aria-hidden-focus",
        "aria/presentation-role-conflict",
        "aria/presentational-children-focusable",
    ),
})

_SC_PREFIX = re.compile(r"^sc\s*", re.IGNORECASE)


def normalize_criterion(tag: str | None) -> str:
    """'SC 1.1.1' / 'sc1.1.1' / ' 1.1.1 ' -> '1.1.1'. None -> ''."""
    if not tag:
        return ""
    return _SC_PREFIX.sub("", tag.strip()).strip()


def rules_for_criterion(tag: str | None) -> Tuple[str, ...]:
    """Rule ids known to enforce the criterion; empty tuple when unknown."""
    return CRITERION_TO_RULES.get(normalize_criterion(tag), ())
