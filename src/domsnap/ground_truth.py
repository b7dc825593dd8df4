# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Element and attribute classification tables.

Every element tag falls into one of four categories which decide how the
reduction passes treat it:

  container    structural wrappers, candidates for merging
  interactive  links, forms and controls, passed through untouched
  content      text-bearing markup, converted to markdown
  unknown      everything else, removed unless explicitly kept

Container tags carry a semantic priority that decides the merge direction.
Attribute names carry a semantic score compared against the ``m`` threshold.
Names missing from the tables resolve to NOT_APPLICABLE, which no threshold
in [0, 1] accepts.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType

NOT_APPLICABLE = -math.inf

_WILDCARD_SUFFIX = "*"


class Category(StrEnum):
    """Element category."""

    CONTAINER = "container"
    INTERACTIVE = "interactive"
    CONTENT = "content"
    UNKNOWN = "unknown"


_CONTAINER_PRIORITIES: dict[str, float] = {
    "article": 0.95,
    "aside": 0.85,
    "body": 0.9,
    "div": 0.3,
    "footer": 0.7,
    "header": 0.75,
    "html": 0.1,
    "iframe": 0.5,
    "main": 0.85,
    "nav": 0.8,
    "section": 0.9,
}

_INTERACTIVE_TAGS = frozenset(
    {
        "a",
        "button",
        "details",
        "form",
        "input",
        "label",
        "select",
        "summary",
        "textarea",
    }
)

_CONTENT_TAGS = frozenset(
    {
        "address",
        "blockquote",
        "b",
        "code",
        "em",
        "figure",
        "figcaption",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "img",
        "li",
        "ol",
        "p",
        "pre",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "table",
        "tbody",
        "td",
        "thead",
        "th",
        "tr",
        "ul",
    }
)

_ATTRIBUTE_SCORES: dict[str, float] = {
    "alt": 0.9,
    "href": 0.9,
    "src": 0.8,
    "id": 0.8,
    "class": 0.7,
    "title": 0.6,
    "lang": 0.6,
    "role": 0.6,
    "aria-*": 0.6,
    "placeholder": 0.5,
    "label": 0.5,
    "for": 0.5,
    "value": 0.5,
    "checked": 0.5,
    "disabled": 0.5,
    "readonly": 0.5,
    "required": 0.5,
    "maxlength": 0.5,
    "minlength": 0.5,
    "pattern": 0.5,
    "step": 0.5,
    "min": 0.5,
    "max": 0.5,
    "accept": 0.4,
    "accept-charset": 0.4,
    "action": 0.4,
    "method": 0.4,
    "enctype": 0.4,
    "target": 0.4,
    "rel": 0.4,
    "media": 0.4,
    "sizes": 0.4,
    "srcset": 0.4,
    "preload": 0.4,
    "autoplay": 0.4,
    "controls": 0.4,
    "loop": 0.4,
    "muted": 0.4,
    "poster": 0.4,
    "autofocus": 0.3,
    "autocomplete": 0.3,
    "autocapitalize": 0.3,
    "spellcheck": 0.3,
    "contenteditable": 0.3,
    "draggable": 0.3,
    "dropzone": 0.3,
    "tabindex": 0.3,
    "accesskey": 0.3,
    "cite": 0.3,
    "datetime": 0.3,
    "coords": 0.3,
    "shape": 0.3,
    "usemap": 0.3,
    "ismap": 0.3,
    "download": 0.3,
    "ping": 0.3,
    "hreflang": 0.3,
    "type": 0.3,
    "name": 0.3,
    "form": 0.3,
    "novalidate": 0.2,
    "multiple": 0.2,
    "selected": 0.2,
    "size": 0.2,
    "wrap": 0.2,
    "hidden": 0.1,
    "style": 0.1,
    "content": 0.1,
    "http-equiv": 0.1,
    "data-uid": 1.0,
    "data-aie": 1.0,
}


def _split_wildcards(scores: Mapping[str, float]) -> tuple[dict[str, float], tuple[tuple[str, float], ...]]:
    """Separate exact names from ``prefix*`` patterns (longest prefix first)."""
    exact: dict[str, float] = {}
    wildcards: list[tuple[str, float]] = []
    for name, score in scores.items():
        key = name.lower()
        if key.endswith(_WILDCARD_SUFFIX):
            wildcards.append((key[: -len(_WILDCARD_SUFFIX)], score))
        else:
            exact[key] = score
    wildcards.sort(key=lambda item: len(item[0]), reverse=True)
    return exact, tuple(wildcards)


@dataclass(frozen=True)
class GroundTruth:
    """Immutable classification tables.

    A single default instance is shared process-wide; pass a different
    instance (see ``with_overrides``) to a transform to change the tables
    for one run.
    """

    container_priorities: Mapping[str, float] = field(default_factory=lambda: MappingProxyType(_CONTAINER_PRIORITIES))
    interactive_tags: frozenset[str] = _INTERACTIVE_TAGS
    content_tags: frozenset[str] = _CONTENT_TAGS
    attribute_scores: Mapping[str, float] = field(default_factory=lambda: MappingProxyType(_ATTRIBUTE_SCORES))
    _exact_scores: dict[str, float] = field(init=False, repr=False, compare=False)
    _wildcard_scores: tuple[tuple[str, float], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        exact, wildcards = _split_wildcards(self.attribute_scores)
        object.__setattr__(self, "_exact_scores", exact)
        object.__setattr__(self, "_wildcard_scores", wildcards)

    def category(self, tag: str) -> Category:
        if not tag:
            return Category.UNKNOWN
        tag = tag.lower()
        if tag in self.container_priorities:
            return Category.CONTAINER
        if tag in self.interactive_tags:
            return Category.INTERACTIVE
        if tag in self.content_tags:
            return Category.CONTENT
        return Category.UNKNOWN

    def is_category(self, category: Category, tag: str) -> bool:
        return self.category(tag) is category

    def container_priority(self, tag: str) -> float:
        if not tag:
            return NOT_APPLICABLE
        return self.container_priorities.get(tag.lower(), NOT_APPLICABLE)

    def attribute_score(self, name: str) -> float:
        """Semantic score of an attribute name; exact entries win over wildcards."""
        if not name:
            return NOT_APPLICABLE
        key = name.lower()
        score = self._exact_scores.get(key)
        if score is not None:
            return score
        for prefix, wildcard_score in self._wildcard_scores:
            if key.startswith(prefix):
                return wildcard_score
        return NOT_APPLICABLE

    def with_overrides(
        self,
        *,
        container_priorities: Mapping[str, float] | None = None,
        interactive_tags: Iterable[str] | None = None,
        content_tags: Iterable[str] | None = None,
        attribute_scores: Mapping[str, float] | None = None,
    ) -> GroundTruth:
        """Return a copy with the given table entries added or replaced.

        Mappings are merged key by key into the existing tables; tag
        collections are added to the existing sets.
        """
        changes: dict = {}
        if container_priorities:
            merged = {**self.container_priorities, **{k.lower(): v for k, v in container_priorities.items()}}
            changes["container_priorities"] = MappingProxyType(merged)
        if interactive_tags:
            changes["interactive_tags"] = self.interactive_tags | {t.lower() for t in interactive_tags}
        if content_tags:
            changes["content_tags"] = self.content_tags | {t.lower() for t in content_tags}
        if attribute_scores:
            merged = {**self.attribute_scores, **{k.lower(): v for k, v in attribute_scores.items()}}
            changes["attribute_scores"] = MappingProxyType(merged)
        return replace(self, **changes)


DEFAULT_GROUND_TRUTH = GroundTruth()
