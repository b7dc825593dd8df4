# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for domsnap.ground_truth classification tables."""

from __future__ import annotations

import pytest

from domsnap.ground_truth import DEFAULT_GROUND_TRUTH, NOT_APPLICABLE, Category, GroundTruth

gt = DEFAULT_GROUND_TRUTH


class TestCategory:
    @pytest.mark.parametrize("tag", ["div", "section", "main", "body", "article", "nav"])
    def test_containers(self, tag):
        assert gt.category(tag) is Category.CONTAINER

    @pytest.mark.parametrize("tag", ["a", "button", "input", "select", "form", "textarea"])
    def test_interactive(self, tag):
        assert gt.category(tag) is Category.INTERACTIVE

    @pytest.mark.parametrize("tag", ["p", "h1", "ul", "li", "table", "span", "pre"])
    def test_content(self, tag):
        assert gt.category(tag) is Category.CONTENT

    @pytest.mark.parametrize("tag", ["custom-widget", "svg", "noscript", "", "blink"])
    def test_unknown_default(self, tag):
        assert gt.category(tag) is Category.UNKNOWN

    def test_case_insensitive(self):
        assert gt.category("DIV") is Category.CONTAINER
        assert gt.is_category(Category.INTERACTIVE, "A")


class TestScores:
    def test_container_priority_ordering(self):
        assert gt.container_priority("article") > gt.container_priority("div")
        assert gt.container_priority("section") > gt.container_priority("div")

    def test_non_container_priority_is_sentinel(self):
        assert gt.container_priority("p") == NOT_APPLICABLE
        assert gt.container_priority("") == NOT_APPLICABLE

    def test_attribute_exact(self):
        assert gt.attribute_score("href") == 0.9
        assert gt.attribute_score("HREF") == 0.9

    def test_attribute_wildcard(self):
        assert gt.attribute_score("aria-label") == 0.6
        assert gt.attribute_score("aria-describedby") == 0.6

    def test_unknown_attribute_never_passes_threshold(self):
        score = gt.attribute_score("data-analytics")
        assert score == NOT_APPLICABLE
        assert not score >= 0.0

    def test_unique_id_attribute_always_kept(self):
        assert gt.attribute_score("data-uid") == 1.0

    def test_exact_beats_wildcard(self):
        custom = gt.with_overrides(attribute_scores={"aria-hidden": 0.05})
        assert custom.attribute_score("aria-hidden") == 0.05
        assert custom.attribute_score("aria-label") == 0.6

    def test_longest_wildcard_prefix_wins(self):
        custom = GroundTruth(attribute_scores={"data-*": 0.2, "data-test-*": 0.9})
        assert custom.attribute_score("data-test-id") == 0.9
        assert custom.attribute_score("data-id") == 0.2



class TestOverrides:
    def test_with_overrides_leaves_default_untouched(self):
        custom = gt.with_overrides(
            container_priorities={"x-panel": 0.4},
            interactive_tags=["x-toggle"],
            content_tags=["x-note"],
        )
        assert custom.category("x-panel") is Category.CONTAINER
        assert custom.category("x-toggle") is Category.INTERACTIVE
        assert custom.category("x-note") is Category.CONTENT
        assert gt.category("x-panel") is Category.UNKNOWN

    def test_frozen(self):
        with pytest.raises(AttributeError):
            gt.content_tags = frozenset()  # type: ignore[misc]
