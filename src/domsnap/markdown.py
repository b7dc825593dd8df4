# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTML fragment → markdown conversion for content elements.

Uses markdownify on a BeautifulSoup parse. Hyperlinks and anything
carrying the preserve marker are emitted as their original markup so the
snapshot keeps them addressable; everything else becomes markdown.

Line breaks in the output are replaced with LINE_BREAK_MARK. The converted
text is re-parsed as an HTML fragment and spliced into the tree, where real
newlines would be indistinguishable from formatting whitespace; the
snapshot assembler turns the marks back into newlines at the very end.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from markdownify import MarkdownConverter as BaseMarkdownConverter

logger = logging.getLogger(__name__)

LINE_BREAK_MARK = "@@@"

# Tags always emitted as markup instead of markdown
VERBATIM_TAGS = frozenset({"a"})


class SourceOrderFormatter(HTMLFormatter):
    """Minimal HTML formatter that keeps attributes in source order."""

    def __init__(self) -> None:
        super().__init__(entity_substitution=EntitySubstitution.substitute_xml)

    def attributes(self, tag):
        return list(tag.attrs.items()) if tag.attrs else []


SOURCE_ORDER = SourceOrderFormatter()


class VerbatimAwareConverter(BaseMarkdownConverter):
    """Markdownify converter that leaves selected elements as raw HTML."""

    def __init__(
        self,
        preserve_attribute: str | None = None,
        verbatim_tags: frozenset[str] = VERBATIM_TAGS,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.preserve_attribute = preserve_attribute
        self.verbatim_tags = verbatim_tags

    def is_verbatim(self, node) -> bool:
        if not isinstance(node, Tag) or isinstance(node, BeautifulSoup):
            return False
        if (node.name or "").lower() in self.verbatim_tags:
            return True
        return bool(self.preserve_attribute) and node.has_attr(self.preserve_attribute)

    def process_tag(self, node, *args, **kwargs):
        if self.is_verbatim(node):
            return node.decode(formatter=SOURCE_ORDER)
        return super().process_tag(node, *args, **kwargs)


class MarkdownConverter:
    """Convert one element's markup to sentinel-joined markdown.

    Usage:
        converter = MarkdownConverter()
        text = converter.convert("<h1>Menu</h1>", "data-preserve")
        # "# Menu@@@"
    """

    def __init__(self, heading_style: str = "atx", bullets: str = "-") -> None:
        self._options = {
            "heading_style": heading_style,
            "bullets": bullets,
            "code_language": "",
            "wrap": False,
        }

    def convert(self, markup: str, preserve_attribute: str | None = None) -> str:
        """Render ``markup`` as markdown.

        Args:
            markup: Outer HTML of a single element
            preserve_attribute: Marker name whose bearers stay verbatim

        Returns:
            Trimmed markdown with every line break replaced by
            LINE_BREAK_MARK, terminated by one more mark. Empty input
            yields an empty string.
        """
        if not markup or not markup.strip():
            return ""

        soup = BeautifulSoup(markup, "html.parser")
        converter = VerbatimAwareConverter(preserve_attribute=preserve_attribute, **self._options)
        markdown = converter.convert_soup(soup).strip()
        if not markdown:
            return ""
        return markdown.replace("\n", LINE_BREAK_MARK) + LINE_BREAK_MARK
