# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Arena DOM used by the reduction passes.

lxml keeps text as ``.text``/``.tail`` strings hanging off elements, which
makes "move every child node of A in front of B" awkward. The reduction
passes work on this arena instead: every element, text and comment is a
``Node`` stored in ``Document.nodes`` and addressed by its integer id.
Parent and child links are ids, so the arena owns all nodes and detaching
a subtree only clears a parent link.

The arena is built from an lxml tree (the caller's tree is never touched)
and serializes back to HTML the way a browser's ``outerHTML`` does.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

import lxml.html
from lxml import etree

logger = logging.getLogger(__name__)

# Elements serialized without children or an end tag
VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "basefont",
        "bgsound",
        "br",
        "col",
        "embed",
        "frame",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Elements whose text children are serialized without escaping
RAW_TEXT_TAGS = frozenset({"script", "style", "xmp", "iframe", "noembed", "noframes", "plaintext"})

_TEXT_ESCAPES = str.maketrans({"&": "&amp;", "\xa0": "&nbsp;", "<": "&lt;", ">": "&gt;"})
_ATTR_ESCAPES = str.maketrans({"&": "&amp;", "\xa0": "&nbsp;", '"': "&quot;"})


class NodeKind(StrEnum):
    """Node discriminator."""

    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"


@dataclass(slots=True)
class Node:
    """A single arena node. Fields not meaningful for a kind stay empty."""

    kind: NodeKind
    tag: str = ""
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[int] = field(default_factory=list)
    parent: int | None = None
    text: str = ""
    depth: int = 0

    @property
    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT


def _local_name(name: str) -> str:
    """Strip a Clark-notation namespace (``{uri}local``)."""
    if name.startswith("{"):
        return name.rsplit("}", 1)[-1]
    return name


class Document:
    """Node arena with a single root element."""

    __slots__ = ("nodes", "root")

    def __init__(self) -> None:
        self.nodes: list[Node] = []
        self.root: int = -1

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _add(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def new_element(self, tag: str, attrs: dict[str, str] | None = None) -> int:
        return self._add(Node(NodeKind.ELEMENT, tag=tag, attrs=dict(attrs or {})))

    def new_text(self, text: str) -> int:
        return self._add(Node(NodeKind.TEXT, text=text))

    def new_comment(self, text: str) -> int:
        return self._add(Node(NodeKind.COMMENT, text=text))

    @classmethod
    def from_lxml(cls, element: etree._Element) -> Document:
        """Copy an lxml element (and its subtree, not its tail) into a new arena."""
        doc = cls()
        root = doc.import_lxml(element)
        if root is None or not doc[root].is_element:
            raise ValueError(f"cannot use {type(element).__name__} as a document root")
        doc.root = root
        return doc

    def import_lxml(self, el: etree._Element) -> int | None:
        """Copy an lxml node into the arena, detached. Returns its id.

        Processing instructions and entity references have no counterpart
        and yield None.
        """
        if el.tag is etree.Comment:
            return self.new_comment(el.text or "")
        if not isinstance(el.tag, str):
            return None

        attrs = {_local_name(str(name)): value for name, value in el.attrib.items()}
        nid = self.new_element(_local_name(el.tag), attrs)
        if el.text:
            self.append_child(nid, self.new_text(el.text))
        for child in el:
            child_id = self.import_lxml(child)
            if child_id is not None:
                self.append_child(nid, child_id)
            if child.tail:
                self.append_child(nid, self.new_text(child.tail))
        return nid

    def parse_fragment(self, markup: str) -> list[int]:
        """Parse an HTML fragment into new detached nodes, in order."""
        if not markup:
            return []
        ids: list[int] = []
        for item in lxml.html.fragments_fromstring(markup):
            if isinstance(item, str):
                ids.append(self.new_text(item))
                continue
            nid = self.import_lxml(item)
            if nid is not None:
                ids.append(nid)
            if item.tail:
                ids.append(self.new_text(item.tail))
        return ids

    def clone(self) -> Document:
        """Independent copy of the whole arena (ids are preserved)."""
        copy = Document()
        copy.nodes = [
            Node(
                n.kind,
                tag=n.tag,
                attrs=dict(n.attrs),
                children=list(n.children),
                parent=n.parent,
                text=n.text,
                depth=n.depth,
            )
            for n in self.nodes
        ]
        copy.root = self.root
        return copy

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def __getitem__(self, nid: int) -> Node:
        return self.nodes[nid]

    def __len__(self) -> int:
        return len(self.nodes)

    def element_children(self, nid: int) -> list[int]:
        return [c for c in self.nodes[nid].children if self.nodes[c].kind is NodeKind.ELEMENT]

    def is_attached(self, nid: int) -> bool:
        """True if the node is the root or reachable from it."""
        current: int | None = nid
        while current is not None:
            if current == self.root:
                return True
            current = self.nodes[current].parent
        return False

    def text_content(self, nid: int) -> str:
        node = self.nodes[nid]
        if node.kind is NodeKind.TEXT:
            return node.text
        return "".join(self.nodes[t].text for t in self.descendants(nid, NodeKind.TEXT))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def detach(self, nid: int) -> None:
        """Remove a node (and its subtree) from its parent. No-op when detached."""
        node = self.nodes[nid]
        if node.parent is None:
            return
        self.nodes[node.parent].children.remove(nid)
        node.parent = None

    def insert_at(self, parent: int, index: int, child: int) -> None:
        """Insert ``child`` at ``index`` in ``parent``, detaching it first."""
        self.detach(child)
        self.nodes[parent].children.insert(index, child)
        self.nodes[child].parent = parent

    def append_child(self, parent: int, child: int) -> None:
        self.detach(child)
        self.nodes[parent].children.append(child)
        self.nodes[child].parent = parent

    def insert_before(self, parent: int, child: int, reference: int) -> None:
        """Insert ``child`` right before ``reference``, a child of ``parent``."""
        self.detach(child)
        siblings = self.nodes[parent].children
        siblings.insert(siblings.index(reference), child)
        self.nodes[child].parent = parent

    def replace_with(self, nid: int, replacements: Iterable[int]) -> None:
        """Put ``replacements`` (in order) where ``nid`` is, then detach ``nid``."""
        parent = self.nodes[nid].parent
        if parent is None:
            return
        for new_id in replacements:
            self.insert_before(parent, new_id, nid)
        self.detach(nid)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def descendants(self, nid: int, kind: NodeKind | None = None) -> list[int]:
        """Descendants of ``nid`` in document order (``nid`` itself excluded).

        The result is a list collected up front, so callers may mutate the
        tree while iterating over it.
        """
        result: list[int] = []
        stack = list(reversed(self.nodes[nid].children))
        while stack:
            current = stack.pop()
            node = self.nodes[current]
            if kind is None or node.kind is kind:
                result.append(current)
            if node.children:
                stack.extend(reversed(node.children))
        return result

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def outer_html(self, nid: int) -> str:
        parts: list[str] = []
        self._serialize(nid, parts)
        return "".join(parts)

    def inner_html(self, nid: int) -> str:
        parts: list[str] = []
        for child in self.nodes[nid].children:
            self._serialize(child, parts)
        return "".join(parts)

    def _serialize(self, nid: int, parts: list[str]) -> None:
        node = self.nodes[nid]
        if node.kind is NodeKind.TEXT:
            parent = node.parent
            if parent is not None and self.nodes[parent].tag.lower() in RAW_TEXT_TAGS:
                parts.append(node.text)
            else:
                parts.append(node.text.translate(_TEXT_ESCAPES))
            return
        if node.kind is NodeKind.COMMENT:
            parts.append(f"<!--{node.text}-->")
            return

        parts.append(f"<{node.tag}")
        for name, value in node.attrs.items():
            parts.append(f' {name}="{(value or "").translate(_ATTR_ESCAPES)}"')
        parts.append(">")
        if node.tag.lower() in VOID_TAGS:
            return
        for child in node.children:
            self._serialize(child, parts)
        parts.append(f"</{node.tag}>")
