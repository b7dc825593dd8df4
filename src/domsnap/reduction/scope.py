# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Preserve-marker scope.

An element is preserved when it, or any ancestor, carries the marker
attribute. Preserved elements keep their markup: no attribute filtering,
markdown conversion, text compression, removal or merging.
"""

from __future__ import annotations

from domsnap.dom import Document, NodeKind


def preserve_scope(doc: Document, attribute: str) -> frozenset[int]:
    """Ids of all preserved elements under (and including) the root.

    Single top-down walk carrying the inherited flag. An empty attribute
    name disables preservation.
    """
    if not attribute or doc.root < 0:
        return frozenset()

    scoped: set[int] = set()
    stack: list[tuple[int, bool]] = [(doc.root, False)]
    while stack:
        nid, inherited = stack.pop()
        node = doc[nid]
        if node.kind is not NodeKind.ELEMENT:
            continue
        inside = inherited or attribute in node.attrs
        if inside:
            scoped.add(nid)
        stack.extend((child, inside) for child in node.children)
    return frozenset(scoped)


def has_preserve_marker(doc: Document, nid: int, attribute: str) -> bool:
    return bool(attribute) and attribute in doc[nid].attrs
