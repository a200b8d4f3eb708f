"""Walk translation trees and pull hyperlink candidates out of their text."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING

from locale_linkcheck.catalog import EmptyNode, LeafNode, MappingNode, SequenceNode, TranslationNode

if TYPE_CHECKING:
    from locale_linkcheck.validator import ValidationContext

# Opening and closing quotes are not required to match.
HREF_RE = re.compile(r"""href=["']([^"']+)["']""")

NodePath = tuple[str | int, ...]


def extract_links(text: str) -> list[str]:
    return HREF_RE.findall(text)


def iter_leaves(node: TranslationNode, path: NodePath = ()) -> Iterator[tuple[NodePath, str]]:
    """
    Yield (path, text) for every leaf, depth-first, in document order.

    Iterative, so nesting depth is limited only by the data.
    """
    stack: list[tuple[TranslationNode, NodePath]] = [(node, path)]
    while stack:
        current, current_path = stack.pop()
        if isinstance(current, LeafNode):
            yield current_path, current.text
        elif isinstance(current, MappingNode):
            for key, child in reversed(current.entries):
                stack.append((child, (*current_path, key)))
        elif isinstance(current, SequenceNode):
            for index in range(len(current.items) - 1, -1, -1):
                stack.append((current.items[index], (*current_path, index)))
        elif isinstance(current, EmptyNode):
            continue
        else:
            raise TypeError(f"unhandled translation node: {type(current).__name__}")


def iter_link_occurrences(node: TranslationNode, path: NodePath = ()) -> Iterator[tuple[NodePath, str]]:
    for leaf_path, text in iter_leaves(node, path):
        for link in extract_links(text):
            yield leaf_path, link


def traverse(node: TranslationNode, path: NodePath, context: ValidationContext) -> int:
    """Validate every link occurrence under `node`, recording results on `context`.

    Returns the number of occurrences visited.
    """
    count = 0
    for leaf_path, link in iter_link_occurrences(node, path):
        count += 1
        context.validate_occurrence(link, leaf_path)
    return count
