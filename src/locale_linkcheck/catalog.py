"""Translation trees and the locale catalog they are loaded from.

A locale catalog is a directory of Rails-style locale files. The top-level keys
of every file are locale identifiers:

    en:
      welcome:
        body: 'Read the <a href="https://example.com/guide">guide</a>.'

All files contributing to the same locale are deep-merged, later files (by
sorted path) winning on conflicting leaves.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import yaml

from locale_linkcheck.constants import CATALOG_SUFFIXES
from locale_linkcheck.errors import CatalogError, UnknownLocaleError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SequenceNode:
    items: tuple[TranslationNode, ...]


@dataclass(frozen=True)
class MappingNode:
    entries: tuple[tuple[str, TranslationNode], ...]


@dataclass(frozen=True)
class LeafNode:
    text: str


@dataclass(frozen=True)
class EmptyNode:
    pass


TranslationNode = Union[SequenceNode, MappingNode, LeafNode, EmptyNode]

EMPTY = EmptyNode()


def _scalar_node(raw: Any) -> TranslationNode | None:
    """Node for a non-container value, None for lists and mappings."""
    if isinstance(raw, str):
        return LeafNode(raw)
    if isinstance(raw, (Mapping, list, tuple)):
        return None
    return EMPTY


def _open_container(raw: Any) -> tuple[Any, list[str] | None, list[Any], list[TranslationNode]]:
    if isinstance(raw, Mapping):
        return raw, [str(k) for k in raw], list(raw.values()), []
    return raw, None, list(raw), []


def build_tree(raw: Any, *, source: str = "translations") -> TranslationNode:
    """Convert loaded YAML/JSON data into a translation tree.

    Lists become sequences, dicts become mappings (keys stringified), strings
    become leaves; everything else (None, numbers, booleans) is empty.

    Built bottom-up from an explicit stack, so nesting depth is unbounded. A
    container that contains itself (a YAML anchor aliased inside its own
    body) raises CatalogError naming `source`.
    """
    node = _scalar_node(raw)
    if node is not None:
        return node

    on_path = {id(raw)}
    stack = [_open_container(raw)]
    while True:
        container, keys, values, built = stack[-1]
        if len(built) < len(values):
            child = values[len(built)]
            node = _scalar_node(child)
            if node is not None:
                built.append(node)
                continue
            if id(child) in on_path:
                raise CatalogError(source, "recursive structure")
            on_path.add(id(child))
            stack.append(_open_container(child))
            continue

        stack.pop()
        on_path.discard(id(container))
        if keys is None:
            node = SequenceNode(tuple(built))
        else:
            node = MappingNode(tuple(zip(keys, built)))
        if not stack:
            return node
        stack[-1][3].append(node)


def deep_merge(base: dict[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Merge `incoming` over `base` without mutating either.

    Nested mappings merge, anything else replaces. Only dicts on a merged path
    are copied; untouched subtrees are shared with the inputs.
    """
    merged = dict(base)
    # (id(base dict), id(incoming mapping)) -> its merged copy; ends alias cycles
    copies = {(id(base), id(incoming)): merged}
    pending = [(merged, incoming)]
    while pending:
        target, source = pending.pop()
        for key, value in source.items():
            current = target.get(key)
            if isinstance(current, dict) and isinstance(value, Mapping):
                pair = (id(current), id(value))
                child = copies.get(pair)
                if child is None:
                    child = copies[pair] = dict(current)
                    pending.append((child, value))
                target[key] = child
            else:
                target[key] = value
    return merged


def load_catalog_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogError(str(path), f"unreadable ({type(e).__name__}: {e})") from e

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError, RecursionError) as e:
        raise CatalogError(str(path), f"parse error ({e})") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CatalogError(str(path), f"top level must be a mapping of locales, got {type(data).__name__}")
    return data


class LocaleCatalog:
    """Read-only provider of per-locale translation trees."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data: dict[str, Any] = {str(k): v for k, v in data.items()}
        self._trees: dict[str, TranslationNode] = {}

    @classmethod
    def from_directory(cls, root: Path) -> LocaleCatalog:
        if not root.is_dir():
            raise CatalogError(str(root), "not a directory")

        files = sorted(p for p in root.rglob("*") if p.is_file() and p.suffix in CATALOG_SUFFIXES)
        if not files:
            logger.warning(f"No locale files found under {root}")

        merged: dict[str, Any] = {}
        for path in files:
            data = load_catalog_file(path)
            logger.debug(f"Loaded {path} (locales: {', '.join(map(str, data)) or 'none'})")
            merged = deep_merge(merged, {str(k): v for k, v in data.items()})
        return cls(merged)

    def available_locales(self) -> list[str]:
        return sorted(self._data)

    def translations(self, locale: str) -> TranslationNode:
        if locale not in self._data:
            raise UnknownLocaleError(locale, self.available_locales())
        tree = self._trees.get(locale)
        if tree is None:
            tree = build_tree(self._data[locale], source=locale)
            self._trees[locale] = tree
        return tree
