"""
Category tree builder.

Turns the flat category collection (each row carrying an optional parent id)
into a nested forest for navigation and admin screens, and flattens a forest
back into depth-annotated options for select dropdowns.

Ids are compared as strings so UUID instances, asyncpg UUIDs and plain
strings coming from forms all match each other.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from storefront.schemas.category import CategoryOption, CategoryTreeNode

logger = logging.getLogger(__name__)

INDENT = "  "
BRANCH = "└ "


def canonical_id(value) -> str | None:
    """String form of an id, None for a missing parent."""
    return None if value is None else str(value)


def group_by_parent(categories: Iterable) -> dict[str | None, list]:
    children: dict[str | None, list] = defaultdict(list)
    for category in categories:
        children[canonical_id(category.parent_id)].append(category)
    return children


def build_category_tree(categories: Iterable, parent_id=None) -> list[CategoryTreeNode]:
    """
    Build the forest rooted at `parent_id` (top level when None).

    Categories whose parent does not exist never appear. A category met twice
    on the same path (cyclic data) is skipped instead of recursing forever.
    """
    children_of = group_by_parent(categories)

    def build(current_id, path: frozenset[str]) -> list[CategoryTreeNode]:
        nodes = []
        for category in children_of.get(canonical_id(current_id), []):
            key = canonical_id(category.id)
            if key in path:
                logger.warning(f"Category cycle detected at {key}, skipping branch")
                continue
            node = CategoryTreeNode.model_validate(category, from_attributes=True)
            node.children = build(category.id, path | {key})
            nodes.append(node)
        return nodes

    start = canonical_id(parent_id)
    return build(parent_id, frozenset() if start is None else frozenset({start}))


def flatten_category_tree(tree: Iterable[CategoryTreeNode], depth: int = 0) -> list[CategoryOption]:
    """Depth-first: each parent is followed by all of its descendants before its next sibling."""
    options: list[CategoryOption] = []
    for node in tree:
        label = node.name if depth == 0 else f"{INDENT * depth}{BRANCH}{node.name}"
        options.append(CategoryOption(id=node.id, name=node.name, depth=depth, label=label))
        options.extend(flatten_category_tree(node.children, depth + 1))
    return options
