from __future__ import annotations

from typing import Any, Dict, Iterable, List, Union

from .errors import InvalidInputError
from .paths import MAX_DEPTH, split_path

INCLUDE = 1

ProjectionTree = Dict[str, Union[int, 'ProjectionTree']]


def build_projection(paths: Iterable[str]) -> ProjectionTree:
    """Fold dot paths, in order, into a nested inclusion tree.

    Leaf nodes are the marker 1, branch nodes are dictionaries.
    If a node was recorded as a leaf and a deeper path arrives later
    (e.g. 'address' then 'address.street'), the leaf becomes a branch.
    A shallower path never overwrites an existing branch.
    """
    tree: ProjectionTree = {}
    for path in paths:
        add_path(tree, path)
    return tree


def add_path(tree: ProjectionTree, path: str) -> ProjectionTree:
    parts = split_path(path)
    if not parts:
        return tree
    if len(parts) > MAX_DEPTH:
        raise InvalidInputError(f"Field path is nested deeper than {MAX_DEPTH} levels.")

    current = tree
    for part in parts[:-1]:
        node = current.get(part)
        if not isinstance(node, dict):
            # Missing, or previously a leaf: promote to a branch.
            node = {}
            current[part] = node
        current = node

    last_part = parts[-1]
    if not isinstance(current.get(last_part), dict):
        current[last_part] = INCLUDE
    return tree


def projection_paths(tree: ProjectionTree, prefix: str = '') -> List[str]:
    """List the leaf dot paths of a projection tree in insertion order."""
    paths: List[str] = []
    for key, node in tree.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(node, dict):
            paths.extend(projection_paths(node, path))
        else:
            paths.append(path)
    return paths


def to_dotted_projection(tree: ProjectionTree) -> Dict[str, Any]:
    """Flatten a tree into the {'a.b': 1} form accepted by MongoDB's find()."""
    return {path: INCLUDE for path in projection_paths(tree)}
