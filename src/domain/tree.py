"""
Comment forest assembly.

Comments are stored flat with a parent reference and a precomputed depth.
The forest is built iteratively over an index, so arbitrarily long reply
chains never touch the interpreter recursion limit.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar
from uuid import UUID


class TreeItem(Protocol):
    @property
    def id(self) -> UUID: ...

    @property
    def parent_comment_id(self) -> UUID | None: ...


T = TypeVar("T", bound=TreeItem)


@dataclass
class TreeNode(Generic[T]):
    item: T
    children: list[TreeNode[T]] = field(default_factory=list)


def build_forest(items: Iterable[T]) -> list[TreeNode[T]]:
    """
    Attach every item under its parent.

    Items whose parent is not part of the input become roots, which lets the
    same function assemble a page of threads or a single subtree. Input order
    is kept for roots and for siblings.
    """
    ordered = list(items)
    index: dict[UUID, TreeNode[T]] = {item.id: TreeNode(item) for item in ordered}

    roots: list[TreeNode[T]] = []
    for item in ordered:
        node = index[item.id]
        parent = index.get(item.parent_comment_id) if item.parent_comment_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def walk(roots: list[TreeNode[T]]) -> Iterator[TreeNode[T]]:
    """Pre-order traversal with an explicit stack."""
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def forest_to_dicts(
    roots: list[TreeNode[T]],
    render: Callable[[T], dict[str, Any]],
    children_key: str = "replies",
) -> list[dict[str, Any]]:
    """Render a forest into nested dicts without recursion."""
    out: list[dict[str, Any]] = []
    stack: list[tuple[TreeNode[T], list[dict[str, Any]]]] = [
        (node, out) for node in reversed(roots)
    ]
    while stack:
        node, sink = stack.pop()
        rendered = render(node.item)
        rendered[children_key] = []
        sink.append(rendered)
        for child in reversed(node.children):
            stack.append((child, rendered[children_key]))
    return out
