"""
Preset Tree Engine - Pure Functions

All functions are pure: the input tree is never modified, a new
PresetTree is returned. "Not found" is reported through the return
value (bool / Optional / outcome enum), never raised.
"""

from dataclasses import replace
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple, Union

from .model import PresetNode, PresetTree, new_id

NodeOrBranch = Union[PresetNode, PresetTree]

# Indent marker used by picker listings, one per depth level
PICKER_INDENT = "  └ "


class MoveOutcome(Enum):
    """
    Result of move().

    MOVED: Node re-parented under the requested parent
    MOVED_TO_ROOT: Node appended to the roots as requested
    FELL_BACK_TO_ROOT: Requested parent missing (or inside the moved branch);
        node appended to the roots so nothing is lost
    NOT_FOUND: Node to move does not exist, tree unchanged
    """
    MOVED = auto()
    MOVED_TO_ROOT = auto()
    FELL_BACK_TO_ROOT = auto()
    NOT_FOUND = auto()


def _as_branch(node: NodeOrBranch) -> PresetTree:
    if isinstance(node, PresetTree):
        return node
    # A bare node is a leaf; child ids without nodes would dangle
    leaf = replace(node, children=()) if node.children else node
    return PresetTree(nodes={leaf.id: leaf}, roots=(leaf.id,))


def _merge(tree: PresetTree, branch: PresetTree) -> Dict[str, PresetNode]:
    nodes = dict(tree.nodes)
    nodes.update(branch.nodes)
    return nodes


def _collides(tree: PresetTree, branch: PresetTree) -> bool:
    return any(node_id in tree.nodes for node_id in branch.nodes)


# =============================================================================
# MUTATION PRIMITIVES
# =============================================================================

def insert_child(tree: PresetTree, parent_id: str, node: NodeOrBranch) -> Tuple[PresetTree, bool]:
    """
    Append node (or an extracted branch) to the children of parent_id.

    Returns:
        (new_tree, True) on success, (tree, False) if parent_id is absent
        or an inserted id is already in the tree
    """
    parent = tree.get(parent_id)
    if parent is None:
        return tree, False

    branch = _as_branch(node)
    if _collides(tree, branch):
        return tree, False
    nodes = _merge(tree, branch)
    nodes[parent_id] = replace(parent, children=parent.children + branch.roots)
    return PresetTree(nodes=nodes, roots=tree.roots), True


def append_root(tree: PresetTree, node: NodeOrBranch) -> Tuple[PresetTree, bool]:
    """
    Append node (or branch) as a new root.

    Returns:
        (new_tree, True) on success, (tree, False) if an appended id is
        already in the tree
    """
    branch = _as_branch(node)
    if _collides(tree, branch):
        return tree, False
    return PresetTree(nodes=_merge(tree, branch), roots=tree.roots + branch.roots), True


def extract(tree: PresetTree, target_id: str) -> Tuple[PresetTree, Optional[PresetTree]]:
    """
    Remove a node and its subtree from the tree.

    Returns:
        (new_tree, branch) where branch is the removed sub-forest rooted at
        target_id, or (tree, None) if target_id is absent
    """
    branch = tree.branch(target_id)
    if branch is None:
        return tree, None

    nodes = {
        node_id: node for node_id, node in tree.nodes.items()
        if node_id not in branch.nodes
    }
    parent_id = tree.parent_of(target_id)
    if parent_id is not None:
        parent = nodes[parent_id]
        nodes[parent_id] = replace(
            parent, children=tuple(c for c in parent.children if c != target_id)
        )
    roots = tuple(r for r in tree.roots if r != target_id)
    return PresetTree(nodes=nodes, roots=roots), branch


def move(tree: PresetTree, node_id: str, new_parent_id: Optional[str]) -> Tuple[PresetTree, MoveOutcome]:
    """
    Re-parent a node together with its subtree.

    new_parent_id=None moves the node to the roots. A parent that does not
    exist after extraction (unknown id, the node itself or one of its
    descendants) falls back to the roots.
    """
    remaining, branch = extract(tree, node_id)
    if branch is None:
        return tree, MoveOutcome.NOT_FOUND

    # The extracted ids are no longer in remaining, so appending cannot collide
    rooted, _ = append_root(remaining, branch)
    if new_parent_id is None:
        return rooted, MoveOutcome.MOVED_TO_ROOT

    moved, inserted = insert_child(remaining, new_parent_id, branch)
    if inserted:
        return moved, MoveOutcome.MOVED
    return rooted, MoveOutcome.FELL_BACK_TO_ROOT


def delete(tree: PresetTree, target_id: str) -> Tuple[PresetTree, FrozenSet[str]]:
    """
    Delete a node with its whole subtree (children are never promoted).

    Returns:
        (new_tree, deleted_ids); deleted_ids is empty if target_id is absent
    """
    remaining, branch = extract(tree, target_id)
    if branch is None:
        return tree, frozenset()
    return remaining, frozenset(branch.nodes)


def set_preset_on(tree: PresetTree, node_id: str, is_on: bool) -> Tuple[PresetTree, bool]:
    node = tree.get(node_id)
    if node is None:
        return tree, False
    nodes = dict(tree.nodes)
    nodes[node_id] = replace(node, is_on=is_on)
    return PresetTree(nodes=nodes, roots=tree.roots), True


def rename_preset(tree: PresetTree, node_id: str, name: str) -> Tuple[PresetTree, bool]:
    node = tree.get(node_id)
    if node is None:
        return tree, False
    nodes = dict(tree.nodes)
    nodes[node_id] = replace(node, name=name)
    return PresetTree(nodes=nodes, roots=tree.roots), True


# =============================================================================
# EVALUATION
# =============================================================================

def enabled_in_order(tree: PresetTree) -> List[Tuple[str, str]]:
    """
    Effectively enabled presets as (id, name) in tree pre-order.

    A node is effectively enabled when it is on and every ancestor up to its
    root is on. The order decides which preset a multi-linked control is
    grouped under.
    """
    result: List[Tuple[str, str]] = []
    # (node_id, ancestors_on)
    stack: List[Tuple[str, bool]] = [(root, True) for root in reversed(tree.roots)]
    while stack:
        node_id, ancestors_on = stack.pop()
        node = tree.nodes[node_id]
        effective = ancestors_on and node.is_on
        if effective:
            result.append((node.id, node.name))
        stack.extend((child, effective) for child in reversed(node.children))
    return result


def enabled_ids(tree: PresetTree) -> FrozenSet[str]:
    """Set of effectively enabled preset ids."""
    return frozenset(node_id for node_id, _ in enabled_in_order(tree))


# =============================================================================
# CLONING
# =============================================================================

def clone(tree: PresetTree, id_factory: Callable[[], str] = new_id) -> Tuple[PresetTree, Dict[str, str]]:
    """
    Deep copy with a fresh id for every node.

    Returns:
        (new_tree, id_map) where id_map maps every old id to its new id
    """
    id_map: Dict[str, str] = {node_id: id_factory() for node_id in tree.ids()}
    nodes = {
        id_map[node.id]: PresetNode(
            id=id_map[node.id],
            name=node.name,
            is_on=node.is_on,
            children=tuple(id_map[child] for child in node.children),
        )
        for node in tree.nodes.values()
    }
    roots = tuple(id_map[root] for root in tree.roots)
    return PresetTree(nodes=nodes, roots=roots), id_map


# =============================================================================
# LISTINGS
# =============================================================================

def picker_options(tree: PresetTree, exclude_id: Optional[str] = None) -> List[Tuple[str, str]]:
    """
    Flattened (id, indented name) list for parent pickers.

    exclude_id hides a single node (the one being moved) but keeps its
    descendants listed; choosing one of them falls back to root on move.
    """
    return [
        (node.id, PICKER_INDENT * depth + node.name)
        for node, depth in tree.walk()
        if node.id != exclude_id
    ]


def prune_references(preset_ids: Tuple[str, ...], removed: Set[str]) -> Tuple[str, ...]:
    """Drop references to removed preset ids, keeping order."""
    return tuple(pid for pid in preset_ids if pid not in removed)
