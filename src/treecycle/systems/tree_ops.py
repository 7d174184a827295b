from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from esper import World

from treecycle.components.level_config import LevelConfig
from treecycle.components.node_color import NodeColor
from treecycle.components.palette import Palette
from treecycle.components.tree import Tree
from treecycle.components.tree_node import TreeNode
from treecycle.constants import MATCH_MIN_SIZE

Edge = Tuple[int, int]


class InvalidMove(ValueError):
    """Rotation requested on a leaf or on a node id the tree does not contain."""

    def __init__(self, node_id, reason: str):
        super().__init__(f"cannot rotate node {node_id!r}: {reason}")
        self.node_id = node_id
        self.reason = reason


@dataclass(slots=True)
class GravityMove:
    source: int
    target: int
    color: str


@dataclass(slots=True)
class GravityStep:
    """One depth-descending sweep; ``refill`` is the color dropped into the root after it, if any."""
    moves: List[GravityMove]
    refill: Optional[str] = None


@dataclass(frozen=True, slots=True)
class NodeSnapshot:
    node_id: int
    depth: int
    color: Optional[str]
    parent_id: Optional[int]


@dataclass(frozen=True, slots=True)
class TreeSnapshot:
    """Read-only picture of the tree and level for a renderer."""
    root_id: int
    degree: int
    depth: int
    nodes: Tuple[NodeSnapshot, ...]
    edges: Tuple[Edge, ...]
    palette: Dict[str, Tuple[int, int, int]]
    level_index: Optional[int] = None
    score: int = 0
    target_score: int = 0
    moves_left: int = 0
    status: Optional[str] = None
    processing: bool = False
    campaign_complete: bool = False


# ----------------------------------------------------------------------
# Resource lookups
# ----------------------------------------------------------------------

def find_tree(world: World) -> Tree | None:
    for _, tree in world.get_component(Tree):
        return tree
    return None


def get_tree(world: World) -> Tree:
    tree = find_tree(world)
    if tree is None:
        raise RuntimeError("Tree not built; start a level first")
    return tree


def get_palette(world: World) -> Palette:
    for _, palette in world.get_component(Palette):
        return palette
    raise RuntimeError("Palette definitions not found")


def get_level_config(world: World) -> LevelConfig:
    for _, config in world.get_component(LevelConfig):
        return config
    raise RuntimeError("LevelConfig not found")


def world_rng(world: World, rng: random.Random | None = None) -> random.Random:
    candidate = rng or getattr(world, "random", None)
    if candidate is None:
        candidate = random.Random()
        setattr(world, "random", candidate)
    return candidate


def random_color(world: World, *, rng: random.Random | None = None) -> str:
    return world_rng(world, rng).choice(get_palette(world).names())


def get_node(world: World, node_id: int) -> TreeNode:
    tree = get_tree(world)
    if not tree.has_node(node_id):
        raise KeyError(node_id)
    return world.component_for_entity(tree.entities[node_id], TreeNode)


def get_node_color(world: World, node_id: int) -> NodeColor:
    tree = get_tree(world)
    return world.component_for_entity(tree.entities[node_id], NodeColor)


def get_color(world: World, node_id: int) -> Optional[str]:
    return get_node_color(world, node_id).color


def is_empty(world: World, node_id: int) -> bool:
    return get_node_color(world, node_id).is_empty


def set_color(world: World, node_id: int, color: Optional[str]) -> None:
    get_node_color(world, node_id).color = color


def iter_node_ids(world: World) -> Iterator[int]:
    return iter(range(get_tree(world).node_count()))


def color_map(world: World) -> Dict[int, Optional[str]]:
    """Return mapping of node id to color (None for empty slots)."""
    tree = get_tree(world)
    return {
        node_id: world.component_for_entity(entity, NodeColor).color
        for node_id, entity in enumerate(tree.entities)
    }


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------

def clear_tree(world: World) -> None:
    for tree_entity, tree in list(world.get_component(Tree)):
        for entity in tree.entities:
            world.delete_entity(entity, immediate=True)
        world.delete_entity(tree_entity, immediate=True)


def build_tree(world: World, depth: int, degree: int, *, rng: random.Random | None = None) -> Tree:
    """Replace the current tree with a freshly colored perfect tree."""
    if depth < 0:
        raise ValueError(f"depth must be >= 0, got {depth}")
    if degree < 1:
        raise ValueError(f"degree must be >= 1, got {degree}")
    clear_tree(world)
    rng = world_rng(world, rng)
    colors = get_palette(world).names()
    tree = Tree(degree=degree, depth=depth)
    world.create_entity(tree)

    def _spawn(node_depth: int, parent: Optional[int]) -> int:
        node_id = len(tree.entities)
        entity = world.create_entity(
            TreeNode(node_id=node_id, depth=node_depth, parent=parent),
            NodeColor(color=rng.choice(colors)),
        )
        tree.entities.append(entity)
        return node_id

    current = [_spawn(0, None)]
    tree.levels.append(list(current))
    for node_depth in range(1, depth + 1):
        next_level: List[int] = []
        for parent_id in current:
            parent = world.component_for_entity(tree.entities[parent_id], TreeNode)
            for _ in range(degree):
                child_id = _spawn(node_depth, parent_id)
                parent.children.append(child_id)
                next_level.append(child_id)
        tree.levels.append(next_level)
        current = next_level
    return tree


def tree_edges(world: World) -> List[Edge]:
    """Static (parent, child) pairs in breadth-first order."""
    tree = get_tree(world)
    edges: List[Edge] = []
    for entity in tree.entities:
        node = world.component_for_entity(entity, TreeNode)
        edges.extend((node.node_id, child) for child in node.children)
    return edges


# ----------------------------------------------------------------------
# Rotation
# ----------------------------------------------------------------------

def rotate_node(world: World, node_id: int) -> List[int]:
    """Cycle colors one step around the ring [node, child_0, ..., child_k-1].

    The last child's color moves up into the node, the node's color moves into
    the first child, and every other child takes its left sibling's color.
    Returns the touched node ids for visual refresh.
    """
    tree = get_tree(world)
    if not tree.has_node(node_id):
        raise InvalidMove(node_id, "unknown node")
    node = get_node(world, node_id)
    if node.is_leaf:
        raise InvalidMove(node_id, "leaf nodes have no children to cycle")
    ring = [node_id, *node.children]
    colors = [get_color(world, member) for member in ring]
    shifted = colors[-1:] + colors[:-1]
    for member, color in zip(ring, shifted):
        set_color(world, member, color)
    return ring


def rotation_preview(world: World, node_id: int) -> List[Edge]:
    """Directed arrows showing where each color travels if node_id is rotated."""
    tree = find_tree(world)
    if tree is None or not tree.has_node(node_id):
        return []
    node = get_node(world, node_id)
    if node.is_leaf:
        return []
    children = node.children
    arrows: List[Edge] = [(children[-1], node_id), (node_id, children[0])]
    arrows.extend((children[i - 1], children[i]) for i in range(1, len(children)))
    return arrows


# ----------------------------------------------------------------------
# Match detection
# ----------------------------------------------------------------------

def _connected_group(world: World, start: int, colors: Dict[int, Optional[str]]) -> List[int]:
    color = colors[start]
    group: List[int] = []
    queue = deque([start])
    seen = {start}
    while queue:
        current = queue.popleft()
        group.append(current)
        node = get_node(world, current)
        neighbors = ([node.parent] if node.parent is not None else []) + node.children
        for neighbor in neighbors:
            if neighbor not in seen and colors[neighbor] == color:
                seen.add(neighbor)
                queue.append(neighbor)
    return group


def find_groups(world: World) -> List[List[int]]:
    """Partition every colored node into maximal monochromatic connected groups."""
    colors = color_map(world)
    visited: set[int] = set()
    groups: List[List[int]] = []
    for node_id in iter_node_ids(world):
        if node_id in visited or colors[node_id] is None:
            continue
        group = _connected_group(world, node_id, colors)
        visited.update(group)
        groups.append(group)
    return groups


def find_matches(world: World) -> List[List[int]]:
    """Groups large enough to be cleared."""
    return [group for group in find_groups(world) if len(group) >= MATCH_MIN_SIZE]


# ----------------------------------------------------------------------
# Clearing, gravity and refill
# ----------------------------------------------------------------------

def clear_nodes(world: World, node_ids: Iterable[int]) -> List[int]:
    cleared: List[int] = []
    for node_id in node_ids:
        if is_empty(world, node_id):
            continue
        set_color(world, node_id, None)
        cleared.append(node_id)
    return cleared


def apply_gravity_step(world: World) -> List[GravityMove]:
    """Run one sweep from the deepest internal level up to the root.

    Each colored node with an empty child drops its color into the first such
    child. A color that lands on a deeper level is not moved again in the same sweep.
    """
    tree = get_tree(world)
    moves: List[GravityMove] = []
    for node_depth in range(tree.depth - 1, -1, -1):
        for node_id in tree.levels[node_depth]:
            color = get_color(world, node_id)
            if color is None:
                continue
            node = get_node(world, node_id)
            target = next((child for child in node.children if is_empty(world, child)), None)
            if target is None:
                continue
            set_color(world, target, color)
            set_color(world, node_id, None)
            moves.append(GravityMove(source=node_id, target=target, color=color))
    return moves


def refill_root(world: World, *, rng: random.Random | None = None) -> Optional[str]:
    tree = get_tree(world)
    if not is_empty(world, tree.root_id):
        return None
    color = random_color(world, rng=rng)
    set_color(world, tree.root_id, color)
    return color


def settle_tree(world: World, *, rng: random.Random | None = None) -> List[GravityStep]:
    """Apply gravity to a fixed point, refilling the root whenever it runs dry.

    The root is the only source of new colors. Every step either moves a color
    one level down or fills the root, so the loop ends once the tree is full.
    """
    steps: List[GravityStep] = []
    while True:
        moves = apply_gravity_step(world)
        if moves:
            steps.append(GravityStep(moves=moves))
            continue
        color = refill_root(world, rng=rng)
        if color is None:
            return steps
        steps.append(GravityStep(moves=[], refill=color))


# ----------------------------------------------------------------------
# Level setup
# ----------------------------------------------------------------------

def prevent_initial_matches(world: World, max_attempts: int, *, rng: random.Random | None = None) -> int:
    """Re-roll matched nodes until the tree is match free or attempts run out.

    Best effort only: after ``max_attempts`` re-rolls any remaining matches stay.
    Returns the number of re-roll passes performed.
    """
    rng = world_rng(world, rng)
    attempts = 0
    while attempts < max_attempts:
        matches = find_matches(world)
        if not matches:
            break
        for group in matches:
            for node_id in group:
                set_color(world, node_id, random_color(world, rng=rng))
        attempts += 1
    return attempts


def snapshot_tree(world: World) -> TreeSnapshot:
    tree = get_tree(world)
    nodes = []
    for entity in tree.entities:
        node = world.component_for_entity(entity, TreeNode)
        color = world.component_for_entity(entity, NodeColor).color
        nodes.append(NodeSnapshot(node_id=node.node_id, depth=node.depth, color=color, parent_id=node.parent))
    return TreeSnapshot(
        root_id=tree.root_id,
        degree=tree.degree,
        depth=tree.depth,
        nodes=tuple(nodes),
        edges=tuple(tree_edges(world)),
        palette=dict(get_palette(world).colors),
    )
