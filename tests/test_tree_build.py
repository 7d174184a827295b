import random

import pytest

from treecycle.components.node_color import NodeColor
from treecycle.components.tree import Tree
from treecycle.components.tree_node import TreeNode
from treecycle.constants import DEFAULT_PALETTE
from treecycle.systems.tree_ops import (
    build_tree,
    clear_nodes,
    get_node,
    get_tree,
    is_empty,
    iter_node_ids,
    tree_edges,
)
from treecycle.world import create_world
from tests.helpers import node_colors


@pytest.mark.parametrize("depth,degree", [(0, 2), (2, 2), (3, 2), (4, 2), (2, 3)])
def test_tree_is_perfect(depth, degree):
    world = create_world(rng=random.Random(1))
    tree = build_tree(world, depth, degree)
    expected = sum(degree ** d for d in range(depth + 1))
    assert tree.node_count() == expected
    for node_id in range(tree.node_count()):
        node = get_node(world, node_id)
        if node.depth < depth:
            assert len(node.children) == degree
        else:
            assert node.children == []
        for child in node.children:
            assert get_node(world, child).parent == node_id
            assert get_node(world, child).depth == node.depth + 1
    assert get_node(world, tree.root_id).parent is None
    assert [len(level) for level in tree.levels] == [degree ** d for d in range(depth + 1)]


def test_node_ids_follow_breadth_first_order():
    world = create_world(rng=random.Random(2))
    build_tree(world, 2, 2)
    assert get_node(world, 0).children == [1, 2]
    assert get_node(world, 1).children == [3, 4]
    assert get_node(world, 2).children == [5, 6]
    assert get_tree(world).levels == [[0], [1, 2], [3, 4, 5, 6]]
    assert tree_edges(world) == [(0, 1), (0, 2), (1, 3), (1, 4), (2, 5), (2, 6)]


def test_colors_are_drawn_from_palette():
    world = create_world(rng=random.Random(3))
    build_tree(world, 4, 2)
    assert all(color in DEFAULT_PALETTE for color in node_colors(world))


def test_same_seed_builds_same_coloring():
    first = create_world(rng=random.Random(42))
    second = create_world(rng=random.Random(42))
    build_tree(first, 3, 2)
    build_tree(second, 3, 2)
    assert node_colors(first) == node_colors(second)


def test_rebuild_replaces_previous_tree():
    world = create_world(rng=random.Random(4))
    build_tree(world, 3, 2)
    build_tree(world, 2, 2)
    assert len(list(world.get_component(Tree))) == 1
    assert len(list(world.get_component(TreeNode))) == 7
    assert len(list(world.get_component(NodeColor))) == 7


@pytest.mark.parametrize("depth,degree", [(-1, 2), (2, 0)])
def test_invalid_shape_rejected(depth, degree):
    world = create_world()
    with pytest.raises(ValueError):
        build_tree(world, depth, degree)


def test_lookups_without_tree_raise():
    world = create_world()
    with pytest.raises(RuntimeError):
        get_tree(world)


def test_node_ids_and_empty_slots():
    world = create_world(rng=random.Random(2))
    build_tree(world, 2, 2)
    assert list(iter_node_ids(world)) == list(range(7))
    assert not any(is_empty(world, node_id) for node_id in iter_node_ids(world))
    assert clear_nodes(world, [1, 3, 1]) == [1, 3]
    assert [node_id for node_id in iter_node_ids(world) if is_empty(world, node_id)] == [1, 3]
