import random
from collections import Counter

import pytest

from treecycle.systems.tree_ops import (
    InvalidMove,
    build_tree,
    get_node,
    get_tree,
    rotate_node,
    rotation_preview,
    set_color,
)
from treecycle.world import create_world
from tests.helpers import A, A0, A1, TWO_COLORS, node_colors, scenario_tree


def _ring_colors(world, node_id):
    colors = node_colors(world)
    node = get_node(world, node_id)
    return [colors[node_id]] + [colors[child] for child in node.children]


def test_rotation_shifts_ring_right():
    world = create_world(palette=TWO_COLORS)
    scenario_tree(world)
    touched = rotate_node(world, A)
    assert touched == [A, A0, A1]
    colors = node_colors(world)
    assert (colors[A], colors[A0], colors[A1]) == ("blue", "red", "red")
    # Nodes outside the ring are untouched.
    assert colors[0] == "red"
    assert colors[2] == colors[5] == colors[6] == "blue"


def test_rotation_moves_last_child_up_and_parent_down():
    world = create_world(rng=random.Random(0))
    build_tree(world, 1, 3)
    for node_id, color in enumerate(["red", "blue", "green", "yellow"]):
        set_color(world, node_id, color)
    rotate_node(world, 0)
    assert node_colors(world) == ["yellow", "red", "blue", "green"]


@pytest.mark.parametrize("degree", [1, 2, 3])
def test_rotation_preserves_ring_multiset_and_is_periodic(degree):
    world = create_world(rng=random.Random(degree))
    build_tree(world, 3, degree)
    tree = get_tree(world)
    for node_id in range(tree.node_count()):
        node = get_node(world, node_id)
        if node.is_leaf:
            continue
        before_all = node_colors(world)
        before_ring = Counter(_ring_colors(world, node_id))
        rotate_node(world, node_id)
        assert Counter(_ring_colors(world, node_id)) == before_ring
        for _ in range(degree):
            rotate_node(world, node_id)
        assert node_colors(world) == before_all


def test_rotating_leaf_is_invalid_and_changes_nothing():
    world = create_world(palette=TWO_COLORS)
    scenario_tree(world)
    before = node_colors(world)
    with pytest.raises(InvalidMove) as excinfo:
        rotate_node(world, A0)
    assert excinfo.value.node_id == A0
    assert node_colors(world) == before


@pytest.mark.parametrize("node_id", [-1, 7, 99, "3", None])
def test_rotating_unknown_node_is_invalid(node_id):
    world = create_world(palette=TWO_COLORS)
    scenario_tree(world)
    with pytest.raises(InvalidMove):
        rotate_node(world, node_id)


def test_invalid_move_is_a_value_error():
    assert issubclass(InvalidMove, ValueError)


def test_rotation_preview_arrows():
    world = create_world(palette=TWO_COLORS)
    scenario_tree(world)
    assert rotation_preview(world, A) == [(A1, A), (A, A0), (A0, A1)]
    assert rotation_preview(world, A0) == []
    assert rotation_preview(world, 42) == []


def test_rotation_preview_for_wider_nodes():
    world = create_world(rng=random.Random(0))
    build_tree(world, 1, 3)
    assert rotation_preview(world, 0) == [(3, 0), (0, 1), (1, 2), (2, 3)]
