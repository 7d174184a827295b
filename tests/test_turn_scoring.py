import pytest

from treecycle.components.level_state import LevelStatus
from treecycle.events.bus import EVENT_MATCH_CLEARED, EVENT_NODE_CLICK, EVENT_TURN_FINALIZED
from treecycle.systems.scoring import combo_multiplier, match_points, turn_total
from treecycle.utils.game_state import get_game_state, get_level_state, get_or_create_turn_state
from tests.helpers import A, paint, scenario_tree, setup_world, small_level_config


@pytest.mark.parametrize(
    "match_count,expected",
    [(1, 1.0), (2, 1.5), (3, 2.0), (4, 2.5), (5, 3.0), (6, 3.5), (7, 4.0), (8, 4.0), (20, 4.0)],
)
def test_combo_multiplier_table(match_count, expected):
    assert combo_multiplier(match_count) == expected


@pytest.mark.parametrize("size,points", [(3, 100), (4, 200), (7, 500), (31, 2900)])
def test_match_points(size, points):
    assert match_points(size) == points


def test_turn_total_floors_and_ignores_empty_turns():
    assert turn_total(300, 2) == 450
    assert turn_total(100, 0) == 0
    assert turn_total(333, 2) == 499


def test_turn_without_matches_spends_one_move_only():
    world, bus, tree_system, turn_system, level_system = setup_world()
    level_system.start_level(0)
    scenario_tree(world)
    # After rotating the root no color forms a connected group of three.
    paint(world, ["red", "blue", "green", "red", "blue", "green", "red"])
    finalized = {}
    bus.subscribe(EVENT_TURN_FINALIZED, lambda sender, **payload: finalized.update(payload))

    bus.emit(EVENT_NODE_CLICK, node_id=0)

    level = get_level_state(world)
    assert finalized["score_delta"] == 0
    assert finalized["match_count"] == 0
    assert finalized["node_id"] == 0
    assert finalized["cascade_depth"] == 0
    assert level.score == 0
    assert level.moves_left == 4
    assert get_game_state(world).processing is False
    assert get_or_create_turn_state(world).active is False


def test_finalize_applies_multiplier_once():
    world, bus, tree_system, turn_system, level_system = setup_world()
    level_system.start_level(0)
    turn_system.start_turn(node_id=A)
    for points in (100, 200, 100):
        bus.emit(EVENT_MATCH_CLEARED, node_ids=[], color="red", size=3, points=points, depth=1)
    state = get_or_create_turn_state(world)
    assert state.base_score == 400
    assert state.match_count == 3
    assert turn_system.finalize_turn() == 800
    level = get_level_state(world)
    assert level.score == 800
    assert level.moves_left == 4


def test_matches_outside_turn_are_not_scored():
    world, bus, tree_system, turn_system, level_system = setup_world()
    level_system.start_level(0)
    bus.emit(EVENT_MATCH_CLEARED, node_ids=[], color="red", size=3, points=100, depth=1)
    assert get_or_create_turn_state(world).base_score == 0


@pytest.mark.parametrize("base_score,expected", [(1, LevelStatus.WON), (0, LevelStatus.LOST)])
def test_last_move_boundary_prefers_score(base_score, expected):
    world, bus, tree_system, turn_system, level_system = setup_world(
        level_config=small_level_config(turn_limit=1, target=500),
    )
    level_system.start_level(0)
    level = get_level_state(world)
    level.score = level.target_score - 1
    turn_system.start_turn()
    state = get_or_create_turn_state(world)
    state.base_score = base_score
    state.match_count = 1 if base_score else 0
    turn_system.finalize_turn()
    assert level.moves_left == 0
    assert level.status == expected
