from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence

from esper import World

from treecycle.components.level_config import LevelConfig
from treecycle.events.bus import EventBus
from treecycle.systems.match_resolution import MatchResolutionSystem
from treecycle.systems.tree import TreeSystem
from treecycle.systems.tree_ops import build_tree, color_map, set_color
from treecycle.systems.turn_system import TurnSystem
from treecycle.systems.level_system import LevelSystem
from treecycle.world import create_world

TWO_COLORS = {
    "red": (255, 82, 82),
    "blue": (68, 138, 255),
}

# Node ids of the depth-2 binary tree used across the tests.
R, A, B, A0, A1, B0, B1 = range(7)
SCENARIO_COLORS = ["red", "red", "blue", "red", "blue", "blue", "blue"]


class ScriptedRandom(random.Random):
    """Random source whose ``choice`` returns scripted values first.

    Once the script runs out it falls back to the seeded generator, so board
    construction stays reproducible while cascade refills can be dictated.
    """

    def __init__(self, *, script: Iterable[str] = (), seed: int = 0) -> None:
        super().__init__(seed)
        self.script: List[str] = list(script)

    def choice(self, seq: Sequence):
        if self.script:
            value = self.script.pop(0)
            assert value in seq, f"scripted value {value!r} not in {list(seq)!r}"
            return value
        return super().choice(seq)


def paint(world: World, colors: Sequence[Optional[str]]) -> None:
    """Assign colors by node id."""
    for node_id, color in enumerate(colors):
        set_color(world, node_id, color)


def node_colors(world: World) -> List[Optional[str]]:
    mapping = color_map(world)
    return [mapping[node_id] for node_id in sorted(mapping)]


def small_level_config(turn_limit: int = 5, target: int = 1000, depth: int = 2) -> LevelConfig:
    return LevelConfig(turn_limits=[turn_limit], score_targets=[target], base_depth=depth, deep_depth=depth)


def setup_world(
    *,
    palette=None,
    rng: random.Random | None = None,
    level_config: LevelConfig | None = None,
):
    """World plus every game system, without a level started."""
    bus = EventBus()
    world = create_world(
        palette=palette if palette is not None else TWO_COLORS,
        level_config=level_config if level_config is not None else small_level_config(),
        rng=rng or ScriptedRandom(),
    )
    tree_system = TreeSystem(world, bus)
    MatchResolutionSystem(world, bus)
    turn_system = TurnSystem(world, bus)
    level_system = LevelSystem(world, bus)
    return world, bus, tree_system, turn_system, level_system


def scenario_tree(world: World) -> None:
    build_tree(world, 2, 2)
    paint(world, SCENARIO_COLORS)
