import random
from typing import Dict, Tuple

from esper import World

from treecycle.components.game_state import GameState
from treecycle.components.level_config import LevelConfig
from treecycle.components.palette import Palette
from treecycle.components.turn_state import TurnState
from treecycle.constants import DEFAULT_PALETTE


def create_world(
    *,
    palette: Dict[str, Tuple[int, int, int]] | None = None,
    level_config: LevelConfig | None = None,
    rng: random.Random | None = None,
) -> World:
    """Create a world holding the singleton resources of a game session.

    The tree and the level state are created later, when a level starts.
    """
    world = World()
    setattr(world, "random", rng or random.Random())

    # Global flags and the per-action accumulator.
    state_entity = world.create_entity()
    world.add_component(state_entity, GameState())
    world.add_component(state_entity, TurnState())

    # Static configuration
    world.create_entity(
        Palette(colors=dict(palette) if palette is not None else dict(DEFAULT_PALETTE)),
        level_config if level_config is not None else LevelConfig(),
    )
    return world
