from __future__ import annotations

from esper import World

from treecycle.components.game_state import GameState
from treecycle.components.level_state import LevelState, LevelStatus
from treecycle.components.turn_state import TurnState
from treecycle.events.bus import EVENT_LEVEL_STATUS_CHANGED, EventBus


def get_game_state(world: World) -> GameState:
    """Return the shared GameState component, creating it if absent."""
    for _, state in world.get_component(GameState):
        return state
    state = GameState()
    world.create_entity(state)
    return state


def get_or_create_turn_state(world: World) -> TurnState:
    """Return the shared TurnState component, creating it if absent."""
    existing = list(world.get_component(TurnState))
    if existing:
        return existing[0][1]
    world.create_entity(TurnState())
    return list(world.get_component(TurnState))[0][1]


def find_level_state(world: World) -> LevelState | None:
    for _, level in world.get_component(LevelState):
        return level
    return None


def get_level_state(world: World) -> LevelState:
    level = find_level_state(world)
    if level is None:
        raise RuntimeError("No level in progress; start a level first")
    return level


def replace_level_state(world: World, level: LevelState) -> LevelState:
    for entity, _ in list(world.get_component(LevelState)):
        world.delete_entity(entity, immediate=True)
    world.create_entity(level)
    return level


def set_level_status(world: World, event_bus: EventBus, status: LevelStatus) -> bool:
    """Update the level status and emit a change event when it differs."""

    level = get_level_state(world)
    previous = level.status
    if previous == status:
        return False
    level.status = status
    event_bus.emit(
        EVENT_LEVEL_STATUS_CHANGED,
        index=level.index,
        previous=previous,
        status=status,
    )
    return True
