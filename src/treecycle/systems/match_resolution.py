import logging
from typing import List

from esper import World
from treecycle.events.bus import (EventBus, EVENT_ROTATION_APPLIED, EVENT_MATCH_FOUND, EVENT_MATCH_CLEARED,
                                  EVENT_GRAVITY_STEP, EVENT_ROOT_REFILLED, EVENT_CASCADE_STEP,
                                  EVENT_CASCADE_COMPLETE)
from treecycle.systems.scoring import match_points
from treecycle.systems.tree_ops import clear_nodes, find_matches, get_color, get_tree, settle_tree
from treecycle.utils.game_state import get_or_create_turn_state

logger = logging.getLogger(__name__)


class MatchResolutionSystem:
    """Resolves the board after a rotation until no match is left.

    Each round clears every match found, lets the remaining colors fall to a
    fixed point (refilling the root) and detects again. The whole cascade runs
    synchronously; every discrete board change is published as an event so an
    animation layer can replay it at its own pace.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_ROTATION_APPLIED, self.on_rotation_applied)

    def on_rotation_applied(self, sender, **kwargs):
        self.resolve()

    def resolve(self) -> int:
        """Run the cascade to quiescence and return the number of clearing rounds."""
        state = get_or_create_turn_state(self.world)
        depth = 0
        while True:
            matches = find_matches(self.world)
            if not matches:
                break
            depth += 1
            state.cascade_depth = depth
            self._clear_matches(matches, depth)
            self._apply_gravity(depth)
        if depth > 1:
            logger.debug("Cascade settled after %d rounds", depth)
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=depth)
        return depth

    def _clear_matches(self, matches: List[List[int]], depth: int) -> None:
        flat = sorted({node_id for group in matches for node_id in group})
        self.event_bus.emit(EVENT_CASCADE_STEP, depth=depth, node_ids=flat)
        self.event_bus.emit(EVENT_MATCH_FOUND, groups=[list(group) for group in matches], depth=depth)
        for group in matches:
            color = get_color(self.world, group[0])
            size = len(group)
            clear_nodes(self.world, group)
            self.event_bus.emit(
                EVENT_MATCH_CLEARED,
                node_ids=list(group),
                color=color,
                size=size,
                points=match_points(size),
                depth=depth,
            )

    def _apply_gravity(self, depth: int) -> None:
        root_id = get_tree(self.world).root_id
        for index, step in enumerate(settle_tree(self.world), start=1):
            if step.moves:
                self.event_bus.emit(EVENT_GRAVITY_STEP, moves=step.moves, step=index, depth=depth)
            if step.refill is not None:
                self.event_bus.emit(EVENT_ROOT_REFILLED, node_id=root_id, color=step.refill, depth=depth)
