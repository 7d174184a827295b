import logging

from esper import World

from treecycle.components.level_state import LevelStatus
from treecycle.events.bus import (
    EventBus,
    EVENT_NODE_CLICK,
    EVENT_ROTATION_APPLIED,
    EVENT_ROTATION_REJECTED,
    EVENT_TURN_ACTION_STARTED,
)
from treecycle.systems.tree_ops import InvalidMove, find_tree, get_color, get_node, rotate_node, settle_tree
from treecycle.utils.game_state import find_level_state, get_game_state, get_or_create_turn_state

logger = logging.getLogger(__name__)

REJECT_BUSY = "busy"
REJECT_INVALID_MOVE = "invalid_move"
REJECT_LEVEL_OVER = "level_over"


class TreeSystem:
    """Turns node clicks into rotations.

    A click is accepted only while the level is being played, no action is in
    flight and the node has children. Accepted clicks open a turn, rotate the
    node with its children and hand the board over to match resolution via
    EVENT_ROTATION_APPLIED.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_NODE_CLICK, self.on_node_click)

    def on_node_click(self, sender, **kwargs):
        node_id = kwargs.get('node_id')
        state = get_game_state(self.world)
        if state.processing:
            # Input during a cascade is dropped, never queued.
            self._reject(node_id, REJECT_BUSY)
            return
        level = find_level_state(self.world)
        if level is None or level.status != LevelStatus.PLAYING or level.moves_left <= 0:
            self._reject(node_id, REJECT_LEVEL_OVER)
            return
        self.rotate(node_id)

    def rotate(self, node_id: int) -> bool:
        try:
            self._check_rotatable(node_id)
        except InvalidMove:
            self._reject(node_id, REJECT_INVALID_MOVE)
            return False
        state = get_game_state(self.world)
        state.processing = True
        try:
            self.event_bus.emit(EVENT_TURN_ACTION_STARTED, node_id=node_id)
            ring = rotate_node(self.world, node_id)
            self.event_bus.emit(
                EVENT_ROTATION_APPLIED,
                node_id=node_id,
                node_ids=ring,
                colors=[get_color(self.world, member) for member in ring],
            )
        finally:
            # A finalized turn has already released the lock.
            if state.processing:
                self._abort_action(node_id)
        return True

    def _abort_action(self, node_id) -> None:
        """Unlock input after an action that raised before its turn was finalized.

        Cleared slots are refilled so the tree stays full; the action scores
        nothing and spends no move.
        """
        logger.warning("Action on node %r aborted before its turn was finalized", node_id)
        if find_tree(self.world) is not None:
            settle_tree(self.world)
        get_or_create_turn_state(self.world).reset()
        get_game_state(self.world).processing = False

    def _check_rotatable(self, node_id: int) -> None:
        tree = find_tree(self.world)
        if tree is None or not tree.has_node(node_id):
            raise InvalidMove(node_id, "unknown node")
        if get_node(self.world, node_id).is_leaf:
            raise InvalidMove(node_id, "leaf nodes have no children to cycle")

    def _reject(self, node_id, reason: str) -> None:
        logger.debug("Rotation of node %r rejected: %s", node_id, reason)
        self.event_bus.emit(EVENT_ROTATION_REJECTED, node_id=node_id, reason=reason)
