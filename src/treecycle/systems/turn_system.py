from esper import World
from treecycle.events.bus import (
    EventBus,
    EVENT_CASCADE_COMPLETE,
    EVENT_COMBO_CHANGED,
    EVENT_MATCH_CLEARED,
    EVENT_TURN_ACTION_STARTED,
    EVENT_TURN_FINALIZED,
)
from treecycle.components.turn_state import TurnState
from treecycle.systems.scoring import combo_multiplier, turn_total
from treecycle.utils.game_state import get_game_state, get_level_state, get_or_create_turn_state

class TurnSystem:
    """Scores one player action across all of its cascades.

    Flow:
      - EVENT_TURN_ACTION_STARTED resets the accumulator.
      - Every EVENT_MATCH_CLEARED adds the group's points and counts one match.
      - EVENT_CASCADE_COMPLETE applies the combo multiplier, banks the total and
        spends exactly one move, however many cascade rounds ran.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TURN_ACTION_STARTED, self.on_turn_action_started)
        self.event_bus.subscribe(EVENT_MATCH_CLEARED, self.on_match_cleared)
        self.event_bus.subscribe(EVENT_CASCADE_COMPLETE, self.on_cascade_complete)
        get_or_create_turn_state(self.world)

    def _turn_state(self) -> TurnState:
        return get_or_create_turn_state(self.world)

    def on_turn_action_started(self, sender, **payload):
        self.start_turn(payload.get("node_id"))

    def on_match_cleared(self, sender, **payload):
        state = self._turn_state()
        if not state.active:
            return
        state.base_score += payload.get("points", 0)
        state.match_count += 1
        if state.match_count > 1:
            self.event_bus.emit(
                EVENT_COMBO_CHANGED,
                match_count=state.match_count,
                multiplier=combo_multiplier(state.match_count),
            )

    def on_cascade_complete(self, sender, **payload):
        if not self._turn_state().active:
            return
        self.finalize_turn()

    def start_turn(self, node_id: int | None = None) -> None:
        self._turn_state().reset(active=True, node_id=node_id)

    def finalize_turn(self) -> int:
        """Bank the action's score, spend one move and release the input lock."""
        state = self._turn_state()
        level = get_level_state(self.world)
        multiplier = combo_multiplier(state.match_count)
        total = turn_total(state.base_score, state.match_count)
        level.score += total
        level.moves_left -= 1
        state.active = False
        get_game_state(self.world).processing = False
        self.event_bus.emit(
            EVENT_TURN_FINALIZED,
            score_delta=total,
            score=level.score,
            moves_left=level.moves_left,
            match_count=state.match_count,
            multiplier=multiplier,
            base_score=state.base_score,
            node_id=state.node_id,
            cascade_depth=state.cascade_depth,
        )
        return total
