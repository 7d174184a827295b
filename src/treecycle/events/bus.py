from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_NODE_CLICK = "node_click"                        # payload: node_id=int


# ============================================================================
# ROTATION
# ============================================================================
EVENT_ROTATION_APPLIED = "rotation_applied"            # payload: node_id=int, node_ids=[int,...], colors=[str|None,...]
EVENT_ROTATION_REJECTED = "rotation_rejected"          # payload: node_id=Any, reason=str ("busy"|"invalid_move"|"level_over")


# ============================================================================
# MATCHES & CASCADE
# ============================================================================
EVENT_MATCH_FOUND = "match_found"                      # payload: groups=[[int,...],...], depth=int
EVENT_MATCH_CLEARED = "match_cleared"                  # payload: node_ids=[int,...], color=str, size=int, points=int, depth=int
EVENT_GRAVITY_STEP = "gravity_step"                    # payload: moves=[GravityMove,...], step=int, depth=int
EVENT_ROOT_REFILLED = "root_refilled"                  # payload: node_id=int, color=str, depth=int
EVENT_CASCADE_STEP = "cascade_step"                    # payload: depth=int, node_ids=[int,...]
EVENT_CASCADE_COMPLETE = "cascade_complete"            # payload: depth=int


# ============================================================================
# TURN SYSTEM
# ============================================================================
EVENT_TURN_ACTION_STARTED = "turn_action_started"      # payload: node_id=int
EVENT_COMBO_CHANGED = "combo_changed"                  # payload: match_count=int, multiplier=float
EVENT_TURN_FINALIZED = "turn_finalized"                # payload: score_delta=int, score=int, moves_left=int, match_count=int, multiplier=float, base_score=int, node_id=int, cascade_depth=int


# ============================================================================
# LEVEL FLOW
# ============================================================================
EVENT_LEVEL_START_REQUEST = "level_start_request"      # payload: index=int
EVENT_LEVEL_CONTINUE_REQUEST = "level_continue_request"  # payload: None
EVENT_LEVEL_STARTED = "level_started"                  # payload: index=int, depth=int, moves_left=int, target_score=int, campaign_complete=bool
EVENT_BOARD_SANITIZED = "board_sanitized"              # payload: attempts=int, residual=int
EVENT_LEVEL_STATUS_CHANGED = "level_status_changed"    # payload: index=int, previous=LevelStatus, status=LevelStatus
EVENT_LEVEL_WON = "level_won"                          # payload: index=int, score=int, target_score=int, moves_left=int
EVENT_LEVEL_LOST = "level_lost"                        # payload: index=int, score=int, target_score=int
EVENT_CAMPAIGN_COMPLETE = "campaign_complete"          # payload: requested_index=int, completions=int
