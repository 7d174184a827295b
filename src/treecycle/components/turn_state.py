from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class TurnState:
    """Accumulates score for one player action, including every cascade it triggers."""

    active: bool = False
    base_score: int = 0
    match_count: int = 0
    node_id: Optional[int] = None
    cascade_depth: int = 0

    def reset(self, *, active: bool = False, node_id: Optional[int] = None) -> None:
        self.active = active
        self.base_score = 0
        self.match_count = 0
        self.node_id = node_id
        self.cascade_depth = 0
