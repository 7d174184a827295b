"""Per-level progress resource."""
from dataclasses import dataclass
from enum import Enum, auto


class LevelStatus(Enum):
    PLAYING = auto()
    WON = auto()
    LOST = auto()


@dataclass(slots=True)
class LevelState:
    """Singleton component replaced every time a level starts."""
    index: int
    moves_left: int
    target_score: int
    score: int = 0
    status: LevelStatus = LevelStatus.PLAYING
