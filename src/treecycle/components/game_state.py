"""Game state resource shared by the input and level systems."""
from dataclasses import dataclass


@dataclass
class GameState:
    """Singleton component storing session-wide flags.

    processing: set from the start of a player action until its turn is finalized;
    rotations requested meanwhile are ignored.
    campaign_complete: the most recent level start wrapped past the last level.
    """
    processing: bool = False
    campaign_complete: bool = False
    campaign_completions: int = 0
