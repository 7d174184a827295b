from dataclasses import dataclass, field
from typing import List

from treecycle.constants import (
    BASE_TREE_DEPTH,
    DEEP_FROM_LEVEL,
    DEEP_TREE_DEPTH,
    SANITIZE_MAX_ATTEMPTS,
    SCORE_TARGETS,
    TREE_DEGREE,
    TURN_LIMITS,
)


@dataclass(slots=True)
class LevelConfig:
    """Static level table: move budgets, score targets and the tree depth rule."""

    turn_limits: List[int] = field(default_factory=lambda: list(TURN_LIMITS))
    score_targets: List[int] = field(default_factory=lambda: list(SCORE_TARGETS))
    degree: int = TREE_DEGREE
    base_depth: int = BASE_TREE_DEPTH
    deep_depth: int = DEEP_TREE_DEPTH
    deep_from_level: int = DEEP_FROM_LEVEL
    sanitize_attempts: int = SANITIZE_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        self.turn_limits = list(self.turn_limits)
        self.score_targets = list(self.score_targets)
        if not self.turn_limits:
            raise ValueError("LevelConfig requires at least one level")
        if len(self.turn_limits) != len(self.score_targets):
            raise ValueError(
                f"turn_limits ({len(self.turn_limits)}) and score_targets "
                f"({len(self.score_targets)}) must have the same length"
            )
        if self.degree < 1:
            raise ValueError(f"degree must be >= 1, got {self.degree}")
        if self.base_depth < 0 or self.deep_depth < 0:
            raise ValueError("tree depths must be >= 0")

    def __len__(self) -> int:
        return len(self.turn_limits)

    def depth_for(self, index: int) -> int:
        if index >= self.deep_from_level:
            return self.deep_depth
        return self.base_depth
