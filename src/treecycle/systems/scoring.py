import math

from treecycle.constants import COMBO_STEP, MATCH_MIN_SIZE, MAX_COMBO_MULTIPLIER, POINTS_PER_NODE


def match_points(size: int) -> int:
    """Points for clearing one group: 100 per node beyond the first two."""
    return (size - (MATCH_MIN_SIZE - 1)) * POINTS_PER_NODE


def combo_multiplier(match_count: int) -> float:
    """Multiplier for the number of groups cleared by one action, capped at 4x."""
    if match_count <= 1:
        return 1.0
    return min(MAX_COMBO_MULTIPLIER, 1.0 + (match_count - 1) * COMBO_STEP)


def turn_total(base_score: int, match_count: int) -> int:
    if match_count <= 0:
        return 0
    return math.floor(base_score * combo_multiplier(match_count))
