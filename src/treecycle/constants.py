TREE_DEGREE = 2

# Levels below DEEP_FROM_LEVEL use the medium tree (15 nodes), later ones the full tree (31 nodes).
BASE_TREE_DEPTH = 3
DEEP_TREE_DEPTH = 4
DEEP_FROM_LEVEL = 10

# Two parallel tables indexed by level.
TURN_LIMITS = [9, 9, 9, 9, 10, 10, 10, 10, 11, 11, 13, 13, 13, 13, 14, 14, 14, 14, 15, 15]
SCORE_TARGETS = [
    700, 800, 900, 1000, 1150, 1300, 1450, 1600, 1800, 2000,
    2600, 3000, 3500, 4100, 4800, 5600, 6500, 7500, 8700, 10000,
]

DEFAULT_PALETTE = {
    'red':    (255, 82, 82),    # #FF5252
    'blue':   (68, 138, 255),   # #448AFF
    'green':  (0, 230, 118),    # #00E676
    'yellow': (255, 215, 64),   # #FFD740
}

# Scoring
MATCH_MIN_SIZE = 3
POINTS_PER_NODE = 100
COMBO_STEP = 0.5
MAX_COMBO_MULTIPLIER = 4.0

# Best-effort re-roll cap for the freshly built tree; matches may survive it.
SANITIZE_MAX_ATTEMPTS = 50
