import sys, os

# Ensure src is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, 'src')
if SRC not in sys.path:
    sys.path.insert(0, SRC)
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tests.helpers import ScriptedRandom, paint, node_colors

__all__ = [
    "ScriptedRandom",
    "paint",
    "node_colors",
]
