from dataclasses import dataclass
from typing import Optional

@dataclass(slots=True)
class NodeColor:
    """Per-node color assignment.

    color: palette color name, or None when the slot is empty (cleared by a match).
    """
    color: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.color is None
