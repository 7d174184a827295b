from dataclasses import dataclass, field
from typing import Dict, List, Tuple

@dataclass(slots=True)
class Palette:
    """Ordered color definitions stored on a single entity.

    Node colors hold only the name; renderers look up the RGB triple here.
    """
    colors: Dict[str, Tuple[int, int, int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.colors:
            raise ValueError("Palette requires at least one color")
        self.colors = dict(self.colors)

    def names(self) -> List[str]:
        return list(self.colors.keys())
