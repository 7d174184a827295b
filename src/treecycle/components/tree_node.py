from dataclasses import dataclass, field
from typing import List, Optional

@dataclass(slots=True)
class TreeNode:
    """Static structure of one node. Never mutated after the tree is built."""
    node_id: int
    depth: int
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children
