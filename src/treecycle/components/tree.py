from dataclasses import dataclass, field
from typing import List

@dataclass(slots=True)
class Tree:
    """Perfect K-ary tree of node entities, one per level.

    ``entities`` is the node arena: index = node id, value = entity id.
    ``levels`` lists node ids per depth in breadth-first order. The root is node 0.
    """
    degree: int
    depth: int
    entities: List[int] = field(default_factory=list)
    levels: List[List[int]] = field(default_factory=list)

    @property
    def root_id(self) -> int:
        return 0

    def node_count(self) -> int:
        return len(self.entities)

    def has_node(self, node_id) -> bool:
        return isinstance(node_id, int) and not isinstance(node_id, bool) and 0 <= node_id < len(self.entities)
