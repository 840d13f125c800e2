"""
Kanban board derived from the node list.

The board is never stored. It is rebuilt from scratch whenever the graph
changes, in one pass over the nodes in display order.

Only four statuses have a column. Nodes that are `published` or `draft`
stay in the graph but appear in no column; callers must not assume every
node is on the board.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, TypeVar

from .schema import KnowledgeNode, NodeStatus

T = TypeVar("T")

# Column id → title, in display order
COLUMN_TITLES = {
    NodeStatus.IDEA.value: "Ideas",
    NodeStatus.BACKLOG.value: "Backlog",
    NodeStatus.IN_PROGRESS.value: "In Progress",
    NodeStatus.DONE.value: "Done",
}
COLUMN_IDS = tuple(COLUMN_TITLES)


@dataclass
class KanbanColumn:
    """A status bucket. items are the graph's own node objects, not copies."""
    id: str
    title: str
    items: List[KnowledgeNode] = field(default_factory=list)

    def item_ids(self) -> List[str]:
        return [n.id for n in self.items]

    def index_of(self, node_id: str) -> int:
        for i, node in enumerate(self.items):
            if node.id == node_id:
                return i
        return -1


def is_column_id(value: str) -> bool:
    return value in COLUMN_TITLES


def build_columns(nodes: Iterable[KnowledgeNode]) -> Dict[str, KanbanColumn]:
    """Group nodes into the four board columns, preserving node order."""
    columns = {
        col_id: KanbanColumn(id=col_id, title=title)
        for col_id, title in COLUMN_TITLES.items()
    }
    for node in nodes:
        column = columns.get(node.status.value)
        if column is not None:
            column.items.append(node)
    return columns


def column_of(columns: Dict[str, KanbanColumn], node_id: str) -> Optional[str]:
    """Id of the column holding node_id, or None if it is not on the board."""
    for col_id, column in columns.items():
        if column.index_of(node_id) != -1:
            return col_id
    return None


def array_move(items: List[T], old_index: int, new_index: int) -> List[T]:
    """
    Return a new list with the item at old_index moved to new_index.

    Items between the two positions shift by one; everything else keeps
    its place.
    """
    result = list(items)
    result.insert(new_index, result.pop(old_index))
    return result
