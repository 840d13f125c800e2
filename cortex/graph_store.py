"""
Client-side reactive graph cache.

GraphStore holds the last-known graph and the board derived from it. All
bookkeeping is synchronous; only the network call at the end of an
operation is awaited, so other callers on the same event loop keep
running while it is in flight.

State lifecycle:
  UNINITIALIZED → LOADING → READY
                          ↘ ERROR
  READY → LOADING again only on fetch_graph() or reset_graph().

Mutations are optimistic: the local graph changes first, then the whole
graph is pushed. A failed push is logged and counted but neither rolled
back nor surfaced as `error`; local and server state may diverge until
the next successful fetch or mutation.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .board import KanbanColumn, array_move, build_columns, is_column_id
from .exceptions import SyncError
from .schema import KnowledgeGraph, KnowledgeLink, KnowledgeNode, NodeStatus
from .stats import graph_stats
from .validation import find_dangling_links

logger = logging.getLogger(__name__)


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class GraphStore:
    """Single source of truth for the UI."""

    def __init__(self, client):
        """client: anything with fetch_graph / replace_graph / reset_graph (see SyncClient)."""
        self.client = client
        self.graph = KnowledgeGraph()
        self.columns: Dict[str, KanbanColumn] = build_columns([])
        self.state = StoreState.UNINITIALIZED
        self.error: Optional[str] = None
        self.failed_writes = 0
        self.subscribers: Dict[str, list] = {}  # event_type -> list of callbacks

    @property
    def is_loading(self) -> bool:
        return self.state is StoreState.LOADING

    # ──────────────────────────────────────────
    # Subscriptions
    # ──────────────────────────────────────────

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for 'graph_changed' or 'state_changed'."""
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        self.subscribers[event_type].append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}", exc_info=True)

    # ──────────────────────────────────────────
    # Internal transitions
    # ──────────────────────────────────────────

    def _set_state(self, state: StoreState, error: Optional[str] = None) -> None:
        self.state = state
        self.error = error
        self._emit("state_changed", state=state, error=error)

    def _set_graph(self, graph: KnowledgeGraph) -> None:
        """Install a graph and rebuild the board from it."""
        self.graph = graph
        self.columns = build_columns(graph.nodes)
        self._emit("graph_changed", graph=graph, columns=self.columns)

    def _commit(self, graph: KnowledgeGraph) -> Dict[str, Any]:
        """Apply a local change and snapshot the wire payload to push."""
        self._set_graph(graph)
        return graph.to_dict()

    async def _push(self, payload: Dict[str, Any]) -> bool:
        try:
            await asyncio.to_thread(self.client.replace_graph, payload)
        except SyncError as e:
            self.failed_writes += 1
            logger.warning(f"Failed to persist graph: {e}")
            return False
        return True

    # ──────────────────────────────────────────
    # Load / reset
    # ──────────────────────────────────────────

    async def fetch_graph(self) -> None:
        """Load the canonical graph. On failure the previous graph is kept."""
        self._set_state(StoreState.LOADING)
        try:
            graph = await asyncio.to_thread(self.client.fetch_graph)
        except SyncError as e:
            logger.warning(f"Failed to fetch graph: {e}")
            self._set_state(StoreState.ERROR, str(e))
            return
        self._set_graph(graph)
        self._set_state(StoreState.READY)

    async def reset_graph(self) -> None:
        """Reseed on the server and adopt the result."""
        self._set_state(StoreState.LOADING)
        try:
            graph = await asyncio.to_thread(self.client.reset_graph)
        except SyncError as e:
            logger.warning(f"Failed to reset graph: {e}")
            self._set_state(StoreState.ERROR, str(e))
            return
        self._set_graph(graph)
        self._set_state(StoreState.READY)
        logger.info(f"Graph reset: {len(graph.nodes)} nodes")

    # ──────────────────────────────────────────
    # Mutations (optimistic, full-graph push)
    # ──────────────────────────────────────────

    async def update_graph(self, graph: KnowledgeGraph) -> None:
        """Replace the whole local graph and push it."""
        await self._push(self._commit(graph))

    async def create_node(self, node: KnowledgeNode) -> None:
        if self.graph.index_of(node.id) != -1:
            logger.debug(f"create_node: id '{node.id}' already exists, ignoring")
            return
        nodes = self.graph.nodes + [node]
        await self._push(self._commit(KnowledgeGraph(nodes=nodes, links=self.graph.links)))

    async def update_node(self, node: KnowledgeNode) -> None:
        """Replace the node with the same id, keeping its position."""
        i = self.graph.index_of(node.id)
        if i == -1:
            logger.debug(f"update_node: unknown id '{node.id}', ignoring")
            return
        nodes = list(self.graph.nodes)
        nodes[i] = node
        await self._push(self._commit(KnowledgeGraph(nodes=nodes, links=self.graph.links)))

    async def delete_node(self, node_id: str) -> None:
        """Remove a node and every link touching it."""
        nodes = [n for n in self.graph.nodes if n.id != node_id]
        links = [l for l in self.graph.links if l.source != node_id and l.target != node_id]
        if len(nodes) == len(self.graph.nodes) and len(links) == len(self.graph.links):
            return
        logger.debug(
            f"delete_node '{node_id}': dropped {len(self.graph.links) - len(links)} links"
        )
        await self._push(self._commit(KnowledgeGraph(nodes=nodes, links=links)))

    async def create_link(self, link: KnowledgeLink) -> None:
        links = self.graph.links + [link]
        await self._push(self._commit(KnowledgeGraph(nodes=self.graph.nodes, links=links)))

    async def delete_link(self, source: str, target: str) -> None:
        """Remove the first link from source to target."""
        for i, link in enumerate(self.graph.links):
            if link.source == source and link.target == target:
                links = self.graph.links[:i] + self.graph.links[i + 1:]
                await self._push(self._commit(KnowledgeGraph(nodes=self.graph.nodes, links=links)))
                return

    # ──────────────────────────────────────────
    # Board operations
    # ──────────────────────────────────────────

    async def move_task(self, active_id: str, over_id: Optional[str],
                        target_column_id: Union[str, NodeStatus]) -> None:
        """
        Move a node to another column.

        The node's status becomes target_column_id. When over_id names
        another node, the active node also takes over_id's position in
        the flat node list; otherwise node order is untouched.
        """
        if isinstance(target_column_id, NodeStatus):
            target_column_id = target_column_id.value
        if not is_column_id(target_column_id):
            logger.debug(f"move_task: '{target_column_id}' is not a board column, ignoring")
            return

        nodes = list(self.graph.nodes)
        active_index = self.graph.index_of(active_id)
        if active_index == -1:
            return

        nodes[active_index].status = NodeStatus(target_column_id)

        if over_id:
            over_index = self.graph.index_of(over_id)
            if over_index != -1:
                nodes = array_move(nodes, active_index, over_index)

        await self._push(self._commit(KnowledgeGraph(nodes=nodes, links=self.graph.links)))

    async def reorder_task(self, active_id: str, over_id: str,
                           column_id: Union[str, NodeStatus]) -> None:
        """
        Move a node within one column.

        The column's items are reordered and the node list is rebuilt as
        (nodes outside the column) + (reordered column items). No-op unless
        both ids are in the column.
        """
        if isinstance(column_id, NodeStatus):
            column_id = column_id.value
        column = self.columns.get(column_id)
        if column is None:
            return
        old_index = column.index_of(active_id)
        new_index = column.index_of(over_id)
        if old_index == -1 or new_index == -1:
            return

        reordered = array_move(column.items, old_index, new_index)
        others = [n for n in self.graph.nodes if n.status.value != column_id]
        await self._push(self._commit(KnowledgeGraph(nodes=others + reordered, links=self.graph.links)))

    # ──────────────────────────────────────────
    # Read-only helpers
    # ──────────────────────────────────────────

    def validate_links(self) -> List[KnowledgeLink]:
        """Links whose endpoints are missing. Reports only; nothing is removed."""
        return find_dangling_links(self.graph)

    def stats(self) -> Dict[str, Any]:
        return graph_stats(self.graph)
