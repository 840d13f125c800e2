"""Shared test fixtures for the cortex graph tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repo root (cortex package, cortex_server module) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from cortex.actor import PersistedGraphActor
from cortex.exceptions import SyncError
from cortex.graph_store import GraphStore
from cortex.schema import KnowledgeGraph, KnowledgeLink, KnowledgeNode, NodeStatus
from cortex.storage import ActorStorage


class StepClock:
    """Deterministic epoch-ms clock advancing one second per reading."""

    def __init__(self, start_ms: int = 1_709_596_800_000):  # 2024-03-05T00:00:00Z
        self.now = start_ms

    def __call__(self) -> int:
        value = self.now
        self.now += 1000
        return value


class ActorBackedClient:
    """In-process stand-in for SyncClient that talks straight to an actor."""

    def __init__(self, actor: PersistedGraphActor):
        self.actor = actor
        self.pushed = []
        self.fail_writes = False

    def fetch_graph(self) -> KnowledgeGraph:
        return self.actor.get_graph()

    def replace_graph(self, graph) -> None:
        payload = graph.to_dict() if isinstance(graph, KnowledgeGraph) else graph
        if self.fail_writes:
            raise SyncError("POST /api/graph returned HTTP 503")
        self.pushed.append(payload)
        self.actor.replace_graph(KnowledgeGraph.from_dict(payload))

    def reset_graph(self) -> KnowledgeGraph:
        return self.actor.reset_graph()


class FailingClient:
    """Every call fails the way an unreachable backend does."""

    def fetch_graph(self):
        raise SyncError("backend unavailable")

    def replace_graph(self, graph):
        raise SyncError("backend unavailable")

    def reset_graph(self):
        raise SyncError("backend unavailable")


def make_node(node_id: str, status: str = "idea", name: str = None) -> KnowledgeNode:
    return KnowledgeNode(id=node_id, name=name or f"Node {node_id}", status=NodeStatus(status))


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "cortex.db")


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def actor(db_path, clock) -> PersistedGraphActor:
    return PersistedGraphActor(ActorStorage("tenant-1", db_path), clock=clock)


@pytest.fixture
def client(actor) -> ActorBackedClient:
    return ActorBackedClient(actor)


@pytest.fixture
def store(client) -> GraphStore:
    return GraphStore(client)


@pytest.fixture
def abc_graph() -> KnowledgeGraph:
    """A (idea), B (backlog), C (idea) with two links."""
    return KnowledgeGraph(
        nodes=[make_node("A", "idea"), make_node("B", "backlog"), make_node("C", "idea")],
        links=[KnowledgeLink("A", "B"), KnowledgeLink("B", "C")],
    )
