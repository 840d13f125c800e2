"""
Tests for the graph schema and default seed data.
"""
import importlib
from datetime import datetime, timezone

import pytest

from cortex.schema import (
    KnowledgeGraph,
    KnowledgeLink,
    KnowledgeNode,
    NodeStatus,
    NodeType,
    Session,
    parse_timestamp,
)
from cortex.seed import CONTENT_ITEMS, TOPIC_NODES, TOPIC_LINKS, seed

seed_module = importlib.import_module("cortex.seed")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Schema Tests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_node_defaults():
    node = KnowledgeNode(id="n1", name="Note")
    assert node.type == NodeType.ARTICLE
    assert node.status == NodeStatus.IDEA
    assert node.keywords == []
    assert node.content is None
    assert node.val == 5


def test_node_wire_shape():
    """Wire keys are camelCase and content is omitted when absent"""
    node = KnowledgeNode(
        id="n1",
        name="Note",
        type=NodeType.GUIDE,
        status=NodeStatus.BACKLOG,
        created_at=datetime(2024, 1, 5, tzinfo=timezone.utc),
        keywords=["a", "b"],
        val=8,
    )
    data = node.to_dict()
    assert data == {
        "id": "n1",
        "name": "Note",
        "type": "guide",
        "status": "backlog",
        "createdAt": "2024-01-05T00:00:00.000Z",
        "keywords": ["a", "b"],
        "val": 8,
    }

    node.content = "body"
    assert node.to_dict()["content"] == "body"


def test_node_from_dict_accepts_js_timestamps():
    node = KnowledgeNode.from_dict({
        "id": "x",
        "name": "X",
        "type": "code",
        "status": "done",
        "createdAt": "2023-10-26T00:00:00.000Z",
        "keywords": ["k"],
        "content": "text",
        "val": 3,
    })
    assert node.type == NodeType.CODE
    assert node.status == NodeStatus.DONE
    assert node.created_at == datetime(2023, 10, 26, tzinfo=timezone.utc)
    assert node.content == "text"
    assert node.val == 3


def test_node_from_dict_fills_absent_fields():
    """Absent fields take the editor defaults"""
    node = KnowledgeNode.from_dict({"id": "x", "name": "X"})
    assert node.type == NodeType.ARTICLE
    assert node.status == NodeStatus.IDEA
    assert node.val == 5
    assert node.created_at.tzinfo is not None


@pytest.mark.parametrize("field, value", [("type", "video"), ("status", "archived")])
def test_node_from_dict_rejects_unknown_enum(field, value):
    with pytest.raises(ValueError, match=f"Invalid {field}: '{value}'"):
        KnowledgeNode.from_dict({"id": "x", "name": "X", field: value})


def test_graph_from_dict_rejects_unknown_status():
    payload = {"nodes": [{"id": "x", "name": "X", "status": "archived"}], "links": []}
    with pytest.raises(ValueError):
        KnowledgeGraph.from_dict(payload)


@pytest.mark.parametrize("stamp", [
    "2024-01-05T00:00:00.000Z",
    "2023-10-26T14:03:07.250Z",
    "2024-02-20T10:00:00.123456Z",
    "2024-02-20T10:00:00.000+02:00",
])
def test_created_at_survives_round_trip_unchanged(stamp):
    node = KnowledgeNode.from_dict({"id": "x", "name": "X", "createdAt": stamp})
    assert node.to_dict()["createdAt"] == stamp


def test_parse_timestamp_naive_is_utc():
    assert parse_timestamp("2024-02-20T10:00:00").tzinfo == timezone.utc


def test_graph_round_trip_preserves_order_and_duplicates():
    graph = KnowledgeGraph(
        nodes=[KnowledgeNode(id=i, name=i) for i in ["c", "a", "b"]],
        links=[KnowledgeLink("a", "b"), KnowledgeLink("a", "b")],
    )
    restored = KnowledgeGraph.from_dict(graph.to_dict())
    assert restored.node_ids() == ["c", "a", "b"]
    assert len(restored.links) == 2
    assert restored == graph


def test_graph_copy_is_independent():
    graph = KnowledgeGraph(nodes=[KnowledgeNode(id="a", name="A")])
    clone = graph.copy()
    clone.nodes[0].name = "changed"
    assert graph.nodes[0].name == "A"


def test_graph_lookup():
    graph = KnowledgeGraph(nodes=[KnowledgeNode(id="a", name="A"), KnowledgeNode(id="b", name="B")])
    assert graph.index_of("b") == 1
    assert graph.index_of("zzz") == -1
    assert graph.get_node("a").name == "A"
    assert graph.get_node("zzz") is None


@pytest.mark.parametrize("payload", [
    ["not", "a", "graph"],
    {"nodes": "oops", "links": []},
    {"nodes": [], "links": [{"source": "a"}]},
])
def test_graph_from_dict_rejects_malformed(payload):
    with pytest.raises(ValueError):
        KnowledgeGraph.from_dict(payload)


def test_graph_from_dict_empty():
    graph = KnowledgeGraph.from_dict({})
    assert graph.nodes == []
    assert graph.links == []


def test_session_serialization():
    session = Session(id="s1", title="Chat", created_at=1000, last_active=2000)
    data = session.to_dict()
    assert data == {"id": "s1", "title": "Chat", "createdAt": 1000, "lastActive": 2000}
    assert Session.from_dict(data) == session


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Seed Tests
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_seed_merges_content_and_topics():
    graph = seed()
    content_ids = [item["id"] for item in CONTENT_ITEMS]
    topic_ids = [t[0] for t in TOPIC_NODES]

    assert graph.node_ids() == content_ids + topic_ids
    assert len(graph.links) == len(TOPIC_LINKS)


def test_seed_content_items_keep_their_fields():
    graph = seed()
    intro = graph.get_node("1")
    assert intro.name == "Intro to Neural Networks"
    assert intro.type == NodeType.ARTICLE
    assert intro.status == NodeStatus.PUBLISHED
    assert intro.created_at == datetime(2023, 10, 26, tzinfo=timezone.utc)
    assert intro.keywords == ["AI", "Deep Learning", "Guide"]


def test_seed_topic_defaults():
    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    graph = seed(now=now)
    ai = graph.get_node("AI")
    assert ai.name == "AI"
    assert ai.type == NodeType.TOPIC
    assert ai.status == NodeStatus.PUBLISHED
    assert ai.created_at == now
    assert ai.keywords == ["1"]
    assert ai.val == 10


def test_seed_is_deterministic():
    assert seed().node_ids() == seed().node_ids()
    assert seed().links == seed().links


def test_seed_content_wins_over_topic_with_same_id(monkeypatch):
    monkeypatch.setattr(seed_module, "TOPIC_NODES", [("1", 9, 3), ("Extra", 1, 2)])
    graph = seed_module.seed()
    assert graph.node_ids().count("1") == 1
    assert graph.get_node("1").name == "Intro to Neural Networks"
    assert graph.get_node("1").type == NodeType.ARTICLE
    assert graph.node_ids()[-1] == "Extra"
