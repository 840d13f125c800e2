"""
Knowledge graph schema.

A graph is an ordered list of typed nodes plus a list of directed links
between node ids. Node order is display order. Links are weak references:
nothing here checks that their endpoints exist.

The JSON wire shape (camelCase keys) is also the persisted shape.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


DEFAULT_NODE_VAL = 5


class NodeType(Enum):
    """Kind of knowledge item."""
    ARTICLE = "article"
    GUIDE = "guide"
    TEMPLATE = "template"
    CODE = "code"
    COLLECTION = "collection"
    TOPIC = "topic"

    @classmethod
    def from_str(cls, value: str) -> "NodeType":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid type: '{value}'. Allowed: {', '.join(t.value for t in cls)}"
            ) from None


class NodeStatus(Enum):
    """Lifecycle status of a node. Only four of these have a board column."""
    PUBLISHED = "published"
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    IDEA = "idea"
    BACKLOG = "backlog"
    DONE = "done"

    @classmethod
    def from_str(cls, value: str) -> "NodeStatus":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid status: '{value}'. Allowed: {', '.join(s.value for s in cls)}"
            ) from None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (trailing 'Z' allowed). Missing values become now."""
    if isinstance(value, datetime):
        return value
    if not value:
        return utc_now()
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with a trailing 'Z' for UTC. Milliseconds unless finer precision is set."""
    timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
    text = value.isoformat(timespec=timespec)
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


@dataclass
class KnowledgeNode:
    """A knowledge item with identity, type, status, and content."""

    id: str
    name: str
    type: NodeType = NodeType.ARTICLE
    status: NodeStatus = NodeStatus.IDEA
    created_at: datetime = field(default_factory=utc_now)
    keywords: List[str] = field(default_factory=list)
    content: Optional[str] = None
    val: float = DEFAULT_NODE_VAL   # visual weight only

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status.value,
            "createdAt": format_timestamp(self.created_at),
            "keywords": list(self.keywords),
            "val": self.val,
        }
        if self.content is not None:
            data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeNode":
        # Absent fields take the editor defaults; unknown enum values are rejected
        node_type = NodeType.ARTICLE
        if data.get("type"):
            node_type = NodeType.from_str(data["type"])

        status = NodeStatus.IDEA
        if data.get("status"):
            status = NodeStatus.from_str(data["status"])

        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            type=node_type,
            status=status,
            created_at=parse_timestamp(data.get("createdAt")),
            keywords=list(data.get("keywords") or []),
            content=data.get("content"),
            val=data.get("val") or DEFAULT_NODE_VAL,
        )


@dataclass
class KnowledgeLink:
    """Directed, unvalidated association between two node ids."""
    source: str
    target: str

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeLink":
        return cls(source=str(data["source"]), target=str(data["target"]))


@dataclass
class KnowledgeGraph:
    """Full node + link collection: the unit of persistence and of sync."""

    nodes: List[KnowledgeNode] = field(default_factory=list)
    links: List[KnowledgeLink] = field(default_factory=list)

    def index_of(self, node_id: str) -> int:
        """Position of a node in display order, or -1."""
        for i, node in enumerate(self.nodes):
            if node.id == node_id:
                return i
        return -1

    def get_node(self, node_id: str) -> Optional[KnowledgeNode]:
        i = self.index_of(node_id)
        return self.nodes[i] if i != -1 else None

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def copy(self) -> "KnowledgeGraph":
        """Deep copy via the wire form."""
        return KnowledgeGraph.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeGraph":
        """Deserialize from the wire shape. Raises ValueError on a malformed payload."""
        if not isinstance(data, dict):
            raise ValueError("graph payload must be a JSON object")
        nodes = data.get("nodes") or []
        links = data.get("links") or []
        if not isinstance(nodes, list) or not isinstance(links, list):
            raise ValueError("graph 'nodes' and 'links' must be lists")
        try:
            return cls(
                nodes=[KnowledgeNode.from_dict(n) for n in nodes],
                links=[KnowledgeLink.from_dict(l) for l in links],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"malformed graph payload: {e}") from e


@dataclass
class Session:
    """Chat session metadata. Timestamps are epoch milliseconds."""
    id: str
    title: str
    created_at: int
    last_active: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at,
            "lastActive": self.last_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        created_at = int(data.get("createdAt", 0))
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            created_at=created_at,
            last_active=int(data.get("lastActive", created_at)),
        )
