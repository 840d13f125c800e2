"""
Default data for a fresh graph.

A small curated content set is merged with a sample topic network. Content
items win over topic stand-ins that share their id.
"""
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from .schema import (
    KnowledgeGraph,
    KnowledgeLink,
    KnowledgeNode,
    NodeStatus,
    NodeType,
    DEFAULT_NODE_VAL,
    utc_now,
)


def _day(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


CONTENT_ITEMS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "title": "Intro to Neural Networks",
        "type": NodeType.ARTICLE,
        "status": NodeStatus.PUBLISHED,
        "created_at": _day(2023, 10, 26),
        "keywords": ["AI", "Deep Learning", "Guide"],
    },
    {
        "id": "2",
        "title": "Cloudflare Workers Architecture",
        "type": NodeType.GUIDE,
        "status": NodeStatus.PUBLISHED,
        "created_at": _day(2023, 11, 15),
        "keywords": ["Cloudflare", "Serverless", "Architecture"],
    },
    {
        "id": "3",
        "title": "UX Research Methods",
        "type": NodeType.TEMPLATE,
        "status": NodeStatus.DRAFT,
        "created_at": _day(2024, 1, 5),
        "keywords": ["UX", "Research", "Design"],
    },
    {
        "id": "4",
        "title": "React State Management Snippet",
        "type": NodeType.CODE,
        "status": NodeStatus.PUBLISHED,
        "created_at": _day(2023, 9, 1),
        "keywords": ["React", "JavaScript", "Zustand"],
    },
    {
        "id": "5",
        "title": "AI Project Ideas",
        "type": NodeType.COLLECTION,
        "status": NodeStatus.DRAFT,
        "created_at": _day(2024, 2, 20),
        "keywords": ["AI", "Ideas", "Collection"],
    },
]

# (id, group, val)
TOPIC_NODES = [
    ("AI", 1, 10),
    ("Machine Learning", 1, 8),
    ("Deep Learning", 1, 6),
    ("Neural Networks", 1, 6),
    ("Programming", 2, 8),
    ("Python", 2, 6),
    ("JavaScript", 2, 6),
    ("React", 2, 4),
    ("Design", 3, 8),
    ("UI/UX", 3, 6),
    ("Figma", 3, 4),
    ("Cloud Computing", 4, 8),
    ("Cloudflare", 4, 6),
    ("Serverless", 4, 4),
]

TOPIC_LINKS = [
    ("AI", "Machine Learning"),
    ("Machine Learning", "Deep Learning"),
    ("Deep Learning", "Neural Networks"),
    ("AI", "Programming"),
    ("Programming", "Python"),
    ("Programming", "JavaScript"),
    ("JavaScript", "React"),
    ("Machine Learning", "Python"),
    ("Design", "UI/UX"),
    ("UI/UX", "Figma"),
    ("React", "UI/UX"),
    ("Cloud Computing", "Serverless"),
    ("Cloud Computing", "Cloudflare"),
    ("Serverless", "Cloudflare"),
    ("Programming", "Cloud Computing"),
]


def seed(now: Optional[datetime] = None) -> KnowledgeGraph:
    """Build the default graph. The node id set and order never vary."""
    now = now or utc_now()

    nodes = [
        KnowledgeNode(
            id=item["id"],
            name=item["title"],
            type=item["type"],
            status=item["status"],
            created_at=item["created_at"],
            keywords=list(item["keywords"]),
            val=DEFAULT_NODE_VAL,
        )
        for item in CONTENT_ITEMS
    ]
    seen = {n.id for n in nodes}

    for topic_id, group, val in TOPIC_NODES:
        if topic_id in seen:
            continue
        seen.add(topic_id)
        nodes.append(KnowledgeNode(
            id=topic_id,
            name=topic_id,
            type=NodeType.TOPIC,
            status=NodeStatus.PUBLISHED,
            created_at=now,
            keywords=[str(group)],
            val=val,
        ))

    links = [KnowledgeLink(source=s, target=t) for s, t in TOPIC_LINKS]
    return KnowledgeGraph(nodes=nodes, links=links)
