"""
Opt-in graph checks and node form rules.

Links are never validated implicitly: find_dangling_links only reports
them so callers can decide what to do.
"""
import uuid
from typing import List, Optional, Union

from .exceptions import ValidationError
from .schema import (
    KnowledgeGraph,
    KnowledgeLink,
    KnowledgeNode,
    NodeStatus,
    NodeType,
    DEFAULT_NODE_VAL,
    utc_now,
)

MIN_NAME_LENGTH = 3


def find_dangling_links(graph: KnowledgeGraph) -> List[KnowledgeLink]:
    """Links whose source or target is not a node in the graph."""
    ids = set(graph.node_ids())
    return [l for l in graph.links if l.source not in ids or l.target not in ids]


def parse_keywords(text: str) -> List[str]:
    """Split a comma-separated keyword field into trimmed, non-empty keywords."""
    return [k.strip() for k in (text or "").split(",") if k.strip()]


def validate_node_fields(name: str, node_type: str, status: str) -> tuple:
    """
    Check the editable node fields.

    Returns:
        (name, NodeType, NodeStatus) with the name stripped.

    Raises:
        ValidationError with a user-facing message on failure.
    """
    name = (name or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters long."
        )

    try:
        parsed_type = NodeType.from_str(node_type)
        parsed_status = NodeStatus.from_str(status)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    return name, parsed_type, parsed_status


def new_node(
    name: str,
    node_type: str = NodeType.ARTICLE.value,
    status: str = NodeStatus.IDEA.value,
    keywords: Union[str, List[str]] = "",
    content: Optional[str] = None,
) -> KnowledgeNode:
    """Validated factory for a node created from the editor form."""
    name, parsed_type, parsed_status = validate_node_fields(name, node_type, status)
    if isinstance(keywords, str):
        keywords = parse_keywords(keywords)
    return KnowledgeNode(
        id=str(uuid.uuid4()),
        name=name,
        type=parsed_type,
        status=parsed_status,
        created_at=utc_now(),
        keywords=list(keywords),
        content=content or None,
        val=DEFAULT_NODE_VAL,
    )
