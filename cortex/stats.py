"""Graph statistics for the profile view."""
from typing import Any, Dict

from .schema import KnowledgeGraph, NodeType


def graph_stats(graph: KnowledgeGraph) -> Dict[str, Any]:
    content = [n for n in graph.nodes if n.type is not NodeType.TOPIC]

    by_type: Dict[str, int] = {}
    for node in content:
        by_type[node.type.value] = by_type.get(node.type.value, 0) + 1

    by_status: Dict[str, int] = {}
    for node in graph.nodes:
        by_status[node.status.value] = by_status.get(node.status.value, 0) + 1

    total = len(graph.nodes)
    # each link counts once for each endpoint
    avg = round(2 * len(graph.links) / total, 1) if total else 0.0

    return {
        "totalNodes": total,
        "contentItems": len(content),
        "connections": len(graph.links),
        "avgConnections": avg,
        "contentByType": by_type,
        "byStatus": by_status,
    }
