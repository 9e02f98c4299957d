"""User edits on an assembled journey.

Every edit returns a new Journey with a fresh ``updatedAt`` and leaves the
input untouched, so callers can keep the old one for undo. Unknown IDs raise
``KeyError``; edits that would leave a dangling reference raise
``ValueError``.
"""

from __future__ import annotations

import re
from typing import Any

from journeymap.engine.assembler import cell_members, derive_intersections
from journeymap.engine.config import AssemblyConfig, IntersectionPolicy
from journeymap.engine.layout import build_layout
from journeymap.models.journey import Intersection, Journey, JourneyEdge, JourneyNode, Position, timestamp

_NODE_FIELDS = {"action", "emotion", "emotion_score", "pain_point", "opportunity"}


def _touch(journey: Journey, **updates: Any) -> Journey:
    return journey.model_copy(update={**updates, "updated_at": timestamp()})


def _require_node(journey: Journey, node_id: str) -> JourneyNode:
    node = journey.get_node(node_id)
    if node is None:
        raise KeyError(f"Node not found: {node_id}")
    return node


def _edge_index(journey: Journey, edge_id: str) -> int:
    for i, edge in enumerate(journey.edges):
        if edge.id == edge_id:
            return i
    raise KeyError(f"Edge not found: {edge_id}")


def _refresh_intersections(
    journey: Journey, nodes: list[JourneyNode], config: AssemblyConfig
) -> list[Intersection]:
    """Recollect each intersection's node refs from the cell it marks.

    Under the derived policy the set is rebuilt from the crowded cells instead.
    """
    if config.intersection_policy == IntersectionPolicy.DERIVED:
        return derive_intersections(nodes, config.min_intersection_nodes, journey.intersections)
    return [
        i.model_copy(update={"node_refs": cell_members(nodes, i.phase_ref, i.context_ref)})
        for i in journey.intersections
    ]


def _next_edge_id(journey: Journey) -> str:
    used = [int(m.group(1)) for e in journey.edges if (m := re.fullmatch(r"edge-(\d+)", e.id))]
    return f"edge-{max(used) + 1 if used else 0}"


def update_details(journey: Journey, title: str | None = None, description: str | None = None) -> Journey:
    updates: dict[str, Any] = {}
    if title is not None:
        updates["title"] = title
    if description is not None:
        updates["description"] = description
    return _touch(journey, **updates)


def move_node(journey: Journey, node_id: str, x: float, y: float, config: AssemblyConfig | None = None) -> Journey:
    """Drop a node at (x, y) and move it into whichever cell it landed in."""
    node = _require_node(journey, node_id)
    config = config or AssemblyConfig()
    layout = build_layout(journey.phases, journey.contexts, config.layout)
    cell = layout.locate(x, y)

    updates: dict[str, Any] = {"position": Position(x=round(x), y=round(y))}
    if cell is not None:
        pi, ci = cell
        updates["phase_ref"] = journey.phases[pi].id
        updates["context_ref"] = journey.contexts[ci].id

    moved = node.model_copy(update=updates)
    nodes = [moved if n.id == node_id else n for n in journey.nodes]
    return _touch(journey, nodes=nodes, intersections=_refresh_intersections(journey, nodes, config))


def update_node(journey: Journey, node_id: str, **fields: Any) -> Journey:
    """Edit a node's text and emotion fields."""
    node = _require_node(journey, node_id)
    unknown = set(fields) - _NODE_FIELDS
    if unknown:
        raise ValueError(f"Cannot edit node fields: {sorted(unknown)}")

    edited = JourneyNode.model_validate({**node.model_dump(), **fields})
    nodes = [edited if n.id == node_id else n for n in journey.nodes]
    return _touch(journey, nodes=nodes)


def delete_node(journey: Journey, node_id: str) -> Journey:
    """Remove a node, its edges, and its membership in intersections."""
    _require_node(journey, node_id)
    nodes = [n for n in journey.nodes if n.id != node_id]
    edges = [e for e in journey.edges if e.from_node_ref != node_id and e.to_node_ref != node_id]
    intersections = []
    for i in journey.intersections:
        refs = [r for r in i.node_refs if r != node_id]
        if refs:
            intersections.append(i.model_copy(update={"node_refs": refs}))
    return _touch(journey, nodes=nodes, edges=edges, intersections=intersections)


def connect_nodes(journey: Journey, from_node: str, to_node: str, description: str = "") -> Journey:
    node_ids = journey.node_ids()
    for ref in (from_node, to_node):
        if ref not in node_ids:
            raise ValueError(f"Cannot connect unknown node: {ref}")
    edge = JourneyEdge(
        id=_next_edge_id(journey),
        from_node_ref=from_node,
        to_node_ref=to_node,
        description=description,
    )
    return _touch(journey, edges=[*journey.edges, edge])


def update_edge(
    journey: Journey,
    edge_id: str,
    from_node: str | None = None,
    to_node: str | None = None,
    description: str | None = None,
) -> Journey:
    """Reconnect either end of an edge and/or relabel it."""
    idx = _edge_index(journey, edge_id)
    node_ids = journey.node_ids()
    updates: dict[str, Any] = {}
    for key, ref in (("from_node_ref", from_node), ("to_node_ref", to_node)):
        if ref is None:
            continue
        if ref not in node_ids:
            raise ValueError(f"Cannot reconnect to unknown node: {ref}")
        updates[key] = ref
    if description is not None:
        updates["description"] = description

    edges = list(journey.edges)
    edges[idx] = edges[idx].model_copy(update=updates)
    return _touch(journey, edges=edges)


def delete_edge(journey: Journey, edge_id: str) -> Journey:
    idx = _edge_index(journey, edge_id)
    edges = [e for i, e in enumerate(journey.edges) if i != idx]
    return _touch(journey, edges=edges)
