"""Graph assembler: turns extracted category arrays into a cross-referenced Journey.

Categories arrive one at a time (streaming) or all together (one-shot). Each
batch is validated, given stable IDs, has its name references resolved to
already-built entities, and is positioned on the lane grid. A category whose
dependencies have not arrived yet is held back and built as soon as they do,
so no entity is ever published with a reference to something that does not
exist.

Per category:
- actors:        ``actor-N``, colour from the palette by index
- phases:        ``phase-N``, optionally sorted by their ``order`` field first
- contexts:      ``context-N``, same ordering rule, colour from the palette
- nodes:         names resolved fuzzily, grouped per (phase, context) cell,
                 placed on a ring inside the cell
- edges:         node indices from the payload map straight to ``node-N``
- intersections: phase/context resolved, node refs collected from the cell
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from journeymap.engine.cluster import node_position
from journeymap.engine.config import AssemblyConfig, IntersectionPolicy, LaneOrdering
from journeymap.engine.events import Category
from journeymap.engine.layout import GridLayout, build_layout
from journeymap.engine.resolver import MatchQuality, resolve
from journeymap.models.journey import (
    Actor,
    Context,
    Intersection,
    Journey,
    JourneyEdge,
    JourneyNode,
    Phase,
    Position,
    RawActor,
    RawContext,
    RawEdge,
    RawIntersection,
    RawNode,
    RawPhase,
    timestamp,
)

logger = logging.getLogger(__name__)

RawT = TypeVar("RawT", bound=BaseModel)

_DEPENDENCIES: dict[Category, tuple[Category, ...]] = {
    Category.ACTORS: (),
    Category.PHASES: (),
    Category.CONTEXTS: (),
    Category.NODES: (Category.ACTORS, Category.PHASES, Category.CONTEXTS),
    Category.EDGES: (Category.NODES,),
    Category.INTERSECTIONS: (Category.PHASES, Category.CONTEXTS, Category.NODES),
}


@dataclass(frozen=True)
class ResolutionIssue:
    """A name reference that resolved by substring or fallback instead of exactly."""

    category: Category
    item_index: int
    field: str
    query: str
    resolved_id: str
    quality: MatchQuality

    def describe(self) -> str:
        return (
            f"{self.category.value}[{self.item_index}].{self.field}: "
            f"{self.query!r} -> {self.resolved_id} ({self.quality.name.lower()} match)"
        )


@dataclass
class AssemblyResult:
    journey: Journey
    issues: list[ResolutionIssue] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        notes = [i.describe() for i in self.issues]
        notes.extend(f"{key}: not extracted" for key in self.missing)
        return notes


def cell_members(nodes: Iterable[JourneyNode], phase_ref: str, context_ref: str) -> list[str]:
    """IDs of the nodes sitting in one (phase, context) cell, in node order."""
    return [n.id for n in nodes if n.phase_ref == phase_ref and n.context_ref == context_ref]


def derive_intersections(
    nodes: Iterable[JourneyNode],
    threshold: int,
    suggested: Iterable[Intersection] = (),
) -> list[Intersection]:
    """One intersection per cell holding at least ``threshold`` nodes.

    Descriptions are taken from ``suggested`` records marking the same cell.
    """
    descriptions: dict[tuple[str, str], str | None] = {}
    for s in suggested:
        descriptions.setdefault((s.phase_ref, s.context_ref), s.description)

    cells: dict[tuple[str, str], list[str]] = {}
    for node in nodes:
        cells.setdefault((node.phase_ref, node.context_ref), []).append(node.id)

    derived: list[Intersection] = []
    for (phase_ref, context_ref), node_ids in cells.items():
        if len(node_ids) < threshold:
            continue
        derived.append(Intersection(
            id=f"intersection-{len(derived)}",
            phase_ref=phase_ref,
            context_ref=context_ref,
            node_refs=node_ids,
            description=descriptions.get((phase_ref, context_ref)),
        ))
    return derived


def summarize(scenario: str, chars: int = 100) -> str:
    return f"{scenario[:chars]}..."


class JourneyAssembler:
    """Mutable partial journey, fed one category batch at a time."""

    def __init__(self, config: AssemblyConfig | None = None) -> None:
        self.config = config or AssemblyConfig()
        self._builders: dict[Category, Callable[[list[Any]], list[Any]]] = {
            Category.ACTORS: self._build_actors,
            Category.PHASES: self._build_phases,
            Category.CONTEXTS: self._build_contexts,
            Category.NODES: self._build_nodes,
            Category.EDGES: self._build_edges,
            Category.INTERSECTIONS: self._build_intersections,
        }
        unhandled = set(Category) - set(self._builders)
        if unhandled:
            raise RuntimeError(f"No builder for categories: {sorted(c.value for c in unhandled)}")
        self.reset()

    def reset(self) -> None:
        self.actors: list[Actor] = []
        self.phases: list[Phase] = []
        self.contexts: list[Context] = []
        self.nodes: list[JourneyNode] = []
        self.edges: list[JourneyEdge] = []
        self.intersections: list[Intersection] = []
        self.issues: list[ResolutionIssue] = []
        self._arrived: set[Category] = set()
        self._deferred: dict[Category, list[Any]] = {}
        self._batches: dict[Category, list[Any]] = {}

    # ------------------------------------------------------------------
    # Feeding
    # ------------------------------------------------------------------

    @property
    def arrived(self) -> frozenset[Category]:
        return frozenset(self._arrived)

    @property
    def deferred(self) -> list[Category]:
        return [c for c in Category if c in self._deferred]

    def apply(self, category: Category | str, raw_items: Any) -> list[tuple[Category, list[Any]]]:
        """Take one extracted batch; return every batch that could be built because of it.

        Unknown category names raise ``ValueError``.
        """
        category = Category(category)
        if not isinstance(raw_items, list):
            logger.warning("%s payload is %s, not a list; treating as empty", category.value, type(raw_items).__name__)
            raw_items = []
        if category in self._arrived:
            logger.warning("%s arrived twice; rebuilding it and its dependents", category.value)
            self._requeue_dependents(category)

        self._arrived.add(category)
        self._batches[category] = raw_items
        self._deferred[category] = raw_items
        return self._drain(force=False)

    def _requeue_dependents(self, category: Category) -> None:
        """Queue everything built on top of ``category`` for a rebuild from its stored batch."""
        stale = {category}
        for other in Category:
            if other in self._batches and stale.intersection(_DEPENDENCIES[other]):
                stale.add(other)
                self._deferred.setdefault(other, self._batches[other])

    def finish(self) -> list[tuple[Category, list[Any]]]:
        """End of extraction. Builds anything still waiting on a dependency."""
        return self._drain(force=True)

    def _drain(self, force: bool) -> list[tuple[Category, list[Any]]]:
        built: list[tuple[Category, list[Any]]] = []
        # Category order is dependency order, so one pass is enough
        for category in Category:
            if category not in self._deferred:
                continue
            waiting_on = [
                d.value for d in _DEPENDENCIES[category]
                if d not in self._arrived or d in self._deferred
            ]
            if waiting_on and not force:
                logger.info("%s waiting on %s", category.value, ", ".join(waiting_on))
                continue
            items = self._deferred.pop(category)
            self.issues = [i for i in self.issues if i.category != category]
            built.append((category, self._builders[category](items)))
        return built

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def layout(self) -> GridLayout:
        return build_layout(self.phases, self.contexts, self.config.layout)

    def journey(
        self,
        journey_id: str | None = None,
        title: str | None = None,
        scenario: str = "",
    ) -> Journey:
        now = timestamp()
        return Journey(
            id=journey_id or str(uuid.uuid4()),
            title=(title or "").strip() or self.config.default_title,
            description=summarize(scenario, self.config.description_chars),
            scenario=scenario,
            actors=list(self.actors),
            phases=list(self.phases),
            contexts=list(self.contexts),
            nodes=list(self.nodes),
            edges=list(self.edges),
            intersections=list(self.intersections),
            created_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def _validate(self, model: type[RawT], items: Sequence[Any], category: Category) -> list[tuple[int, RawT]]:
        valid: list[tuple[int, RawT]] = []
        for idx, item in enumerate(items):
            if not isinstance(item, Mapping):
                logger.warning("Skipping %s[%d]: expected an object, got %s", category.value, idx, type(item).__name__)
                continue
            try:
                valid.append((idx, model.model_validate(item)))
            except ValidationError as e:
                logger.warning("Skipping %s[%d]: %s", category.value, idx, e)
        return valid

    def _resolve(
        self,
        candidates: Sequence[Any],
        query: str,
        id_prefix: str,
        category: Category,
        item_index: int,
        field_name: str,
    ) -> int:
        res = resolve(candidates, query, id_prefix)
        if res.quality < MatchQuality.EXACT:
            issue = ResolutionIssue(
                category=category,
                item_index=item_index,
                field=field_name,
                query=query,
                resolved_id=candidates[res.index].id,
                quality=res.quality,
            )
            self.issues.append(issue)
            if res.quality == MatchQuality.FALLBACK:
                logger.warning("Unresolved reference, falling back: %s", issue.describe())
            else:
                logger.debug("Partial match: %s", issue.describe())
        return res.index

    def _lane_order(self, raws: list[tuple[int, RawT]]) -> list[RawT]:
        items = [raw for _, raw in raws]
        if self.config.lane_ordering == LaneOrdering.ORDER:
            items = sorted(items, key=lambda r: r.order)  # type: ignore[attr-defined]
        return items

    def _build_actors(self, items: list[Any]) -> list[Actor]:
        palette = self.config.actor_colors
        raws = self._validate(RawActor, items, Category.ACTORS)
        self.actors = [
            Actor(
                id=f"actor-{i}",
                name=raw.name,
                kind=raw.kind,
                color=palette[i % len(palette)],
                description=raw.description or None,
            )
            for i, (_, raw) in enumerate(raws)
        ]
        return self.actors

    def _build_phases(self, items: list[Any]) -> list[Phase]:
        raws = self._validate(RawPhase, items, Category.PHASES)
        self.phases = [
            Phase(id=f"phase-{i}", name=raw.name, order=raw.order, duration=raw.duration or None)
            for i, raw in enumerate(self._lane_order(raws))
        ]
        return self.phases

    def _build_contexts(self, items: list[Any]) -> list[Context]:
        palette = self.config.context_colors
        raws = self._validate(RawContext, items, Category.CONTEXTS)
        self.contexts = [
            Context(
                id=f"context-{i}",
                name=raw.name,
                description=raw.description or None,
                order=raw.order,
                color=palette[i % len(palette)],
            )
            for i, raw in enumerate(self._lane_order(raws))
        ]
        return self.contexts

    def _build_nodes(self, items: list[Any]) -> list[JourneyNode]:
        raws = self._validate(RawNode, items, Category.NODES)
        if not (self.actors and self.phases and self.contexts):
            if raws:
                logger.warning(
                    "Dropping %d nodes: need actors, phases and contexts (have %d/%d/%d)",
                    len(raws), len(self.actors), len(self.phases), len(self.contexts),
                )
            self.nodes = []
            return self.nodes

        layout = self.layout()

        resolved: list[tuple[int, RawNode, int, int, int]] = []
        for idx, raw in raws:
            ai = self._resolve(self.actors, raw.actor_name, "actor", Category.NODES, idx, "actorName")
            pi = self._resolve(self.phases, raw.phase_name, "phase", Category.NODES, idx, "phaseName")
            ci = self._resolve(self.contexts, raw.context_name, "context", Category.NODES, idx, "contextName")
            resolved.append((idx, raw, ai, pi, ci))

        # Cell membership is fixed for the whole batch before anything is placed
        cells: dict[tuple[int, int], list[int]] = {}
        for idx, _, _, pi, ci in resolved:
            cells.setdefault((pi, ci), []).append(idx)

        nodes: list[JourneyNode] = []
        for idx, raw, ai, pi, ci in resolved:
            members = cells[(pi, ci)]
            x, y = node_position(
                layout.cell_center(pi, ci),
                members.index(idx),
                len(members),
                self.config.layout,
            )
            nodes.append(JourneyNode(
                id=f"node-{idx}",
                actor_ref=self.actors[ai].id,
                phase_ref=self.phases[pi].id,
                context_ref=self.contexts[ci].id,
                action=raw.action,
                emotion=raw.emotion,
                emotion_score=raw.emotion_score,
                pain_point=raw.pain_point or None,
                opportunity=raw.opportunity or None,
                position=Position(x=x, y=y),
            ))

        self.nodes = nodes
        return self.nodes

    def _build_edges(self, items: list[Any]) -> list[JourneyEdge]:
        raws = self._validate(RawEdge, items, Category.EDGES)
        node_ids = {n.id for n in self.nodes}

        edges: list[JourneyEdge] = []
        for idx, raw in raws:
            from_id = f"node-{raw.from_node_index}"
            to_id = f"node-{raw.to_node_index}"
            if from_id not in node_ids or to_id not in node_ids:
                logger.warning(
                    "Dropping edges[%d]: %s -> %s does not connect two extracted nodes",
                    idx, from_id, to_id,
                )
                continue
            edges.append(JourneyEdge(
                id=f"edge-{idx}",
                from_node_ref=from_id,
                to_node_ref=to_id,
                description=raw.description,
            ))

        self.edges = edges
        return self.edges

    def _build_intersections(self, items: list[Any]) -> list[Intersection]:
        raws = self._validate(RawIntersection, items, Category.INTERSECTIONS)
        policy = self.config.intersection_policy
        threshold = self.config.min_intersection_nodes

        if not (self.phases and self.contexts):
            if raws:
                logger.warning("Dropping %d intersections: no phases or contexts", len(raws))
            self.intersections = []
            return self.intersections

        suggested: list[Intersection] = []
        for idx, raw in raws:
            pi = self._resolve(self.phases, raw.phase_name, "phase", Category.INTERSECTIONS, idx, "phaseName")
            ci = self._resolve(self.contexts, raw.context_name, "context", Category.INTERSECTIONS, idx, "contextName")
            phase_ref = self.phases[pi].id
            context_ref = self.contexts[ci].id
            suggested.append(Intersection(
                id=f"intersection-{idx}",
                phase_ref=phase_ref,
                context_ref=context_ref,
                node_refs=cell_members(self.nodes, phase_ref, context_ref),
                description=raw.description or None,
            ))

        if policy == IntersectionPolicy.KEEP_ALL:
            result = suggested
        elif policy == IntersectionPolicy.MIN_NODES:
            result = [i for i in suggested if len(i.node_refs) >= threshold]
        else:
            result = derive_intersections(self.nodes, threshold, suggested)

        self.intersections = result
        return self.intersections


def assemble_journey(
    extraction: Mapping[str, Any],
    scenario: str,
    title: str | None = None,
    config: AssemblyConfig | None = None,
    journey_id: str | None = None,
) -> AssemblyResult:
    """One-shot assembly from a fully extracted payload."""
    assembler = JourneyAssembler(config)
    for category in Category:
        assembler.apply(category, extraction.get(category.value, []))
    assembler.finish()

    missing = [c.value for c in Category if c.value not in extraction]
    return AssemblyResult(
        journey=assembler.journey(journey_id, title, scenario),
        issues=list(assembler.issues),
        missing=missing,
    )
