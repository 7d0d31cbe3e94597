# dependency_graph.py
"""
Directed graph of declared entities, one edge per reference.

An edge A -> B means A's value depends on B, so B has to be evaluated first.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import pulumi

from .document import Node
from .errors import UnknownReferenceError
from .references import Reference, find_references
from .template import Entity

DEFAULT_BUILTIN_ROOTS = ("pulumi",)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    field: str = ""
    reference: Optional[Reference] = None


@dataclass
class DependencyGraph:
    nodes: List[str] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._position = {name: i for i, name in enumerate(self.nodes)}

    def position(self, name: str) -> int:
        return self._position[name]

    def edges_from(self, name: str) -> List[Edge]:
        return [edge for edge in self.edges if edge.source == name]

    def dependencies(self, name: str) -> List[str]:
        """Distinct targets of ``name``'s edges, in declaration order."""
        targets = {edge.target for edge in self.edges if edge.source == name}
        return sorted(targets, key=self.position)

    def dependents(self, name: str) -> List[str]:
        sources = {edge.source for edge in self.edges if edge.target == name}
        return sorted(sources, key=self.position)


def link(nodes: Sequence[str], dependencies: Iterable[Tuple[str, str, str]]) -> DependencyGraph:
    """Build a graph from explicit (source, field, target) triples.

    Every unknown target is collected before failing.
    """
    known = set(nodes)
    edges: List[Edge] = []
    missing: List[str] = []
    occurrences: List[Tuple[str, str, str]] = []

    for source, field_path, target in dependencies:
        if target not in known:
            occurrences.append((source, field_path, target))
            if target not in missing:
                missing.append(target)
            continue
        edges.append(Edge(source, target, field_path))

    if missing:
        raise UnknownReferenceError(missing, occurrences)
    return DependencyGraph(list(nodes), edges)


def build_graph(
    entities: Sequence[Entity],
    builtin_roots: Iterable[str] = DEFAULT_BUILTIN_ROOTS,
    outputs: Optional[Node] = None,
) -> DependencyGraph:
    builtins = set(builtin_roots)
    known = {entity.name for entity in entities}
    edges: List[Edge] = []
    missing: List[str] = []
    occurrences: List[Tuple[str, str, str]] = []

    def check(source: str, field_path: str, reference: Reference) -> bool:
        if reference.entity in known:
            return True
        if reference.entity not in builtins:
            occurrences.append((source, field_path, reference.entity))
            if reference.entity not in missing:
                missing.append(reference.entity)
        return False

    for entity in entities:
        for prefix, section in entity.sections().items():
            for field_path, reference in find_references(section, prefix):
                if check(entity.name, field_path, reference):
                    edges.append(Edge(entity.name, reference.entity, field_path, reference))

    # Outputs must resolve too but nothing depends on them
    if outputs is not None:
        for field_path, reference in find_references(outputs, "outputs"):
            check("outputs", field_path, reference)

    if missing:
        pulumi.log.warn(f"Found {len(occurrences)} reference(s) to undeclared names: {', '.join(missing)}")
        raise UnknownReferenceError(missing, occurrences)

    pulumi.log.debug(f"Dependency graph: {len(entities)} entities, {len(edges)} edges")
    return DependencyGraph([entity.name for entity in entities], edges)
