# evaluator.py
import pulumi
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .config import EvaluatorConfig
from .dependency_graph import DependencyGraph, build_graph
from .errors import CyclicDependencyError
from .template import Template, load_template_file

UNVISITED = 0
IN_PROGRESS = 1
DONE = 2


@dataclass
class Plan:
    template: Template
    graph: DependencyGraph
    order: List[str] = field(default_factory=list)


def topological_order(graph: DependencyGraph) -> List[str]:
    """Order the graph so every dependency comes before its dependents.

    Roots and dependencies are both visited in declaration order, which makes
    the result stable. All cycles found during the pass are reported together.
    """
    state: Dict[str, int] = {name: UNVISITED for name in graph.nodes}
    dependencies = {name: graph.dependencies(name) for name in graph.nodes}
    order: List[str] = []
    cycles: List[List[str]] = []
    path: List[str] = []

    def visit(root: str) -> None:
        # Explicit frames so long dependency chains do not hit the recursion limit
        state[root] = IN_PROGRESS
        path.append(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(dependencies[root]))]
        while stack:
            name, pending = stack[-1]
            for dependency in pending:
                if state[dependency] == IN_PROGRESS:
                    # Back-edge: everything on the path from the dependency onwards is a cycle
                    cycles.append(path[path.index(dependency):])
                elif state[dependency] == UNVISITED:
                    state[dependency] = IN_PROGRESS
                    path.append(dependency)
                    stack.append((dependency, iter(dependencies[dependency])))
                    break
            else:
                stack.pop()
                path.pop()
                state[name] = DONE
                order.append(name)

    for name in graph.nodes:
        if state[name] == UNVISITED:
            visit(name)

    if cycles:
        raise CyclicDependencyError(cycles)
    return order


def evaluate(template: Template, config: Optional[EvaluatorConfig] = None) -> Plan:
    config = config or EvaluatorConfig()
    graph = build_graph(
        template.entities,
        builtin_roots=config.builtin_roots,
        outputs=template.outputs if config.check_outputs else None,
    )
    order = topological_order(graph)
    pulumi.log.info(f"Evaluation order for '{template.name or 'template'}': {', '.join(order)}")
    return Plan(template=template, graph=graph, order=order)


def plan_file(file_path: str, config: Optional[EvaluatorConfig] = None) -> Plan:
    return evaluate(load_template_file(file_path), config)
