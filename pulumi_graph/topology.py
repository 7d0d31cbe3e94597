# topology.py
"""
Compose-style service topology (``version`` / ``services`` / ``networks``).

Only the structure and the start-up relations between services are modeled:
``depends_on`` entries and ``network_mode: service:<name>`` both make a
service wait for another one.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import pulumi

from .dependency_graph import DependencyGraph, link
from .document import Mapping, Node, Scalar, Sequence, load, load_file, to_python
from .errors import ParseError, UnknownReferenceError
from .evaluator import topological_order

_PORT_RE = re.compile(r"^(?:[0-9.]+:)?\d+(?:-\d+)?(?::\d+(?:-\d+)?)?(?:/(?:tcp|udp|sctp))?$")
_SERVICE_MODE_PREFIX = "service:"
DEFAULT_NETWORK = "default"


@dataclass(frozen=True)
class Service:
    name: str
    image: Optional[str] = None
    build: Optional[Union[str, Dict]] = None
    depends_on: List[str] = field(default_factory=list)
    networks: List[str] = field(default_factory=list)
    ports: List[str] = field(default_factory=list)
    command: List[str] = field(default_factory=list)
    network_mode: Optional[str] = None
    line: int = field(default=0, compare=False)

    def dependencies(self) -> List[Tuple[str, str]]:
        """(field, service) pairs this service has to start after."""
        found = [(f"depends_on[{i}]", name) for i, name in enumerate(self.depends_on)]
        if self.network_mode and self.network_mode.startswith(_SERVICE_MODE_PREFIX):
            found.append(("network_mode", self.network_mode[len(_SERVICE_MODE_PREFIX):]))
        return found

    def to_python(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.image is not None:
            data["image"] = self.image
        if self.build is not None:
            data["build"] = self.build
        if self.command:
            data["command"] = list(self.command)
        if self.depends_on:
            data["depends_on"] = list(self.depends_on)
        if self.network_mode is not None:
            data["network_mode"] = self.network_mode
        if self.networks:
            data["networks"] = list(self.networks)
        if self.ports:
            data["ports"] = list(self.ports)
        return data


@dataclass(frozen=True)
class Topology:
    version: Optional[str] = None
    services: List[Service] = field(default_factory=list)
    networks: Dict[str, Dict] = field(default_factory=dict)

    @property
    def names(self) -> List[str]:
        return [service.name for service in self.services]

    def service(self, name: str) -> Service:
        for service in self.services:
            if service.name == name:
                return service
        raise KeyError(name)

    def dependency_graph(self) -> DependencyGraph:
        triples = [
            (service.name, field_path, target)
            for service in self.services
            for field_path, target in service.dependencies()
        ]
        declared = set(self.networks) | {DEFAULT_NETWORK}
        unknown_networks = [
            (service.name, f"networks[{i}]", network)
            for service in self.services
            for i, network in enumerate(service.networks)
            if network not in declared
        ]

        try:
            graph = link(self.names, triples)
        except UnknownReferenceError as e:
            names, occurrences = e.names, e.occurrences
        else:
            if not unknown_networks:
                return graph
            names, occurrences = [], []

        for occurrence in unknown_networks:
            occurrences.append(occurrence)
            if occurrence[2] not in names:
                names.append(occurrence[2])
        raise UnknownReferenceError(names, occurrences)

    def startup_order(self) -> List[str]:
        order = topological_order(self.dependency_graph())
        pulumi.log.info(f"Service start-up order: {', '.join(order)}")
        return order

    def to_python(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.version is not None:
            data["version"] = self.version
        data["services"] = {service.name: service.to_python() for service in self.services}
        if self.networks:
            data["networks"] = dict(self.networks)
        return data

    @classmethod
    def from_node(cls, root: Node) -> "Topology":
        if not isinstance(root, Mapping):
            raise ParseError("Service topology must be a mapping", root.line or None)

        version = root.get("version")
        services = root.get("services")
        if services is None:
            raise ParseError("Service topology has no 'services'", root.line or None)
        if not isinstance(services, Mapping):
            raise ParseError("'services' must be a mapping", services.line or None)

        networks: Dict[str, Dict] = {}
        networks_node = root.get("networks")
        if networks_node is not None:
            if not isinstance(networks_node, Mapping):
                raise ParseError("'networks' must be a mapping", networks_node.line or None)
            for name, value in networks_node.items():
                networks[name] = to_python(value) or {}

        return cls(
            version=None if version is None else str(to_python(version)),
            services=[_service(name, value) for name, value in services.items()],
            networks=networks,
        )


def _strings(node: Optional[Node], label: str) -> List[str]:
    if node is None:
        return []
    if not isinstance(node, Sequence):
        raise ParseError(f"'{label}' must be a list", node.line or None)
    values = []
    for item in node:
        if not isinstance(item, Scalar) or item.value is None:
            raise ParseError(f"Entries of '{label}' must be scalars", item.line or None)
        values.append(str(item.value))
    return values


def _names(node: Optional[Node], label: str) -> List[str]:
    # depends_on / networks may be a list or a mapping keyed by name
    if isinstance(node, Mapping):
        return node.keys()
    return _strings(node, label)


def _service(name: str, node: Node) -> Service:
    if not isinstance(node, Mapping):
        raise ParseError(f"Service '{name}' must be a mapping", node.line or None)

    image = node.get("image")
    build = node.get("build")
    if image is None and build is None:
        raise ParseError(f"Service '{name}' needs an 'image' or a 'build'", node.line or None)
    if image is not None and not isinstance(image, Scalar):
        raise ParseError(f"'image' of service '{name}' must be a string", image.line or None)
    if build is not None and not isinstance(build, (Scalar, Mapping)):
        raise ParseError(f"'build' of service '{name}' must be a path or a mapping", build.line or None)

    ports = []
    ports_node = node.get("ports")
    for port in _strings(ports_node, f"{name}.ports"):
        if not _PORT_RE.match(port):
            raise ParseError(f"Invalid port mapping '{port}' in service '{name}'", ports_node.line or None)
        ports.append(port)

    command_node = node.get("command")
    if isinstance(command_node, Scalar):
        command = str(command_node.value).split()
    else:
        command = _strings(command_node, f"{name}.command")

    network_mode = node.get("network_mode")
    if network_mode is not None and not isinstance(network_mode, Scalar):
        raise ParseError(f"'network_mode' of service '{name}' must be a string", network_mode.line or None)

    return Service(
        name=name,
        image=None if image is None else str(image.value),
        build=None if build is None else to_python(build),
        depends_on=_names(node.get("depends_on"), f"{name}.depends_on"),
        networks=_names(node.get("networks"), f"{name}.networks"),
        ports=ports,
        command=command,
        network_mode=None if network_mode is None else str(network_mode.value),
        line=node.line,
    )


def load_topology(text: str) -> Topology:
    return Topology.from_node(load(text))


def load_topology_file(file_path: str) -> Topology:
    return Topology.from_node(load_file(file_path))
