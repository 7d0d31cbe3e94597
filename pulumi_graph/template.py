# template.py
"""
Pulumi YAML program model: the named variables and resources a template declares.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .document import Mapping, Node, Scalar, load, load_file
from .errors import ParseError

VARIABLE = "variable"
RESOURCE = "resource"


@dataclass(frozen=True)
class Entity:
    name: str
    kind: str
    properties: Node
    type: Optional[str] = None
    options: Optional[Node] = None
    line: int = field(default=0, compare=False)

    def sections(self) -> Dict[str, Node]:
        """The parts of the declaration that may hold references, keyed by field path prefix."""
        if self.kind == VARIABLE:
            return {"": self.properties}
        parts: Dict[str, Node] = {"properties": self.properties}
        if self.options is not None:
            parts["options"] = self.options
        return parts


@dataclass(frozen=True)
class Template:
    name: Optional[str] = None
    description: Optional[str] = None
    runtime: Optional[str] = None
    entities: List[Entity] = field(default_factory=list)
    outputs: Optional[Node] = None

    def entity(self, name: str) -> Entity:
        for entity in self.entities:
            if entity.name == name:
                return entity
        raise KeyError(name)

    @property
    def names(self) -> List[str]:
        return [entity.name for entity in self.entities]

    @property
    def variables(self) -> List[Entity]:
        return [e for e in self.entities if e.kind == VARIABLE]

    @property
    def resources(self) -> List[Entity]:
        return [e for e in self.entities if e.kind == RESOURCE]

    @classmethod
    def from_node(cls, root: Node) -> "Template":
        if not isinstance(root, Mapping):
            raise ParseError("Template must be a mapping", root.line or None)

        entities: List[Entity] = []
        declared: Dict[str, str] = {}

        # Sections are read in the order they appear so entity order follows the text
        for key, section in root.items():
            if key == "variables":
                found = _variables(section)
            elif key == "resources":
                found = _resources(section)
            else:
                continue
            for entity in found:
                if entity.name in declared:
                    raise ParseError(
                        f"'{entity.name}' is declared as both a {declared[entity.name]} and a {entity.kind}",
                        entity.line or None,
                    )
                declared[entity.name] = entity.kind
                entities.append(entity)

        outputs = root.get("outputs")
        if isinstance(outputs, Scalar) and outputs.value is None:
            outputs = None

        return cls(
            name=_text(root, "name"),
            description=_text(root, "description"),
            runtime=_text(root, "runtime"),
            entities=entities,
            outputs=outputs,
        )


def _text(root: Mapping, key: str) -> Optional[str]:
    node = root.get(key)
    if node is None:
        return None
    if not isinstance(node, Scalar) or node.value is None:
        raise ParseError(f"'{key}' must be a string", node.line or None)
    return str(node.value)


def _section(node: Node, name: str) -> Mapping:
    # An empty section ("variables:" with nothing under it) loads as null
    if isinstance(node, Scalar) and node.value is None:
        return Mapping(line=node.line)
    if not isinstance(node, Mapping):
        raise ParseError(f"'{name}' must be a mapping", node.line or None)
    return node


def _variables(node: Node) -> List[Entity]:
    return [
        Entity(name=name, kind=VARIABLE, properties=value, line=value.line)
        for name, value in _section(node, "variables").items()
    ]


def _resources(node: Node) -> List[Entity]:
    entities = []
    for name, value in _section(node, "resources").items():
        if not isinstance(value, Mapping):
            raise ParseError(f"Resource '{name}' must be a mapping", value.line or None)

        resource_type = value.get("type")
        if not isinstance(resource_type, Scalar) or not isinstance(resource_type.value, str):
            raise ParseError(f"Resource '{name}' is missing a string 'type'", value.line or None)

        properties = value.get("properties")
        properties = Mapping(line=value.line) if properties is None else _section(properties, f"{name}.properties")
        options = value.get("options")
        if options is not None:
            options = _section(options, f"{name}.options")

        entities.append(
            Entity(
                name=name,
                kind=RESOURCE,
                type=resource_type.value,
                properties=properties,
                options=options,
                line=value.line,
            )
        )
    return entities


def load_template(text: str) -> Template:
    return Template.from_node(load(text))


def load_template_file(file_path: str) -> Template:
    return Template.from_node(load_file(file_path))
