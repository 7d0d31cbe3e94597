# references.py
"""
Interpolation handling for ``${...}`` tokens.

A string scalar is split into literal text and typed references, e.g.
``${registry.loginServer}/node-app:v1.0.0`` becomes
``[Reference("registry", path=("loginServer",)), "/node-app:v1.0.0"]``.
``$${`` stands for a literal ``${``.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .document import Mapping, Node, Sequence
from .errors import MissingValueError, UnknownReferenceError, UnresolvedSyntaxError

_IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
_BODY_RE = re.compile(rf"^({_IDENTIFIER})((?:\[\d+\]|\.{_IDENTIFIER})*)$")
_ACCESSOR_RE = re.compile(rf"\[(\d+)\]|\.({_IDENTIFIER})")

Accessor = Union[str, int]


@dataclass(frozen=True)
class Reference:
    entity: str
    index: Optional[int] = None
    path: Tuple[Accessor, ...] = ()

    @property
    def field(self) -> Optional[str]:
        if not self.path:
            return None
        text = ""
        for step in self.path:
            text += f"[{step}]" if isinstance(step, int) else f".{step}"
        return text.lstrip(".")

    def __str__(self) -> str:
        text = self.entity
        if self.index is not None:
            text += f"[{self.index}]"
        if self.path:
            field = self.field
            text += field if field.startswith("[") else f".{field}"
        return "${" + text + "}"


@dataclass(frozen=True)
class Interpolation:
    parts: Tuple[Union[str, Reference], ...] = ()

    @property
    def references(self) -> List[Reference]:
        return [part for part in self.parts if isinstance(part, Reference)]

    @property
    def literal(self) -> str:
        return "".join(part for part in self.parts if isinstance(part, str))

    @property
    def is_pure(self) -> bool:
        return len(self.parts) == 1 and isinstance(self.parts[0], Reference)


def parse_reference(body: str, text: str = "", column: int = 0) -> Reference:
    """Parse the inside of a ``${...}`` token."""
    match = _BODY_RE.match(body)
    if not match:
        raise UnresolvedSyntaxError(text or body, column, f"'{body}' is not a valid reference")

    accessors: List[Accessor] = []
    for index, name in _ACCESSOR_RE.findall(match.group(2)):
        accessors.append(int(index) if index else name)

    entity_index = None
    if accessors and isinstance(accessors[0], int):
        entity_index = accessors.pop(0)
    return Reference(match.group(1), entity_index, tuple(accessors))


def parse_interpolation(text: str) -> Interpolation:
    parts: List[Union[str, Reference]] = []
    literal = ""
    pos = 0

    while True:
        start = text.find("${", pos)
        if start == -1:
            literal += text[pos:]
            break

        # "$${" escapes the token
        if start > 0 and text[start - 1] == "$":
            literal += text[pos:start - 1] + "${"
            pos = start + 2
            continue

        end = text.find("}", start + 2)
        if end == -1:
            raise UnresolvedSyntaxError(text, start + 1, "missing closing '}'")

        literal += text[pos:start]
        if literal:
            parts.append(literal)
            literal = ""
        parts.append(parse_reference(text[start + 2:end], text, start + 1))
        pos = end + 1

    if literal:
        parts.append(literal)
    return Interpolation(tuple(parts))


def find_references(node: Node, prefix: str = "") -> List[Tuple[str, Reference]]:
    """Every reference in the string scalars of a tree, with the field path it was found at."""
    found: List[Tuple[str, Reference]] = []
    if isinstance(node, Mapping):
        for key, value in node.items():
            found.extend(find_references(value, f"{prefix}.{key}" if prefix else key))
    elif isinstance(node, Sequence):
        for i, item in enumerate(node):
            found.extend(find_references(item, f"{prefix}[{i}]"))
    elif isinstance(node.value, str) and "${" in node.value:
        for reference in parse_interpolation(node.value).references:
            found.append((prefix, reference))
    return found


def lookup(reference: Reference, values: Dict[str, Any]) -> Any:
    if reference.entity not in values:
        raise UnknownReferenceError([reference.entity])

    value = values[reference.entity]
    steps: List[Accessor] = [] if reference.index is None else [reference.index]
    steps.extend(reference.path)

    for step in steps:
        if isinstance(step, int):
            try:
                value = value[step]
            except (IndexError, KeyError, TypeError):
                raise MissingValueError(str(reference), f"index {step} not found") from None
        elif isinstance(value, dict):
            if step not in value:
                raise MissingValueError(str(reference), f"field '{step}' not found")
            value = value[step]
        else:
            attr_val = getattr(value, step, None)
            if attr_val is None:
                raise MissingValueError(str(reference), f"attribute '{step}' not found")
            value = attr_val
    return value


def render(node: Node, values: Dict[str, Any], builtins: Optional[Dict[str, Any]] = None) -> Any:
    """Turn a tree into plain data with every reference replaced by its value.

    A scalar that is a single reference keeps the referenced value as is;
    references mixed with text are rendered into the string.
    """
    scope = dict(builtins or {})
    scope.update(values)

    if isinstance(node, Mapping):
        return {key: render(value, scope) for key, value in node.items()}
    if isinstance(node, Sequence):
        return [render(item, scope) for item in node]
    if not isinstance(node.value, str) or "$" not in node.value:
        return node.value

    interpolation = parse_interpolation(node.value)
    if interpolation.is_pure:
        return lookup(interpolation.parts[0], scope)

    rendered = ""
    for part in interpolation.parts:
        rendered += part if isinstance(part, str) else str(lookup(part, scope))
    return rendered
