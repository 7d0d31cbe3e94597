# document.py
"""
In-memory tree for YAML documents.

Nodes keep their source line so later stages can point at the offending
declaration, but the line is ignored when comparing trees.
"""

import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Set, Tuple, Union

from .errors import ParseError

ScalarValue = Union[str, int, float, bool, None]

# Tags whose constructed value is kept; any other scalar stays as its source text
_TYPED_TAGS = {
    "tag:yaml.org,2002:str",
    "tag:yaml.org,2002:int",
    "tag:yaml.org,2002:float",
    "tag:yaml.org,2002:bool",
    "tag:yaml.org,2002:null",
}
_MERGE_TAG = "tag:yaml.org,2002:merge"


@dataclass(frozen=True)
class Scalar:
    value: ScalarValue
    line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Sequence:
    items: Tuple["Node", ...] = ()
    line: int = field(default=0, compare=False)

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> "Node":
        return self.items[index]


@dataclass(frozen=True)
class Mapping:
    entries: Tuple[Tuple[str, "Node"], ...] = ()
    line: int = field(default=0, compare=False)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.entries)

    def __getitem__(self, key: str) -> "Node":
        for k, value in self.entries:
            if k == key:
                return value
        raise KeyError(key)

    def get(self, key: str, default: Optional["Node"] = None) -> Optional["Node"]:
        for k, value in self.entries:
            if k == key:
                return value
        return default

    def keys(self):
        return [k for k, _ in self.entries]

    def items(self):
        return list(self.entries)


Node = Union[Mapping, Sequence, Scalar]


def load(text: str) -> Node:
    """Parse YAML text into a Node tree, rejecting duplicate keys."""
    try:
        loader = yaml.SafeLoader(text)
    except yaml.YAMLError as e:
        raise ParseError(f"Unreadable document: {e}") from e

    try:
        root = loader.get_single_node()
        if root is None:
            raise ParseError("Document is empty")
        return _convert(loader, root, set(), {})
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        problem = e.problem or e.context or "malformed document"
        if mark is None:
            raise ParseError(problem) from e
        raise ParseError(problem, mark.line + 1, mark.column + 1) from e
    except yaml.YAMLError as e:
        raise ParseError(str(e)) from e
    finally:
        loader.dispose()


def load_file(file_path: str) -> Node:
    try:
        with open(file_path, "r") as file:
            text = file.read()
    except OSError as e:
        raise ParseError(f"Cannot read '{file_path}': {e.strerror}") from e
    return load(text)


def _convert(loader: yaml.SafeLoader, node: yaml.Node, active: Set[int], done: Dict[int, Node]) -> Node:
    line = node.start_mark.line + 1

    if isinstance(node, yaml.ScalarNode):
        if node.tag in _TYPED_TAGS:
            return Scalar(loader.construct_object(node, deep=True), line)
        return Scalar(node.value, line)

    # Aliases share the composed node, convert it once
    if id(node) in done:
        return done[id(node)]
    if id(node) in active:
        raise ParseError("Recursive alias", line, node.start_mark.column + 1)
    active.add(id(node))
    try:
        if isinstance(node, yaml.SequenceNode):
            result: Node = Sequence(tuple(_convert(loader, item, active, done) for item in node.value), line)
            done[id(node)] = result
            return result

        # Duplicates are checked on the keys as written, before merge keys are expanded
        seen: Set[str] = set()
        for key_node, _ in node.value:
            if key_node.tag == _MERGE_TAG:
                continue
            key = _key(key_node)
            if key in seen:
                raise ParseError(
                    f"Duplicate key '{key}'", key_node.start_mark.line + 1, key_node.start_mark.column + 1
                )
            seen.add(key)

        loader.flatten_mapping(node)
        entries: Dict[str, Node] = {}
        for key_node, value_node in node.value:
            entries[_key(key_node)] = _convert(loader, value_node, active, done)
        result = Mapping(tuple(entries.items()), line)
        done[id(node)] = result
        return result
    finally:
        active.discard(id(node))


def _key(node: yaml.Node) -> str:
    """Keys are kept as the text written, so `1` and `"1"` name the same entry."""
    if not isinstance(node, yaml.ScalarNode):
        raise ParseError("Mapping keys must be scalars", node.start_mark.line + 1, node.start_mark.column + 1)
    return node.value


def to_python(node: Node) -> Any:
    if isinstance(node, Mapping):
        return {key: to_python(value) for key, value in node.entries}
    if isinstance(node, Sequence):
        return [to_python(item) for item in node.items]
    return node.value


def from_python(data: Any) -> Node:
    """Build a tree from plain dicts, lists and scalars."""
    if isinstance(data, dict):
        return Mapping(tuple((str(key), from_python(value)) for key, value in data.items()))
    if isinstance(data, (list, tuple)):
        return Sequence(tuple(from_python(item) for item in data))
    if data is None or isinstance(data, (str, int, float, bool)):
        return Scalar(data)
    raise TypeError(f"Unsupported value of type {type(data).__name__}")


def dump(node: Node) -> str:
    return yaml.safe_dump(to_python(node), sort_keys=False, default_flow_style=False, allow_unicode=True)
