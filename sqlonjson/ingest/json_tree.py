"""
Tagged JSON tree model.

The standard library parser is used as the tokenizer only. Its output is
converted into immutable nodes that keep object key order, duplicate keys
and the exact source text of every number, so that nested fragments can be
re-emitted verbatim as compact JSON.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Iterator, List, Optional, Tuple

from sqlonjson.common.exceptions import ParseError


class JsonKind(str, Enum):
    """Enumeration of JSON node kinds."""
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


@dataclass(frozen=True)
class JsonNode:
    """Base class for all JSON tree nodes."""
    kind: ClassVar[JsonKind]


@dataclass(frozen=True)
class JsonObject(JsonNode):
    """Object node: ordered (name, node) pairs."""
    kind: ClassVar[JsonKind] = JsonKind.OBJECT
    members: Tuple[Tuple[str, JsonNode], ...] = ()

    def items(self) -> Iterator[Tuple[str, JsonNode]]:
        return iter(self.members)

    def keys(self) -> List[str]:
        return [name for name, _ in self.members]

    def get(self, name: str) -> Optional[JsonNode]:
        """Return the last value stored under ``name``, if any."""
        found = None
        for key, value in self.members:
            if key == name:
                found = value
        return found

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class JsonArray(JsonNode):
    """Array node: ordered elements."""
    kind: ClassVar[JsonKind] = JsonKind.ARRAY
    elements: Tuple[JsonNode, ...] = ()

    def __iter__(self) -> Iterator[JsonNode]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(frozen=True)
class JsonString(JsonNode):
    kind: ClassVar[JsonKind] = JsonKind.STRING
    value: str = ""


@dataclass(frozen=True)
class JsonNumber(JsonNode):
    """Number node holding the literal exactly as written in the source."""
    kind: ClassVar[JsonKind] = JsonKind.NUMBER
    literal: str = "0"

    @property
    def is_integral(self) -> bool:
        """True when the literal has no fractional part and no exponent."""
        return not any(c in self.literal for c in ".eE")


@dataclass(frozen=True)
class JsonBoolean(JsonNode):
    kind: ClassVar[JsonKind] = JsonKind.BOOLEAN
    value: bool = False


@dataclass(frozen=True)
class JsonNull(JsonNode):
    kind: ClassVar[JsonKind] = JsonKind.NULL


JSON_NULL = JsonNull()
EMPTY_DOCUMENT = JsonObject()


def _reject_constant(name: str) -> Any:
    raise ParseError(f"{name} is not a valid JSON value")


def _scalar_node(value: Any) -> JsonNode:
    if isinstance(value, JsonNode):
        return value
    if value is None:
        return JSON_NULL
    if isinstance(value, bool):
        return JsonBoolean(value)
    if isinstance(value, str):
        return JsonString(value)
    raise ParseError(f"Unexpected parser value of type {type(value).__name__}")


def _to_node(value: Any) -> JsonNode:
    """
    Wrap a partially converted parser value into a node.

    Nested lists are converted bottom-up with an explicit stack, so the
    depth of a document is only limited by the parser itself.
    """
    if not isinstance(value, list):
        return _scalar_node(value)

    # Each entry: (iterator over a source list, nodes converted so far)
    stack = [(iter(value), [])]
    while True:
        items, converted = stack[-1]
        for item in items:
            if isinstance(item, list):
                stack.append((iter(item), []))
                break
            converted.append(_scalar_node(item))
        else:
            stack.pop()
            node = JsonArray(tuple(converted))
            if not stack:
                return node
            stack[-1][1].append(node)


def _object_hook(pairs: List[Tuple[str, Any]]) -> JsonObject:
    return JsonObject(tuple((name, _to_node(value)) for name, value in pairs))


def parse_json(text: str) -> JsonNode:
    """
    Parse JSON text into a tree of nodes.

    Blank input is treated as an empty document.

    Args:
        text: JSON document text

    Returns:
        Root node of the parsed document

    Raises:
        ParseError: If the text is not valid JSON
    """
    if not text or not text.strip():
        return EMPTY_DOCUMENT

    try:
        parsed = json.loads(
            text,
            object_pairs_hook=_object_hook,
            parse_int=JsonNumber,
            parse_float=JsonNumber,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON: {e.msg}", e.lineno, e.colno) from e
    except RecursionError as e:
        raise ParseError("JSON document is nested too deeply") from e

    return _to_node(parsed)


def _from_python(value: Any) -> JsonNode:
    if isinstance(value, JsonNode):
        return value
    if value is None:
        return JSON_NULL
    if isinstance(value, bool):
        return JsonBoolean(value)
    if isinstance(value, int):
        return JsonNumber(str(value))
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ParseError(f"{value!r} is not a valid JSON value")
        return JsonNumber(repr(value))
    if isinstance(value, str):
        return JsonString(value)
    if isinstance(value, dict):
        return JsonObject(tuple(
            (str(name), _from_python(item)) for name, item in value.items()
        ))
    if isinstance(value, (list, tuple)):
        return JsonArray(tuple(_from_python(item) for item in value))
    raise ParseError(
        f"Values of type {type(value).__name__} cannot be represented as JSON")


def from_python(value: Any) -> JsonNode:
    """
    Build a tree from already decoded Python data.

    Args:
        value: dict/list/str/int/float/bool/None structure

    Returns:
        Equivalent JSON node

    Raises:
        ParseError: If the value contains something JSON cannot represent,
            or is nested deeper than the interpreter can follow
    """
    try:
        return _from_python(value)
    except RecursionError as e:
        raise ParseError("Python value is nested too deeply") from e


def _scalar_json(node: JsonNode) -> str:
    if node.kind == JsonKind.STRING:
        return json.dumps(node.value, ensure_ascii=False)
    if node.kind == JsonKind.NUMBER:
        return node.literal
    if node.kind == JsonKind.BOOLEAN:
        return "true" if node.value else "false"
    return "null"


def to_compact_json(node: JsonNode) -> str:
    """
    Render a node as compact JSON text.

    Key order is preserved and numbers are emitted exactly as they were
    written in the source document. Containers are walked with an explicit
    stack, so any tree the parser accepted can be rendered.
    """
    parts: List[str] = []
    # Pending work, popped from the end: literal text or a node to render
    pending: List[Any] = [node]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif item.kind == JsonKind.OBJECT:
            pending.append("}")
            for index in range(len(item.members) - 1, -1, -1):
                name, value = item.members[index]
                pending.append(value)
                pending.append(json.dumps(name, ensure_ascii=False) + ":")
                if index:
                    pending.append(",")
            parts.append("{")
        elif item.kind == JsonKind.ARRAY:
            pending.append("]")
            for index in range(len(item.elements) - 1, -1, -1):
                pending.append(item.elements[index])
                if index:
                    pending.append(",")
            parts.append("[")
        else:
            parts.append(_scalar_json(item))
    return "".join(parts)
