from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Set, Union

from .config import DEFAULT_MAX_DEPTH
from .exceptions import CyclicSchemaError, InvalidSchemaNodeError, SchemaDepthError


class LeafTag(str, Enum):
    """
    Enumerated leaf type tags.

    Using str Enum keeps tags comparable with the plain strings used in
    schema literals.
    """

    STRING = "string"
    ID = "id"
    INTEGER = "integer"
    UINTEGER = "uinteger"
    FLOAT = "float"
    UFLOAT = "ufloat"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    DATE = "date"
    OTHER = "other"

    @classmethod
    def from_literal(cls, raw: str) -> "LeafTag":
        """Map a schema string to a tag; unknown names become OTHER."""

        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class ContainerKind(str, Enum):
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class EmptyContainer:
    """Untyped pass-through field declared as `[]` or `{}`."""

    kind: ContainerKind

    def empty_value(self) -> Any:
        return [] if self.kind == ContainerKind.ARRAY else {}


@dataclass(frozen=True)
class LeafType:
    """Scalar field coerced by the matching type coercer."""

    tag: LeafTag


@dataclass(frozen=True)
class ArrayOf:
    """Sequence field; every element follows `element`."""

    element: "SchemaNode"

    @property
    def holds_scalars(self) -> bool:
        return isinstance(self.element, (LeafType, EmptyContainer))


@dataclass(frozen=True, eq=False)
class ObjectOf:
    """Nested mapping; keys are kept in declaration order."""

    fields: Mapping[str, "SchemaNode"]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectOf):
            return NotImplemented
        return list(self.fields.items()) == list(other.fields.items())

    def __hash__(self) -> int:
        return hash(tuple(self.fields.items()))


SchemaNode = Union[EmptyContainer, LeafType, ArrayOf, ObjectOf]

_NODE_TYPES = (EmptyContainer, LeafType, ArrayOf, ObjectOf)


def is_schema_node(value: Any) -> bool:
    return isinstance(value, _NODE_TYPES)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _compile_node(
    raw: Any,
    *,
    path: str,
    depth: int,
    max_depth: int,
    active: Set[int],
) -> SchemaNode:
    """Compile one literal value into a SchemaNode.

    `depth` counts the containers enclosing `raw`; `active` holds the ids of
    the literal containers currently being compiled.

    """

    if isinstance(raw, _NODE_TYPES):
        if depth + node_depth(raw) > max_depth:
            raise SchemaDepthError(path, max_depth)
        return raw

    if isinstance(raw, str):
        return LeafType(LeafTag.from_literal(raw))

    if isinstance(raw, (list, tuple, dict, Mapping)):
        if len(raw) == 0:
            kind = ContainerKind.OBJECT if isinstance(raw, Mapping) else ContainerKind.ARRAY
            return EmptyContainer(kind)

        marker = id(raw)
        if marker in active:
            raise CyclicSchemaError(f"schema refers back to itself at {path or '<root>'}")
        if depth + 1 > max_depth:
            raise SchemaDepthError(path, max_depth)

        active.add(marker)
        try:
            if isinstance(raw, Mapping):
                fields: Dict[str, SchemaNode] = {}
                for key, value in raw.items():
                    if not isinstance(key, str):
                        raise InvalidSchemaNodeError(
                            f"schema keys must be strings, got {type(key).__name__} at {path or '<root>'}"
                        )
                    fields[key] = _compile_node(
                        value,
                        path=_join(path, key),
                        depth=depth + 1,
                        max_depth=max_depth,
                        active=active,
                    )
                return ObjectOf(fields)

            if len(raw) != 1:
                raise InvalidSchemaNodeError(
                    f"array schema must hold exactly one element schema at {path or '<root>'}"
                )
            element = _compile_node(
                raw[0],
                path=_join(path, "[]"),
                depth=depth + 1,
                max_depth=max_depth,
                active=active,
            )
            return ArrayOf(element)
        finally:
            active.discard(marker)

    raise InvalidSchemaNodeError(
        f"illegal schema value {type(raw).__name__} at {path or '<root>'}"
    )


def compile_schema(raw: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> ObjectOf:
    """Compile a structural schema literal into an ObjectOf tree.

    Accepted literal forms:
    - "integer", "string", ... (leaf; unknown names compile to `other`)
    - {"key": <schema>} (object)
    - [<schema>] (array of one element schema)
    - {} / [] (untyped pass-through container)

    `None` compiles to an empty object schema. The root must be an object.

    Raises
    - InvalidSchemaNodeError: illegal node values or a non-object root.
    - CyclicSchemaError: the literal contains itself.
    - SchemaDepthError: nesting deeper than max_depth.
    """

    if raw is None:
        return ObjectOf({})
    if isinstance(raw, ObjectOf):
        if node_depth(raw) > max_depth:
            raise SchemaDepthError("", max_depth)
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidSchemaNodeError(f"schema root must be a mapping, got {type(raw).__name__}")

    node = _compile_node(raw, path="", depth=0, max_depth=max_depth, active=set())
    if isinstance(node, EmptyContainer):
        return ObjectOf({})
    return node  # type: ignore[return-value]


def node_depth(node: SchemaNode) -> int:
    """Number of nested container levels (leaves and empty containers count 0)."""

    if isinstance(node, ObjectOf):
        return 1 + max((node_depth(child) for child in node.fields.values()), default=0)
    if isinstance(node, ArrayOf):
        return 1 + node_depth(node.element)
    return 0


def count_fields(node: SchemaNode) -> int:
    """Count declared keys across the whole tree."""

    if isinstance(node, ObjectOf):
        return sum(1 + count_fields(child) for child in node.fields.values())
    if isinstance(node, ArrayOf):
        return count_fields(node.element)
    return 0


def to_literal(node: SchemaNode) -> Any:
    """Render a compiled node back to its structural literal form."""

    if isinstance(node, LeafType):
        return node.tag.value
    if isinstance(node, EmptyContainer):
        return node.empty_value()
    if isinstance(node, ArrayOf):
        return [to_literal(node.element)]
    return {key: to_literal(child) for key, child in node.fields.items()}


def describe(node: Optional[SchemaNode]) -> str:
    if node is None:
        return "none"
    if isinstance(node, LeafType):
        return node.tag.value
    if isinstance(node, EmptyContainer):
        return f"empty-{node.kind.value}"
    if isinstance(node, ArrayOf):
        return f"array<{describe(node.element)}>"
    return f"object[{len(node.fields)}]"
