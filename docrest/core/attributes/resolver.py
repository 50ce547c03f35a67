from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .config import BuilderConfig
from .exceptions import InvalidSchemaNodeError
from .schema import ObjectOf, compile_schema, is_schema_node, to_literal

Definition = Union[Mapping[str, Any], ObjectOf, Callable[[], Any], None]


def resolve_definition(value: Definition) -> Any:
    """Resolve a static definition or a zero-argument producer.

    `None` (and producers returning None) resolve to an empty mapping.
    """

    if callable(value) and not is_schema_node(value):
        value = value()
    if value is None:
        return {}
    return value


def _as_literal(value: Any, what: str) -> Dict[str, Any]:
    if isinstance(value, ObjectOf):
        return to_literal(value)
    if not isinstance(value, Mapping):
        raise InvalidSchemaNodeError(f"{what} must resolve to a mapping, got {type(value).__name__}")
    return dict(value)


def merge_schema(schema: Definition, base_schema: Definition = None) -> Dict[str, Any]:
    """Merge a model schema with the shared base schema.

    Base keys absent from the model schema are added. On a shared key the
    base entry wins, except that two object schemas are merged key by key.
    Neither input is mutated.
    """

    own = _as_literal(resolve_definition(schema), "schema")
    base = _as_literal(resolve_definition(base_schema), "base_schema")
    return _merge_base_wins(own, base)


def _merge_base_wins(own: Mapping[str, Any], base: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = dict(own)
    for key, base_value in base.items():
        own_value = out.get(key)
        if isinstance(own_value, Mapping) and isinstance(base_value, Mapping) and own_value and base_value:
            out[key] = _merge_base_wins(own_value, base_value)
        else:
            out[key] = base_value
    return out


def merge_defaults(defaults: Definition, base_defaults: Definition = None) -> Dict[str, Any]:
    """Merge model defaults with base defaults; model entries win, base fills gaps."""

    own = resolve_definition(defaults)
    base = resolve_definition(base_defaults)
    if not isinstance(own, Mapping):
        raise InvalidSchemaNodeError(f"defaults must resolve to a mapping, got {type(own).__name__}")
    if not isinstance(base, Mapping):
        raise InvalidSchemaNodeError(
            f"base_defaults must resolve to a mapping, got {type(base).__name__}"
        )
    out = deepcopy(dict(own))
    for key, value in base.items():
        if key not in out:
            out[key] = deepcopy(value)
    return out


@dataclass(frozen=True)
class ResolvedDefinition:
    """Everything a builder call needs, resolved once for an owner."""

    schema: ObjectOf
    defaults: Mapping[str, Any]
    read_only: Mapping[str, Any]
    hidden: Mapping[str, Any]


def _resolve_mask(value: Definition, what: str) -> Dict[str, Any]:
    mask = resolve_definition(value)
    if not isinstance(mask, Mapping):
        raise InvalidSchemaNodeError(f"{what} must resolve to a mapping, got {type(mask).__name__}")
    return dict(mask)


@dataclass
class SchemaResolver:
    """Resolve and cache schema/defaults/mask definitions per owner.

    An owner is any object (normally a Model subclass) exposing the
    attributes schema, base_schema, defaults, base_defaults,
    read_only_attributes and hidden_attributes. Producers are called once;
    the compiled result is reused until clear() is called.

    - resolve_for: O(schema size) on first use, O(1) afterwards
    """

    config: BuilderConfig = field(default_factory=BuilderConfig.from_env)

    _cache: Dict[Any, ResolvedDefinition] = field(default_factory=dict, init=False, repr=False)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def resolve_schema(self, schema: Definition, base_schema: Definition = None) -> ObjectOf:
        """Resolve, merge and compile a schema pair."""

        if base_schema is None:
            resolved = resolve_definition(schema)
            if isinstance(resolved, ObjectOf):
                return compile_schema(resolved, max_depth=self.config.max_depth)
            return compile_schema(_as_literal(resolved, "schema"), max_depth=self.config.max_depth)
        return compile_schema(merge_schema(schema, base_schema), max_depth=self.config.max_depth)

    def resolve_defaults(
        self, defaults: Definition, base_defaults: Definition = None
    ) -> Dict[str, Any]:
        return merge_defaults(defaults, base_defaults)

    def resolve_for(self, owner: Any) -> ResolvedDefinition:
        """Resolve the full definition of an owner, cached by identity."""

        with self._lock:
            cached = self._cache.get(owner)
        if cached is not None:
            return cached

        resolved = ResolvedDefinition(
            schema=self.resolve_schema(
                getattr(owner, "schema", None), getattr(owner, "base_schema", None)
            ),
            defaults=self.resolve_defaults(
                getattr(owner, "defaults", None), getattr(owner, "base_defaults", None)
            ),
            read_only=_resolve_mask(
                getattr(owner, "read_only_attributes", None), "read_only_attributes"
            ),
            hidden=_resolve_mask(getattr(owner, "hidden_attributes", None), "hidden_attributes"),
        )

        with self._lock:
            # First writer wins so every caller sees the same object.
            return self._cache.setdefault(owner, resolved)

    def clear(self, owner: Optional[Any] = None) -> None:
        with self._lock:
            if owner is None:
                self._cache.clear()
            else:
                self._cache.pop(owner, None)
