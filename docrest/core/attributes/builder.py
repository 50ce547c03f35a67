from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .coercers import MISSING, coerce_leaf, lookup
from .config import BuilderConfig
from .exceptions import SchemaDepthError
from .mask import apply_mask, child_mask, is_excluded
from .schema import ArrayOf, EmptyContainer, LeafType, ObjectOf, SchemaNode, compile_schema

log = logging.getLogger("docrest.attributes")


def _first_defined(*values: Any) -> Any:
    for value in values:
        if value is not MISSING:
            return value
    return MISSING


def _fresh(value: Any) -> Any:
    # Output trees never share containers with the inputs.
    if isinstance(value, tuple):
        return deepcopy(list(value))
    if isinstance(value, list):
        return deepcopy(value)
    if isinstance(value, Mapping):
        return deepcopy(dict(value))
    return value


def _as_list(value: Any) -> Optional[List[Any]]:
    """Return value as a list, or None when it is not a sequence container."""

    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return None


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


@dataclass(frozen=True)
class AttributeBuilder:
    """Build a normalized attribute tree from schema, defaults, json and attrs.

    For every schema key (declaration order):
    - masked keys (ignored[key] is True) are omitted
    - `[]` / `{}` fields take attrs, then defaults, then an empty container
    - arrays and objects recurse or fall back to attrs/defaults/empty
    - leaves go through the type coercer for their tag

    The result holds exactly the schema keys minus masked keys. Containers
    taken whole from attrs or defaults have nested masked keys stripped too.
    Data never raises; only schema configuration problems do.

    Security notes:
    - json is untrusted client input; unexpected shapes count as empty.
    - Recursion follows the schema, never the input, and is depth bounded.

    """

    config: BuilderConfig = field(default_factory=BuilderConfig.from_env)

    def compile(self, schema: Any) -> ObjectOf:
        """Compile a schema literal with this builder's depth limit."""

        return compile_schema(schema, max_depth=self.config.max_depth)

    def build(
        self,
        schema: Any,
        defaults: Any = None,
        json: Any = None,
        attrs: Any = None,
        ignored: Any = None,
    ) -> Dict[str, Any]:
        """Build an AttributeTree.

        schema may be a literal or an already compiled ObjectOf; compile
        literals once up front when building repeatedly.
        """

        node = schema if isinstance(schema, ObjectOf) else self.compile(schema)
        return self._build_object(node, defaults, json, attrs, ignored, path="", depth=1)

    def _build_object(
        self,
        node: ObjectOf,
        defaults: Any,
        json: Any,
        attrs: Any,
        ignored: Any,
        *,
        path: str,
        depth: int,
    ) -> Dict[str, Any]:
        if depth > self.config.max_depth:
            raise SchemaDepthError(path, self.config.max_depth)

        out: Dict[str, Any] = {}
        for key, child in node.fields.items():
            if is_excluded(ignored, key):
                continue
            out[key] = self._build_value(
                child,
                json_val=lookup(json, key),
                defaults_val=lookup(defaults, key),
                attrs_val=lookup(attrs, key),
                ignored_val=child_mask(ignored, key),
                path=_join(path, key),
                depth=depth,
            )
        return out

    def _build_value(
        self,
        node: SchemaNode,
        *,
        json_val: Any,
        defaults_val: Any,
        attrs_val: Any,
        ignored_val: Optional[Mapping[str, Any]],
        path: str,
        depth: int,
    ) -> Any:
        if isinstance(node, EmptyContainer):
            value = _first_defined(attrs_val, defaults_val, node.empty_value())
            return _fresh(apply_mask(value, ignored_val))

        if isinstance(node, ArrayOf):
            return self._build_array(
                node,
                json_val=json_val,
                defaults_val=defaults_val,
                attrs_val=attrs_val,
                ignored_val=ignored_val,
                path=path,
                depth=depth,
            )

        if isinstance(node, ObjectOf):
            if json_val is None or json_val is MISSING:
                return _fresh(apply_mask(_first_defined(attrs_val, defaults_val, {}), ignored_val))
            # Setting an empty object resets to defaults
            if not isinstance(json_val, Mapping) or not json_val:
                return _fresh(apply_mask(_first_defined(defaults_val, {}), ignored_val))
            return self._build_object(
                node, defaults_val, json_val, attrs_val, ignored_val, path=path, depth=depth + 1
            )

        if isinstance(node, LeafType):
            res = coerce_leaf(node.tag, json_val, attrs_val, defaults_val)
            if res.fell_back and self.config.log_fallbacks:
                log.debug(
                    "attribute_fallback",
                    extra={"attribute": path, "tag": node.tag.value, "source": res.source},
                )
            return _fresh(res.value)

        raise TypeError(f"unexpected schema node at {path}: {node!r}")

    def _build_array(
        self,
        node: ArrayOf,
        *,
        json_val: Any,
        defaults_val: Any,
        attrs_val: Any,
        ignored_val: Optional[Mapping[str, Any]],
        path: str,
        depth: int,
    ) -> Any:
        if json_val is None or json_val is MISSING:
            return _fresh(apply_mask(_first_defined(attrs_val, defaults_val, []), ignored_val))

        items = _as_list(json_val)

        # Scalar elements are taken as sent. An empty (or non-list) value falls
        # through to the current attribute, not to the defaults.
        if node.holds_scalars:
            if items:
                return _fresh(apply_mask(items, ignored_val))
            return _fresh(apply_mask(_first_defined(attrs_val, defaults_val, []), ignored_val))

        # Setting an empty array resets to defaults
        if not items:
            return _fresh(apply_mask(_first_defined(defaults_val, []), ignored_val))

        element = node.element
        out: List[Any] = []
        for i, item in enumerate(items):
            item_path = f"{path}[{i}]"
            if isinstance(element, ObjectOf):
                out.append(
                    self._build_object(
                        element,
                        defaults_val,
                        item,
                        attrs_val,
                        ignored_val,
                        path=item_path,
                        depth=depth + 1,
                    )
                )
            else:
                # Nested arrays: each element stands alone.
                out.append(
                    self._build_value(
                        element,
                        json_val=item,
                        defaults_val=MISSING,
                        attrs_val=MISSING,
                        ignored_val=ignored_val,
                        path=item_path,
                        depth=depth + 1,
                    )
                )
        return out


def build_attributes(
    schema: Any,
    defaults: Any = None,
    json: Any = None,
    attrs: Any = None,
    ignored: Any = None,
    *,
    config: Optional[BuilderConfig] = None,
) -> Dict[str, Any]:
    """Functional form of AttributeBuilder.build."""

    builder = AttributeBuilder(config=config) if config is not None else AttributeBuilder()
    return builder.build(schema, defaults, json, attrs, ignored)
