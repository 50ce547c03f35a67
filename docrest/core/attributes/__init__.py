"""Schema-driven attribute building for docrest.

The attribute builder reconciles a declared schema, default values, an
untrusted JSON payload and a record's current attributes into one normalized
attribute tree, with per-field type coercion and a key exclusion mask.

Security notes:
- Treat every incoming payload as attacker-controlled.
- Data problems degrade through the fallback chain; only schema
  configuration problems raise.
"""

from .builder import AttributeBuilder, build_attributes
from .coercers import MISSING, Coerced, coerce, coerce_leaf, is_defined
from .config import DEFAULT_MAX_DEPTH, BuilderConfig
from .exceptions import (
    CyclicSchemaError,
    InvalidSchemaNodeError,
    ModelDefinitionError,
    SchemaConfigurationError,
    SchemaDepthError,
    SchemaError,
)
from .mask import (
    apply_mask,
    child_mask,
    combine_masks,
    excluded_paths,
    is_excluded,
    mask_from_paths,
)
from .resolver import ResolvedDefinition, SchemaResolver, merge_defaults, merge_schema, resolve_definition
from .schema import (
    ArrayOf,
    ContainerKind,
    EmptyContainer,
    LeafTag,
    LeafType,
    ObjectOf,
    SchemaNode,
    compile_schema,
    count_fields,
    node_depth,
    to_literal,
)

__all__ = [
    "AttributeBuilder",
    "build_attributes",
    "MISSING",
    "Coerced",
    "coerce",
    "coerce_leaf",
    "is_defined",
    "DEFAULT_MAX_DEPTH",
    "BuilderConfig",
    "SchemaError",
    "SchemaConfigurationError",
    "InvalidSchemaNodeError",
    "SchemaDepthError",
    "CyclicSchemaError",
    "ModelDefinitionError",
    "is_excluded",
    "apply_mask",
    "child_mask",
    "mask_from_paths",
    "combine_masks",
    "excluded_paths",
    "SchemaResolver",
    "ResolvedDefinition",
    "resolve_definition",
    "merge_schema",
    "merge_defaults",
    "SchemaNode",
    "LeafTag",
    "ContainerKind",
    "EmptyContainer",
    "LeafType",
    "ArrayOf",
    "ObjectOf",
    "compile_schema",
    "count_fields",
    "node_depth",
    "to_literal",
]
