from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from docrest.core.attributes import (
    BuilderConfig,
    ModelDefinitionError,
    ObjectOf,
    SchemaResolver,
    mask_from_paths,
)

from .model import Model


def _mask(value: Any) -> Any:
    # Masks may be written as a list of dotted paths.
    if isinstance(value, list):
        return mask_from_paths(str(v) for v in value)
    return value


class ModelDefinition(BaseModel):
    """A record type declared as data (JSON file or dict).

    Example:

        {
          "name": "User",
          "collection_name": "users",
          "schema": {"name": "string", "age": "uinteger", "password": "string"},
          "defaults": {"age": 0},
          "read_only_attributes": ["_id"],
          "hidden_attributes": {"password": true}
        }

    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = Field(min_length=1)
    collection_name: Optional[str] = None
    id_attribute: str = "_id"
    user_id_attribute: str = "user_id"
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    base_schema: Dict[str, Any] = Field(default_factory=dict)
    defaults: Dict[str, Any] = Field(default_factory=dict)
    base_defaults: Dict[str, Any] = Field(default_factory=dict)
    read_only_attributes: Dict[str, Any] = Field(default_factory=dict)
    hidden_attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("read_only_attributes", "hidden_attributes", mode="before")
    @classmethod
    def _paths_to_mask(cls, value: Union[Dict[str, Any], List[str], None]) -> Any:
        if value is None:
            return {}
        return _mask(value)

    def compile(self, config: Optional[BuilderConfig] = None) -> ObjectOf:
        """Compile the combined schema; raises SchemaConfigurationError when invalid."""

        resolver = SchemaResolver(config=config) if config is not None else SchemaResolver()
        return resolver.resolve_schema(self.schema_, self.base_schema or None)

    def to_model_class(self, *, resolver: Optional[SchemaResolver] = None) -> Type[Model]:
        """Return a Model subclass configured from this definition.

        Without `resolver` the class gets a resolver of its own, so the
        resolved definition is released together with the class.
        """

        attrs: Dict[str, Any] = {
            "__doc__": f"Model generated from definition {self.name!r}.",
            "collection_name": self.collection_name or self.name.lower(),
            "id_attribute": self.id_attribute,
            "user_id_attribute": self.user_id_attribute,
            "schema": deepcopy(self.schema_),
            "base_schema": deepcopy(self.base_schema),
            "defaults": deepcopy(self.defaults),
            "base_defaults": deepcopy(self.base_defaults),
            "read_only_attributes": deepcopy(self.read_only_attributes),
            "hidden_attributes": deepcopy(self.hidden_attributes),
            "resolver": resolver if resolver is not None else SchemaResolver(),
        }
        return type(self.name, (Model,), attrs)


def load_model_definition(path: Union[str, Path]) -> ModelDefinition:
    """Read and validate a model definition JSON file.

    Raises
    - ModelDefinitionError: unreadable file, invalid JSON, or invalid shape.
    """

    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ModelDefinitionError(f"cannot read model definition {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ModelDefinitionError(f"invalid JSON in model definition {p}: {e}") from e

    if not isinstance(data, dict):
        raise ModelDefinitionError(f"model definition {p} must be a JSON object")
    if "name" not in data:
        data = {"name": p.stem, **data}

    try:
        return ModelDefinition.model_validate(data)
    except ValidationError as e:
        raise ModelDefinitionError(f"invalid model definition {p}: {e}") from e
