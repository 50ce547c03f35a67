from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, ClassVar, Dict, Mapping, Optional

from docrest.core.attributes import AttributeBuilder, ObjectOf, ResolvedDefinition, SchemaResolver

log = logging.getLogger("docrest.model")

_default_resolver = SchemaResolver()


class Model:
    """
    A record held as a normalized attribute tree.

    Subclasses declare their shape through class attributes. Each of
    schema, base_schema, defaults, base_defaults, read_only_attributes and
    hidden_attributes may be a static value or a zero-argument callable.

        class User(Model):
            collection_name = "users"
            schema = {"name": "string", "age": "uinteger", "password": "string"}
            defaults = {"age": 0}
            read_only_attributes = {"_id": True}
            hidden_attributes = {"password": True}

    Contract
    - set_from_request builds the client body against the current
      attributes, skipping read-only keys.
    - render builds the current attributes for a client, skipping hidden keys.
    - Attribute trees are replaced, never mutated in place.

    Persistence, routing and lifecycle hooks live outside this class.
    """

    # document-store id attribute, usually `_id`
    id_attribute: ClassVar[str] = "_id"
    user_id_attribute: ClassVar[str] = "user_id"

    # The document-store collection name
    collection_name: ClassVar[str] = "models"

    schema: ClassVar[Any] = None
    base_schema: ClassVar[Any] = None
    defaults: ClassVar[Any] = None
    base_defaults: ClassVar[Any] = None

    # Attributes that are not settable from the request
    read_only_attributes: ClassVar[Any] = None

    # Attributes that are stored but NOT rendered to clients
    hidden_attributes: ClassVar[Any] = None

    resolver: ClassVar[SchemaResolver] = _default_resolver

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None) -> None:
        attrs: Dict[str, Any] = deepcopy(dict(attributes or {}))
        for key, value in self.definition().defaults.items():
            if key not in attrs:
                attrs[key] = deepcopy(value)

        self.attributes: Dict[str, Any] = attrs
        self.changed: Dict[str, Any] = {}
        self._previous: Dict[str, Any] = deepcopy(attrs)

        self.request_attributes: Dict[str, Any] = {}
        self.changed_from_request: Dict[str, Any] = {}
        self.previous_from_request: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.collection_name} id={self.id!r}>"

    # Definition
    # ---

    @classmethod
    def definition(cls) -> ResolvedDefinition:
        """Resolved schema, defaults and masks for this class (cached)."""

        return cls.resolver.resolve_for(cls)

    @classmethod
    def combined_schema(cls) -> ObjectOf:
        return cls.definition().schema

    @classmethod
    def combined_defaults(cls) -> Dict[str, Any]:
        return deepcopy(dict(cls.definition().defaults))

    @classmethod
    def builder(cls) -> AttributeBuilder:
        return AttributeBuilder(config=cls.resolver.config)

    @classmethod
    def from_document(cls, resp: Any) -> "Model":
        """Create a model from a document-store response."""

        model = cls()
        model.set(model.parse(resp))
        return model

    # Building
    # ---

    def parse(self, resp: Any) -> Dict[str, Any]:
        """Apply defaults and schema to a document-store response.

        An insert may answer with a list holding one document; it is unwrapped.
        """

        if isinstance(resp, (list, tuple)):
            resp = resp[0] if resp else {}

        d = self.definition()
        return self.builder().build(d.schema, d.defaults, resp, resp)

    def set_from_request(self, body: Any) -> "Model":
        """Set attributes from an untrusted request body.

        Read-only keys are dropped from the build, so they keep their current
        value. Afterwards request_attributes, changed_from_request and
        previous_from_request hold snapshots of this request's effect.
        """

        d = self.definition()
        built = self.builder().build(d.schema, d.defaults, body, self.attributes, d.read_only)

        self.request_attributes = deepcopy(built)
        self.set(built)

        # Snapshot of the changes made by this request body
        self.changed_from_request = deepcopy(self.changed)
        self.previous_from_request = deepcopy(self.previous_attributes())

        log.debug(
            "model_set_from_request",
            extra={
                "collection": self.collection_name,
                "changed_keys": sorted(self.changed_from_request),
            },
        )
        return self

    def render(self) -> Dict[str, Any]:
        """Client-facing view: schema-shaped, hidden keys removed.

        Without a schema every attribute is returned.
        """

        json = self.to_json()
        d = self.definition()
        if not d.schema.fields:
            return json
        return self.builder().build(d.schema, d.defaults, json, self.attributes, d.hidden)

    def to_response(self) -> Dict[str, Any]:
        return self.render()

    def to_json(self) -> Dict[str, Any]:
        return deepcopy(self.attributes)

    # Getters and setters
    # ---

    def get(self, attr: Any) -> Any:
        """Read a value by dotted keypath ("profile.address.city").

        Computed properties stored as callables are evaluated.
        """

        if not isinstance(attr, str):
            return None

        val: Any = self.attributes
        for key in attr.split("."):
            if not isinstance(val, Mapping):
                val = None
                break
            val = val.get(key)
            if val is None:
                break

        if callable(val):
            val = val()
        return val

    def set(self, attrs: Mapping[str, Any]) -> "Model":
        """Merge attrs into a fresh attribute dict and record what changed."""

        previous = deepcopy(self.attributes)
        current = dict(self.attributes)
        changed: Dict[str, Any] = {}
        for key, value in attrs.items():
            if key not in current or current[key] != value:
                changed[key] = deepcopy(value)
            current[key] = deepcopy(value)

        self._previous = previous
        self.attributes = current
        self.changed = changed
        return self

    def previous_attributes(self) -> Dict[str, Any]:
        return deepcopy(self._previous)

    def has_changed(self, attr: Optional[str] = None) -> bool:
        if attr is None:
            return bool(self.changed)
        return attr in self.changed

    @property
    def id(self) -> Any:
        return self.attributes.get(self.id_attribute)

    def is_new(self) -> bool:
        return self.id is None
