class SchemaError(Exception):
    """
    Base exception for all schema-related failures.
    """

    pass


class SchemaConfigurationError(SchemaError, ValueError):
    """
    Raised when a schema definition is misconfigured or invalid.

    Data coming from clients never raises this; only the definitions
    declared by the service do.
    """

    pass


class InvalidSchemaNodeError(SchemaConfigurationError):
    """
    Raised when a schema literal holds a value that is not a legal node.
    """

    pass


class SchemaDepthError(SchemaConfigurationError):
    """
    Raised when schema nesting exceeds the configured maximum depth.
    """

    def __init__(self, path: str, max_depth: int) -> None:
        super().__init__(f"schema nesting exceeds max depth {max_depth} at {path or '<root>'}")
        self.path = path
        self.max_depth = max_depth


class CyclicSchemaError(SchemaConfigurationError):
    """
    Raised when a schema literal refers back to one of its own ancestors.
    """

    pass


class ModelDefinitionError(SchemaError):
    """
    Raised when a model definition file cannot be read or validated.
    """

    pass
