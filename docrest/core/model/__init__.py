from .definition import ModelDefinition, load_model_definition
from .model import Model

__all__ = [
    "Model",
    "ModelDefinition",
    "load_model_definition",
]
