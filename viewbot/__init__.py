"""Read-only view support for generated JHipster applications."""

from .config import BlueprintConfig, Layout, MyBatisConfig
from .entities import Entity, EntityField, load_entities
from .hub import RunReport, ViewBlueprint
from .results import (
    EditResult,
    MalformedInputError,
    NotFoundError,
    Outcome,
    ValidationError,
    ViewBotError,
)

__all__ = [
    "BlueprintConfig",
    "EditResult",
    "Entity",
    "EntityField",
    "Layout",
    "MalformedInputError",
    "MyBatisConfig",
    "NotFoundError",
    "Outcome",
    "RunReport",
    "ValidationError",
    "ViewBlueprint",
    "ViewBotError",
    "load_entities",
]
