"""Base Pydantic models for engine structures.

This module defines the foundational model classes used by schema types,
expression nodes, kinds and registry entries. It enforces immutability and
strict schema validation so that everything produced at build time can be
shared freely between evaluations.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all engine structures.

    This class serves as the root for all Pydantic models representing
    kinds, schema types, expression nodes, declarations and plugins.

    Design principles enforced by this model:
        - Immutability: structures cannot be modified after creation.
          Declaration types built once at registration stay valid for
          the lifetime of the process.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos.

    Arbitrary types are allowed because kinds and declaration types hold
    references to host classes and evaluator callables.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    This class serves as the root for settings models responsible for
    resolving runtime configuration from environment variables and
    command-line overrides.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
