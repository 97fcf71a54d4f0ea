"""Declarative typedecl plugin definition.

This module defines the top-level declarative container used to describe
extensions provided by a typedecl plugin.

A plugin aggregates multiple independent elements, including:
- declaration models (record or wrapped-value pydantic models),
- enumerations referenced by those models,
- and custom YAML instructions.

The plugin model itself is purely declarative. It contains no execution
logic and is consumed by the plugin loader during initialization to
register all provided extensions in a structured and validated form.
"""

from enum import Enum

from pydantic import BaseModel, Field

from typedecl.models import SchemaModel
from typedecl.names import Variable  # noqa: TC001

from .instructions import Instruction, InstructionConstructor

__all__ = (
    'Instruction',
    'InstructionConstructor',
    'Plugin',
)


class Plugin(SchemaModel):
    """Declarative container for typedecl plugin extensions.

    A plugin represents a logical namespace that groups together all
    elements contributed by an extension module.

    Plugin instances are declarative descriptions only. They are consumed
    by the plugin loader to:
    - synthesize and register declaration and enum types;
    - register YAML instructions;
    - detect naming conflicts.

    All contained elements are optional, allowing plugins to provide
    partial extensions. Enumerations are registered before declarations
    so that declaration models may refer to them.
    """

    name: Variable = Field(
        title='Plugin namespace',
        description=(
            'Logical namespace of the plugin. '
            'Used for identification and diagnostics. '
            'Typically corresponds to the plugin package or domain name.'
        ),
    )

    version: int = Field(
        default=1,
        title='Contract version',
        description=(
            'Version of the plugin contract. '
            'This is not a semantic version of the plugin implementation.'
        ),
    )

    declarations: list[type[BaseModel]] = Field(
        default_factory=list,
        title='Declarations',
        description=(
            'Host models of the declaration types provided by the plugin. '
            'Models referring to each other with `Ref[T]` must be listed '
            'after the models they refer to.'
        ),
    )

    enumerations: list[type[Enum]] = Field(
        default_factory=list,
        title='Enumerations',
        description='Enum classes usable as field annotations of declaration models.',
    )

    instructions: list[Instruction] = Field(
        default_factory=list,
        title='Instructions',
        description=(
            'Custom YAML instruction definitions provided by the plugin. '
            'Typically quoters for embedded languages.'
        ),
    )
