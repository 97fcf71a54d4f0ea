"""Declarative instruction definitions and YAML integration.

This module defines a high-level abstraction for custom YAML tags
understood by typedecl documents.

An instruction represents:
- a symbolic YAML tag name,
- the node type the tag is applied to,
- a constructor function that converts a YAML node into an expression node.

Instruction objects are declarative and describe how YAML should be
interpreted. The document parser registers the built constructor of
every known instruction on its YAML loader class.
"""

from collections.abc import Callable
from typing import Literal

from pydantic import Field
from yaml import BaseLoader
from yaml.error import MarkedYAMLError
from yaml.nodes import Node

from typedecl.errors import DSLError, DSLSchemaError
from typedecl.models import SchemaModel
from typedecl.names import Variable  # noqa: TC001
from typedecl.schema import BaseExpression

#: The constructor is invoked by the YAML loader during parsing and is
#: responsible for converting a tagged YAML node into an expression node.
type InstructionConstructor = Callable[[BaseLoader, Node], BaseExpression]


class Instruction(SchemaModel):
    """Declarative instruction definition.

    Defines a named YAML tag and its constructor, which is registered
    as a PyYAML constructor for `!<name>`.
    """

    name: Variable = Field(
        title='Instruction name',
        description='Symbolic name of the YAML tag.',
    )

    node_type: Literal['scalar', 'mapping'] = Field(
        default='scalar',
        title='Node type',
        description='Node type of the input data.',
    )

    constructor: InstructionConstructor = Field(
        title='YAML constructor',
        description='Callable used to construct an expression node from a YAML node.',
    )

    @property
    def tag(self) -> str:
        """YAML tag of the instruction."""
        return f'!{self.name}'

    def build(self) -> InstructionConstructor:
        """Create the PyYAML constructor of the instruction.

        Failures of the declared constructor that are not DSL errors
        already are reported as schema errors located at the tagged node.

        Returns:
            Constructor suitable for `yaml.add_constructor`.
        """
        constructor = self.constructor
        tag = self.tag

        def construct(loader: BaseLoader, node: Node) -> BaseExpression:
            try:
                return constructor(loader, node)

            except MarkedYAMLError as base:
                raise DSLSchemaError.from_yaml_error(base) from base

            except DSLError:
                raise

            except Exception as base:
                raise DSLSchemaError.from_yaml_node(f'Invalid {tag} value', node) from base

        return construct
