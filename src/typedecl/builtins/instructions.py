"""Built-in YAML instructions.

This module defines the built-in tags of typedecl documents:

- `!ref Name` writes an identifier: a reference to another declaration
  or an enum label;
- `!import {default: X, from: path}` and `!import {name: x, from: path}`
  write an external import;
- `!json '...'` and `!psl '...'` quote blocks of embedded JSON and
  Prisma schema language text.

Each instruction is implemented as a PyYAML constructor producing an
expression node positioned at the tagged YAML node.
"""

from typing import TYPE_CHECKING

from yaml.nodes import MappingNode, ScalarNode

from typedecl.errors import DSLSchemaError
from typedecl.extensions import Instruction
from typedecl.names import IDENTIFIER_PATTERN
from typedecl.schema import ExtImportExpression, Position, Quoter, Var
from typedecl.values import JSON, PSL, ExtImport, ExtImportName

if TYPE_CHECKING:
    from yaml import BaseLoader
    from yaml.nodes import Node

    from typedecl.extensions import InstructionConstructor

#: Keys selecting the imported symbol of an `!import` mapping.
IMPORT_KINDS = {
    'default': 'module',
    'name': 'field',
}

#: Key holding the module path of an `!import` mapping.
IMPORT_PATH_KEY = 'from'


def ref_constructor(loader: 'BaseLoader', node: 'Node') -> Var:
    """Construct an identifier.

    Args:
        loader: YAML loader instance.
        node: Scalar node containing the identifier.

    Returns:
        Identifier node.

    Raises:
        DSLSchemaError: If the node is not a scalar or not a valid identifier.
    """
    if not isinstance(node, ScalarNode):
        raise DSLSchemaError.from_yaml_node('Reference must be a scalar', node)

    name = loader.construct_scalar(node)
    if not IDENTIFIER_PATTERN.match(name):
        raise DSLSchemaError.from_yaml_node(f'Invalid reference name {name!r}', node)

    return Var(name=name, position=Position.from_yaml_node(node))


def import_constructor(loader: 'BaseLoader', node: 'Node') -> ExtImportExpression:
    """Construct an external import.

    The mapping holds the module path under `from` and exactly one of
    `default` (the local name of the default export) or `name` (the
    named export).

    Args:
        loader: YAML loader instance.
        node: Mapping node describing the import.

    Returns:
        External import node.

    Raises:
        DSLSchemaError: If the mapping is malformed.
    """
    if not isinstance(node, MappingNode):
        raise DSLSchemaError.from_yaml_node('Import must be a mapping', node)

    values: dict[str, str] = {}
    for key_node, value_node in node.value:
        if not isinstance(key_node, ScalarNode) or not isinstance(value_node, ScalarNode):
            raise DSLSchemaError.from_yaml_node('Import keys and values must be scalars', key_node)

        key = loader.construct_scalar(key_node)
        if key not in (*IMPORT_KINDS, IMPORT_PATH_KEY):
            raise DSLSchemaError.from_yaml_node(f'Unexpected import key {key!r}', key_node)
        if key in values:
            raise DSLSchemaError.from_yaml_node(f'Duplicate import key {key!r}', key_node)

        values[key] = loader.construct_scalar(value_node)

    kinds = [key for key in IMPORT_KINDS if key in values]
    if len(kinds) != 1:
        raise DSLSchemaError.from_yaml_node(
            f'Import must have exactly one of: {', '.join(IMPORT_KINDS)}',
            node,
        )

    if IMPORT_PATH_KEY not in values:
        raise DSLSchemaError.from_yaml_node(f'Import must have a {IMPORT_PATH_KEY!r} path', node)

    key, = kinds
    value = ExtImport(
        name=ExtImportName(kind=IMPORT_KINDS[key], name=values[key]),
        path=values[IMPORT_PATH_KEY],
    )

    return ExtImportExpression(value=value, position=Position.from_yaml_node(node))


def quoter_constructor(tag: str) -> 'InstructionConstructor':
    """Build a constructor for blocks quoted with a tag.

    Args:
        tag: Quoter tag of the embedded language, e.g. `psl`.

    Returns:
        Constructor producing a quoted block node with the raw payload.
    """
    def construct(loader: 'BaseLoader', node: 'Node') -> Quoter:
        if not isinstance(node, ScalarNode):
            raise DSLSchemaError.from_yaml_node(f'Quoted {tag} block must be a scalar', node)

        return Quoter(
            tag=tag,
            payload=loader.construct_scalar(node),
            position=Position.from_yaml_node(node),
        )

    return construct


def quoter(tag: str) -> Instruction:
    """Define a scalar instruction quoting blocks of an embedded language.

    Plugins use it to add quoters next to the `QuotedBlock` subclass with
    the same tag.

    Args:
        tag: Quoter tag, also the YAML tag name.

    Returns:
        Instruction definition.
    """
    return Instruction(
        name=tag,
        node_type='scalar',
        constructor=quoter_constructor(tag),
    )


ref = Instruction(
    name='ref',
    node_type='scalar',
    constructor=ref_constructor,
)

import_ = Instruction(
    name='import',
    node_type='mapping',
    constructor=import_constructor,
)

json = quoter(JSON.tag)

psl = quoter(PSL.tag)
