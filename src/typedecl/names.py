"""Identifier patterns and naming rules.

This module defines the name patterns shared by declaration keys,
references, plugin namespaces and instruction tags, together with the
rule deriving a declaration type name from a model class name.

The rules defined here form part of the public document contract and are
relied upon by the document parser, the builder and the JSON Schema export.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for all identifiers.
#: Identifiers must start with a letter and may contain letters, digits, or underscores
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Compiled pattern for identifiers (declaration names, references, labels).
IDENTIFIER_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Compiled pattern for top-level document keys: `<declType> <Name>`.
DECLARATION_PATTERN = regexp(
    rf'^(?P<type_name>{_NAME_PATTERN})\s+(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Source pattern for declaration keys, used in generated JSON Schemas.
DECLARATION_KEY_PATTERN = rf'^{{type_name}}\s+{_NAME_PATTERN}$'


Variable = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Identifier',
        description=(
            'Name of a plugin namespace or a YAML instruction tag. '
            'Identifiers must start with a letter and may contain '
            'letters, digits, or underscores. '
            'Names are restricted to ASCII characters.'
        ),
        examples=[
            'auth',
            'psl',
        ],
    ),
]


def lower_first(name: str) -> str:
    """Lowercase the first character of a name.

    Args:
        name: Class name, e.g. `NpmDependencies`.

    Returns:
        The derived declaration type name, e.g. `npmDependencies`.
    """
    return name[:1].lower() + name[1:]
