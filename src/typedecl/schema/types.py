"""Schema body types of declaration types.

This module defines the schema-level descriptors attached to declaration
types: scalar, list, reference, quoted and dict-of-entries types. They are
the static counterpart of the evaluators built from the same kinds, and are
consumed by registry users and the JSON Schema export.

Each type renders a compact notation via `str()`, for example
`{ name: string, email?: string }` or `[user]`.
"""

from typing import Self

from pydantic import Field, model_validator

from typedecl.models import SchemaModel


class SchemaType(SchemaModel):
    """Base class for all schema types."""


class StringType(SchemaType):
    def __str__(self) -> str:
        return 'string'


class NumberType(SchemaType):
    """Integer or floating-point number."""

    def __str__(self) -> str:
        return 'number'


class BoolType(SchemaType):
    def __str__(self) -> str:
        return 'bool'


class ExtImportType(SchemaType):
    """External import written with the `!import` tag."""

    def __str__(self) -> str:
        return 'import'


class QuoterType(SchemaType):
    """Embedded foreign-language block written with a `!<tag>` tag."""

    tag: str = Field(
        title='Quoter tag',
        description='Language of the embedded block, e.g. `json` or `psl`.',
    )

    def __str__(self) -> str:
        return f'quoter {self.tag}'


class ListType(SchemaType):
    element: SchemaType

    def __str__(self) -> str:
        return f'[{self.element}]'


class DeclRefType(SchemaType):
    """Reference to a declaration of the named declaration type."""

    name: str

    def __str__(self) -> str:
        return self.name


class EnumRefType(SchemaType):
    """Label of the named enum type."""

    name: str

    def __str__(self) -> str:
        return self.name


class DictEntry(SchemaModel):
    """Named entry of a dict type."""

    name: str = Field(
        title='Entry key',
    )

    value_type: SchemaType = Field(
        title='Entry value type',
    )

    required: bool = Field(
        default=True,
        title='Required flag',
        description='Optional entries may be omitted from the dict literal.',
    )

    def __str__(self) -> str:
        marker = '' if self.required else '?'
        return f'{self.name}{marker}: {self.value_type}'


class DictType(SchemaType):
    """Dict of named entries, ordered like the host model fields."""

    entries: tuple[DictEntry, ...] = Field(
        title='Dict entries',
        description='Entries in host model field order.',
    )

    @model_validator(mode='after')
    def check_unique_names(self) -> Self:
        """Check that entry names are unique.

        Returns:
            Self.

        Raises:
            ValueError: If two entries share a name.
        """
        names = [entry.name for entry in self.entries]
        if len(names) != len(set(names)):
            raise ValueError('dict entry names are not unique')

        return self

    def __str__(self) -> str:
        return '{ ' + ', '.join(str(entry) for entry in self.entries) + ' }'
