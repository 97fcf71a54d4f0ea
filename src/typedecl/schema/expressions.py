"""Parsed configuration expression tree.

This module defines the immutable nodes produced by the document parser
and consumed by evaluators. Each node remembers where it came from so
evaluation errors can point at the offending source.
"""

from typing import TYPE_CHECKING, ClassVar

from pydantic import Field

from typedecl.models import SchemaModel
from typedecl.values import ExtImport  # noqa: TC001

if TYPE_CHECKING:
    from typing import Self

    from yaml.nodes import Node


class Position(SchemaModel):
    """Source position of a node (0-based line and column)."""

    filename: str | None = None
    line: int
    column: int

    @classmethod
    def from_yaml_node(cls, node: 'Node') -> 'Self':
        """Take the start position of a YAML node."""
        mark = node.start_mark
        return cls(filename=mark.name, line=mark.line, column=mark.column)


class BaseExpression(SchemaModel):
    """Base class for all expression nodes."""

    #: Human-readable name of the node shape, used in error messages.
    label: ClassVar[str] = 'expression'

    position: Position | None = Field(
        default=None,
        title='Source position',
    )

    def describe(self) -> str:
        """Describe the node for diagnostics.

        Returns:
            Shape name of the node, e.g. `dict` or `quoted json`.
        """
        return self.label


class StringLiteral(BaseExpression):
    label: ClassVar[str] = 'string'

    value: str


class IntegerLiteral(BaseExpression):
    label: ClassVar[str] = 'integer'

    value: int


class DoubleLiteral(BaseExpression):
    label: ClassVar[str] = 'double'

    value: float


class BoolLiteral(BaseExpression):
    label: ClassVar[str] = 'bool'

    value: bool


class ListLiteral(BaseExpression):
    label: ClassVar[str] = 'list'

    items: tuple[BaseExpression, ...] = ()


class DictItem(SchemaModel):
    """Single `key: value` entry of a dict literal."""

    key: str
    value: BaseExpression
    position: Position | None = None


class DictLiteral(BaseExpression):
    """Dict literal with string keys, in source order."""

    label: ClassVar[str] = 'dict'

    items: tuple[DictItem, ...] = ()

    def get(self, key: str) -> BaseExpression | None:
        """Look up an entry value by key.

        Args:
            key: Entry key.

        Returns:
            The entry value, or `None` if the key is absent.
        """
        for item in self.items:
            if item.key == key:
                return item.value

        return None

    def keys(self) -> tuple[str, ...]:
        """Return entry keys in source order."""
        return tuple(item.key for item in self.items)


class Var(BaseExpression):
    """Identifier: a reference to a declaration or an enum label."""

    label: ClassVar[str] = 'identifier'

    name: str


class ExtImportExpression(BaseExpression):
    label: ClassVar[str] = 'import'

    value: ExtImport


class Quoter(BaseExpression):
    """Block of foreign-language text tagged with its language."""

    label: ClassVar[str] = 'quoted'

    tag: str
    payload: str

    def describe(self) -> str:
        """Describe the node including its tag."""
        return f'{self.label} {self.tag}'


class Statement(SchemaModel):
    """Top-level declaration of a document: `<type_name> <name>: <body>`."""

    type_name: str = Field(
        title='Declaration type name',
        description='Selects the declaration type used to evaluate the body.',
    )

    name: str = Field(
        title='Declaration name',
        description='Unique name of the declaration within the document.',
    )

    body: BaseExpression = Field(
        title='Declaration body',
    )

    position: Position | None = None
