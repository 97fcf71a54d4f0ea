"""Host value types produced by declaration evaluation.

This module defines the value types that host models use in their field
annotations to select the non-primitive kinds:

- `Ref[T]` marks a reference to another declaration of model `T`;
- `ExtImport` holds an external import (a module default or a named field);
- `QuotedBlock` subclasses hold raw payloads written in a foreign language,
  such as `JSON` or `PSL`.

Payloads are opaque to the engine: evaluation passes them through
unchanged and any further validation belongs to their consumers.
"""

from json import loads
from typing import Any, ClassVar, Generic, Literal, TypeVar

from pydantic import Field

from typedecl.models import SchemaModel

T = TypeVar('T')


class Ref(SchemaModel, Generic[T]):
    """Reference to a declaration by name.

    Used as `Ref[User]` in a host model annotation to declare a field
    that refers to a `user` declaration elsewhere in the document. The
    evaluated value only carries the referenced name; resolving it to
    the declaration value is left to the consumer of the evaluated decls.
    """

    name: str = Field(
        title='Declaration name',
        description='Name of the referenced declaration.',
    )


class ExtImportName(SchemaModel):
    """Imported symbol of an external import."""

    kind: Literal['module', 'field'] = Field(
        title='Import kind',
        description=(
            'Whether the default export of the module (`module`) '
            'or a named export (`field`) is imported.'
        ),
    )

    name: str = Field(
        title='Imported name',
        description='Local name of a default import or the named export.',
    )


class ExtImport(SchemaModel):
    """External import: a symbol imported from a file outside the document."""

    name: ExtImportName = Field(
        title='Imported symbol',
    )

    path: str = Field(
        title='Import path',
        description='Path of the module the symbol is imported from.',
    )


class QuotedBlock(SchemaModel):
    """Base class for blocks of foreign-language source embedded verbatim.

    Subclasses are selected by their class-level `tag`, which is also the
    YAML tag used to write them in a document (for example, `!psl`).
    """

    #: Quoter tag identifying the embedded language.
    tag: ClassVar[str]

    payload: str = Field(
        title='Raw payload',
        description='Embedded source text, passed through unchanged.',
    )


class JSON(QuotedBlock):
    """Embedded JSON text."""

    tag: ClassVar[str] = 'json'

    def load(self) -> Any:  # noqa: ANN401
        """Decode the payload.

        Returns:
            The decoded JSON value.

        Raises:
            ValueError: If the payload is not valid JSON.
        """
        return loads(self.payload)


class PSL(QuotedBlock):
    """Embedded Prisma schema language text."""

    tag: ClassVar[str] = 'psl'
