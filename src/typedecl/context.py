"""Binding environment for reference resolution.

This module defines the mapping of declaration names visible in a document
to their declaration type names. Evaluators consult it to resolve
identifiers written where a declaration reference is expected.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from typedecl.schema.expressions import Statement


class Bindings(dict[str, str]):
    """Declaration names visible in a document, mapped to their type names.

    Bindings are built once per document before any declaration is
    evaluated, so references may point forwards as well as backwards.
    They are expected to be immutable in practice, although this is not
    strictly enforced at the type level.
    """

    @classmethod
    def from_statements(cls, statements: 'Iterable[Statement]') -> 'Bindings':
        """Bind every statement name to its declaration type name.

        Args:
            statements: Document statements with unique names.

        Returns:
            Bindings for the document.
        """
        return cls({
            statement.name: statement.type_name
            for statement in statements
        })

    def resolve(self, name: str) -> str | None:
        """Resolve a declaration name.

        Args:
            name: Identifier written in the document.

        Returns:
            Declaration type name bound to the identifier, or `None`.
        """
        return self.get(name)
