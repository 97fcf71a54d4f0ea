"""Declaration and enum type registry entries.

This module defines the named, typed schema and evaluator pair produced
for each declarable host model (`DeclType`), the analogous entry for enum
classes (`EnumType`), and the evaluated declaration (`Decl`).
"""

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from typedecl.models import SchemaModel
from typedecl.schema.types import SchemaType  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Iterable

    from typedecl.context import Bindings
    from typedecl.core.definitions import TypeDefinitions
    from typedecl.schema.expressions import BaseExpression


class DeclType(SchemaModel):
    """Declaration type: a named schema with its matching evaluator.

    Built once per host model at registration time. The `body_type` and
    the `evaluation` are synthesized from the same field classification,
    so a value accepted by the evaluator always conforms to the schema.
    """

    name: str = Field(
        title='Declaration type name',
        description='Host model name with the first letter lowercased.',
    )

    body_type: SchemaType = Field(
        title='Body type',
        description='Schema of the declaration body.',
    )

    host: type[BaseModel] = Field(
        title='Host model',
        description='Pydantic model instantiated by the evaluator.',
    )

    evaluation: Callable[..., Any] = Field(
        title='Body evaluator',
        description=(
            'Callable receiving the body expression, the document bindings and '
            'the type definitions, and returning an instance of the host model.'
        ),
    )

    def evaluate(self, expression: 'BaseExpression', bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> BaseModel:
        """Evaluate a declaration body.

        Args:
            expression: Parsed declaration body.
            bindings: Declaration names visible in the document.
            definitions: All registered declaration and enum types.

        Returns:
            Host model instance.

        Raises:
            EvaluationError: If the body does not conform to the schema.
        """
        return self.evaluation(expression, bindings, definitions)  # type: ignore[no-any-return]

    def make_decl(self, name: str, expression: 'BaseExpression', bindings: 'Bindings',
                  definitions: 'TypeDefinitions') -> 'Decl':
        """Evaluate a declaration body into a named declaration.

        Args:
            name: Declaration name.
            expression: Parsed declaration body.
            bindings: Declaration names visible in the document.
            definitions: All registered declaration and enum types.

        Returns:
            The evaluated declaration.

        Raises:
            EvaluationError: If the body does not conform to the schema.
        """
        return Decl(
            name=name,
            type_name=self.name,
            value=self.evaluate(expression, bindings, definitions),
        )


class EnumType(SchemaModel):
    """Enum type: a named finite set of labels."""

    name: str = Field(
        title='Enum type name',
        description='Name of the enum class.',
    )

    labels: tuple[str, ...] = Field(
        title='Allowed labels',
        description='Member names in declaration order.',
    )

    host: type[Enum] = Field(
        title='Host enum',
    )

    def member(self, label: str) -> Enum | None:
        """Look up the enum member for a label.

        Args:
            label: Label written in the document.

        Returns:
            The member, or `None` if the label is not allowed.
        """
        if label not in self.labels:
            return None

        return self.host[label]


class Decl(SchemaModel):
    """Evaluated declaration."""

    name: str
    type_name: str
    value: Any


def take_decls[T: BaseModel](decls: 'Iterable[Decl]', host: type[T]) -> list[tuple[str, T]]:
    """Select the declarations of one host model.

    Args:
        decls: Evaluated declarations.
        host: Host model to select.

    Returns:
        `(name, value)` pairs in document order.
    """
    return [
        (decl.name, decl.value)
        for decl in decls
        if type(decl.value) is host
    ]
