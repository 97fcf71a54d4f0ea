"""Primitive evaluator library.

Evaluators are plain callables `(expression, bindings, definitions) -> value`
that consume one expression node and return a typed value, or raise an
`EvaluationError` subclass describing why the node does not conform.

Scalar evaluators are functions used as-is; parametrized evaluators (lists,
references, enums, quoted blocks, records) are built by factories once at
build time and capture everything they need from the host model.

Errors raised by nested evaluators are re-raised with the enclosing dict
key or list index prepended to their field path.
"""

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from typedecl.errors import (
    ConstructionError,
    EvaluationError,
    InvalidEnumLabelError,
    KindMismatchError,
    MissingRequiredFieldError,
    TypeMismatchError,
    UnexpectedFieldError,
    UnresolvedReferenceError,
)
from typedecl.schema.expressions import (
    BaseExpression,
    BoolLiteral,
    DictLiteral,
    DoubleLiteral,
    ExtImportExpression,
    IntegerLiteral,
    ListLiteral,
    Quoter,
    StringLiteral,
    Var,
)
from typedecl.values import JSON, ExtImport, QuotedBlock, Ref

if TYPE_CHECKING:
    from enum import Enum

    from typedecl.context import Bindings
    from typedecl.core.definitions import TypeDefinitions
    from typedecl.schema import EnumType

#: Evaluates one expression node into a value of type `T`.
type Evaluation[T] = Callable[[BaseExpression, 'Bindings', 'TypeDefinitions'], T]

#: Evaluates one entry of a dict literal (present or absent) into a value.
type FieldEvaluation[T] = Callable[[DictLiteral, 'Bindings', 'TypeDefinitions'], T]


def evaluate_string(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                    definitions: 'TypeDefinitions') -> str:  # noqa: ARG001
    """Evaluate a string literal."""
    if isinstance(expression, StringLiteral):
        return expression.value

    raise KindMismatchError('string', expression.describe(), position=expression.position)


def evaluate_integer(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                     definitions: 'TypeDefinitions') -> int:  # noqa: ARG001
    """Evaluate an integer literal."""
    if isinstance(expression, IntegerLiteral):
        return expression.value

    raise KindMismatchError('integer', expression.describe(), position=expression.position)


def evaluate_double(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                    definitions: 'TypeDefinitions') -> float:  # noqa: ARG001
    """Evaluate a double literal. Integer literals are widened."""
    if isinstance(expression, (DoubleLiteral, IntegerLiteral)):
        return float(expression.value)

    raise KindMismatchError('double', expression.describe(), position=expression.position)


def evaluate_bool(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                  definitions: 'TypeDefinitions') -> bool:  # noqa: ARG001
    """Evaluate a bool literal."""
    if isinstance(expression, BoolLiteral):
        return expression.value

    raise KindMismatchError('bool', expression.describe(), position=expression.position)


def evaluate_ext_import(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                        definitions: 'TypeDefinitions') -> ExtImport:  # noqa: ARG001
    """Evaluate an external import. The import is passed through unchanged."""
    if isinstance(expression, ExtImportExpression):
        return expression.value

    raise KindMismatchError('import', expression.describe(), position=expression.position)


def quoted_block[T: QuotedBlock](host: type[T]) -> Evaluation[T]:
    """Build an evaluator for blocks quoted with the tag of `host`.

    Args:
        host: `QuotedBlock` subclass to instantiate with the raw payload.

    Returns:
        Evaluator passing the payload through unchanged.
    """
    expected = f'quoted {host.tag}'

    def evaluate(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                 definitions: 'TypeDefinitions') -> T:  # noqa: ARG001
        if isinstance(expression, Quoter) and expression.tag == host.tag:
            return host(payload=expression.payload)

        raise KindMismatchError(expected, expression.describe(), position=expression.position)

    return evaluate


#: Evaluator of embedded JSON blocks.
evaluate_json: Evaluation[JSON] = quoted_block(JSON)


def list_of[T](element: Evaluation[T]) -> Evaluation[list[T]]:
    """Build an evaluator for list literals.

    Elements are evaluated in order; the first failing element aborts the
    evaluation and its error is re-raised with the element index prepended.

    Args:
        element: Evaluator applied to every element.

    Returns:
        Evaluator producing a list.
    """
    def evaluate(expression: BaseExpression, bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> list[T]:
        if not isinstance(expression, ListLiteral):
            raise KindMismatchError('list', expression.describe(), position=expression.position)

        values = []
        for index, item in enumerate(expression.items):
            try:
                values.append(element(item, bindings, definitions))
            except EvaluationError as error:
                error.at(index)
                raise

        return values

    return evaluate


def decl_ref[T: Ref](declaration: str, host: type[T]) -> Evaluation[T]:  # type: ignore[type-arg]
    """Build an evaluator for references to declarations.

    Args:
        declaration: Name of the expected declaration type.
        host: Parametrized reference class, e.g. `Ref[User]`.

    Returns:
        Evaluator resolving an identifier against the document bindings.
    """
    def evaluate(expression: BaseExpression, bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> T:  # noqa: ARG001
        if not isinstance(expression, Var):
            raise KindMismatchError(
                f'reference to {declaration!r}',
                expression.describe(),
                position=expression.position,
            )

        bound = bindings.resolve(expression.name)
        if bound is None:
            raise UnresolvedReferenceError(expression.name, position=expression.position)

        if bound != declaration:
            raise TypeMismatchError(expression.name, declaration, bound, position=expression.position)

        return host(name=expression.name)

    return evaluate


def enum_of(enum_type: 'EnumType') -> Evaluation['Enum']:
    """Build an evaluator for enum labels.

    Labels are written as identifiers (`!ref Label`) or, since YAML has
    no bare identifier syntax, as plain strings.

    Args:
        enum_type: Registered enum type.

    Returns:
        Evaluator producing the enum member named by the label.
    """
    def evaluate(expression: BaseExpression, bindings: 'Bindings',  # noqa: ARG001
                 definitions: 'TypeDefinitions') -> 'Enum':  # noqa: ARG001
        if isinstance(expression, Var):
            label = expression.name
        elif isinstance(expression, StringLiteral):
            label = expression.value
        else:
            raise KindMismatchError(
                f'{enum_type.name} label',
                expression.describe(),
                position=expression.position,
            )

        if (member := enum_type.member(label)) is None:
            raise InvalidEnumLabelError(
                label,
                enum_type.name,
                enum_type.labels,
                position=expression.position,
            )

        return member

    return evaluate


def required_field[T](key: str, evaluation: Evaluation[T]) -> FieldEvaluation[T]:
    """Build an evaluator for a required dict entry.

    Args:
        key: Entry key.
        evaluation: Evaluator of the entry value.

    Returns:
        Field evaluator raising `MissingRequiredFieldError` for an absent entry.
    """
    def evaluate(expression: DictLiteral, bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> T:
        value = expression.get(key)
        if value is None:
            raise MissingRequiredFieldError(key, position=expression.position)

        try:
            return evaluation(value, bindings, definitions)
        except EvaluationError as error:
            error.at(key)
            raise

    return evaluate


def optional_field[T](key: str, evaluation: Evaluation[T]) -> FieldEvaluation[T | None]:
    """Build an evaluator for an optional dict entry.

    The value evaluator is only invoked when the entry is present.

    Args:
        key: Entry key.
        evaluation: Evaluator of the entry value.

    Returns:
        Field evaluator producing `None` for an absent entry.
    """
    def evaluate(expression: DictLiteral, bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> T | None:
        value = expression.get(key)
        if value is None:
            return None

        try:
            return evaluation(value, bindings, definitions)
        except EvaluationError as error:
            error.at(key)
            raise

    return evaluate


def record_of[T: BaseModel](host: type[T],
                            fields: Sequence[tuple[str, FieldEvaluation[Any]]]) -> Evaluation[T]:
    """Build an evaluator for dict literals matching a record model.

    Fields are evaluated in the order given, which is the model's field
    declaration order, independently of the order of the literal's items.

    Args:
        host: Record model to construct.
        fields: Keys and field evaluators in declaration order.

    Returns:
        Evaluator producing a model instance.
    """
    keys = tuple(key for key, _ in fields)

    def evaluate(expression: BaseExpression, bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> T:
        if not isinstance(expression, DictLiteral):
            raise KindMismatchError('dict', expression.describe(), position=expression.position)

        for item in expression.items:
            if item.key not in keys:
                raise UnexpectedFieldError(item.key, keys, position=item.position)

        values = {
            key: evaluation(expression, bindings, definitions)
            for key, evaluation in fields
        }

        return construct(host, expression, **values)

    return evaluate


def wrapped_of[T: BaseModel](host: type[T], evaluation: Evaluation[Any]) -> Evaluation[T]:
    """Build an evaluator for a model wrapping a single value.

    Args:
        host: Root model to construct.
        evaluation: Evaluator of the wrapped value.

    Returns:
        Evaluator producing a model instance.
    """
    def evaluate(expression: BaseExpression, bindings: 'Bindings',
                 definitions: 'TypeDefinitions') -> T:
        return construct(host, expression, evaluation(expression, bindings, definitions))

    return evaluate


def construct[T: BaseModel](host: type[T], expression: BaseExpression,
                            *args: Any, **kwargs: Any) -> T:  # noqa: ANN401
    """Apply a host model constructor to evaluated values.

    Args:
        host: Model to construct.
        expression: Expression the values were evaluated from.
        *args: Positional values (the wrapped value of a root model).
        **kwargs: Field values, in declaration order.

    Returns:
        Model instance.

    Raises:
        ConstructionError: If validators of the host model reject the values.
    """
    try:
        return host(*args, **kwargs)

    except ValidationError as base:
        details = '; '.join(
            item['msg']
            for item in base.errors(include_url=False, include_input=False)
        )
        raise ConstructionError(
            f'Invalid {host.__name__}: {details}',
            position=expression.position,
        ) from base
