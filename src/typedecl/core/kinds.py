"""Kind classification of host model annotations.

A kind is the semantic category of a field annotation. It selects both
the schema type and the primitive evaluator of the field, so the schema
and the evaluator of a declaration type are always derived from the same
decision.

Classification is an ordered list of checks, first match wins:

1. `Ref[T]` where `T` is a registered declaration model;
2. a registered enum class;
3. the fixed table of primitive and marker types;
4. `list[T]`;
5. `T | None`;

anything else is an unsupported shape. Classification only reads the
type definitions; it never registers anything.
"""

from types import NoneType, UnionType
from typing import TYPE_CHECKING, Union, get_args, get_origin

from pydantic import Field

from typedecl.errors import UnsupportedShapeError
from typedecl.models import SchemaModel
from typedecl.schema import EnumType  # noqa: TC001
from typedecl.values import JSON, ExtImport, QuotedBlock, Ref

if TYPE_CHECKING:
    from typedecl.core.definitions import TypeDefinitions


class BaseKind(SchemaModel):
    """Base class for all kinds."""


class StringKind(BaseKind):
    pass


class IntegerKind(BaseKind):
    pass


class DoubleKind(BaseKind):
    pass


class BoolKind(BaseKind):
    pass


class ExtImportKind(BaseKind):
    pass


class JSONKind(BaseKind):
    pass


class QuotedBlockKind(BaseKind):
    """Embedded block of the language identified by `tag`."""

    tag: str
    host: type[QuotedBlock]


class ListKind(BaseKind):
    element: BaseKind


class OptionalKind(BaseKind):
    """Optional value. Valid only as the direct kind of a record field."""

    inner: BaseKind


class DeclRefKind(BaseKind):
    """Reference to a declaration of the declaration type `declaration`."""

    declaration: str = Field(
        title='Referenced declaration type name',
    )

    host: type[Ref] = Field(  # type: ignore[type-arg]
        title='Parametrized reference class',
        description='For example `Ref[User]`; instantiated by the evaluator.',
    )


class EnumKind(BaseKind):
    enum_type: EnumType


type Kind = (
    StringKind
    | IntegerKind
    | DoubleKind
    | BoolKind
    | ListKind
    | OptionalKind
    | ExtImportKind
    | JSONKind
    | QuotedBlockKind
    | DeclRefKind
    | EnumKind
)

#: Fixed table of directly mapped annotations.
PRIMITIVE_KINDS: dict[type, Kind] = {
    str: StringKind(),
    int: IntegerKind(),
    float: DoubleKind(),
    bool: BoolKind(),
    ExtImport: ExtImportKind(),
    JSON: JSONKind(),
}


def classify(annotation: object, definitions: 'TypeDefinitions') -> Kind:
    """Classify a field annotation.

    Args:
        annotation: Field annotation of a host model.
        definitions: Registered declaration and enum types.

    Returns:
        The kind of the annotation.

    Raises:
        UnsupportedShapeError: If no rule matches the annotation.
    """
    if (decl_ref := _classify_decl_ref(annotation, definitions)) is not None:
        return decl_ref

    if (enum_type := definitions.find_enum_type(annotation)) is not None:
        return EnumKind(enum_type=enum_type)

    if isinstance(annotation, type):
        if annotation in PRIMITIVE_KINDS:
            return PRIMITIVE_KINDS[annotation]
        if issubclass(annotation, QuotedBlock) and (tag := getattr(annotation, 'tag', None)):
            return QuotedBlockKind(tag=tag, host=annotation)

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is list and len(args) == 1:
        return ListKind(element=classify(args[0], definitions))

    if origin in (Union, UnionType) and NoneType in args:
        members = [arg for arg in args if arg is not NoneType]
        if len(members) == 1:
            return OptionalKind(inner=classify(members[0], definitions))

    raise UnsupportedShapeError(
        f'No kind for annotation {describe_annotation(annotation)}'
        f'{_unsupported_hint(annotation)}',
        annotation=annotation,
    )


def describe_annotation(annotation: object) -> str:
    """Render an annotation for diagnostics."""
    if isinstance(annotation, type) and not get_args(annotation):
        return annotation.__name__

    return repr(annotation)


def _classify_decl_ref(annotation: object, definitions: 'TypeDefinitions') -> DeclRefKind | None:
    """Classify `Ref[T]` annotations whose `T` is a registered model."""
    if not isinstance(annotation, type) or not issubclass(annotation, Ref):
        return None

    args = annotation.__pydantic_generic_metadata__['args']
    if len(args) != 1:
        return None

    if (decl_type := definitions.find_decl_type(args[0])) is None:
        return None

    return DeclRefKind(declaration=decl_type.name, host=annotation)


def _unsupported_hint(annotation: object) -> str:
    """Explain common reasons for an unsupported annotation."""
    if isinstance(annotation, type) and issubclass(annotation, Ref):
        args = annotation.__pydantic_generic_metadata__['args']
        if not args:
            return ': Ref must be parametrized with a declaration model'
        return f': {describe_annotation(args[0])} is not a registered declaration type'

    if get_origin(annotation) in (Union, UnionType):
        return ': only `T | None` unions are supported'

    return ''
