"""Declaration type synthesis.

This module defines helpers that turn host models into declaration types
and enum classes into enum types, once, at registration time.

A host model is either:
- a `RootModel[T]` wrapping a single value, whose body is the value itself;
- a record model with named fields, whose body is a dict with one entry
  per field, optional when the field is annotated `T | None`.

For every field the annotation is classified exactly once and the kind is
lowered twice, into a schema type and into an evaluator, by two
structurally parallel functions. Both match the closed set of kinds
exhaustively, so a kind cannot be supported by one and not the other.
"""

from enum import Enum
from logging import getLogger
from types import UnionType
from typing import TYPE_CHECKING, Any, Union, assert_never, get_args, get_origin

from pydantic import BaseModel, RootModel

from typedecl.core import evaluators
from typedecl.core.kinds import (
    BoolKind,
    DeclRefKind,
    DoubleKind,
    EnumKind,
    ExtImportKind,
    IntegerKind,
    JSONKind,
    ListKind,
    OptionalKind,
    QuotedBlockKind,
    StringKind,
    classify,
)
from typedecl.errors import SynthesisError, UnsupportedShapeError
from typedecl.names import lower_first
from typedecl.schema import (
    BoolType,
    DeclRefType,
    DeclType,
    DictEntry,
    DictType,
    EnumRefType,
    EnumType,
    ExtImportType,
    ListType,
    NumberType,
    QuoterType,
    SchemaType,
    StringType,
)

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

    from typedecl.core.definitions import TypeDefinitions
    from typedecl.core.evaluators import Evaluation, FieldEvaluation
    from typedecl.core.kinds import Kind

logger = getLogger(__name__)

#: Rule violated by an `Optional` outside of a record field.
OPTIONAL_PLACEMENT = 'Optional is only allowed in record fields'


class DeclarationsBuilderMixin:
    """Mixin providing declaration and enum type synthesis.

    This mixin builds `DeclType` and `EnumType` registry entries from
    host classes. All methods are pure: they read the type definitions
    to classify references and enums but never register anything.
    """

    @classmethod
    def build_decl_type(cls, host: Any, definitions: 'TypeDefinitions') -> DeclType:  # noqa: ANN401
        """Build a declaration type from a host model.

        Args:
            host: Pydantic model class with a single wrapped value
                (`RootModel[T]`) or with named fields.
            definitions: Registered types used to classify references and enums.

        Returns:
            Declaration type named after the model, with the first letter lowercased.

        Raises:
            SynthesisError: If the host does not fit a declaration shape or
                one of its annotations can not be classified.
        """
        model = cls.check_host_shape(host)

        if issubclass(model, RootModel):
            body_type, evaluation = cls.build_wrapped(model, definitions)
        else:
            body_type, evaluation = cls.build_record(model, definitions)

        decl_type = DeclType(
            name=lower_first(model.__name__),
            body_type=body_type,
            host=model,
            evaluation=evaluation,
        )
        logger.debug('Built declaration type %r from %s', decl_type.name, model.__qualname__)

        return decl_type

    @staticmethod
    def check_host_shape(host: Any) -> type[BaseModel]:  # noqa: ANN401
        """Check that a host is a single-constructor, non-generic model.

        Args:
            host: Candidate host.

        Returns:
            The host as a model class.

        Raises:
            SynthesisError: Describing the rule violated by the host.
        """
        if get_origin(host) in (Union, UnionType):
            raise SynthesisError(
                'expects a type with exactly one constructor, '
                f'but was given a union of {len(get_args(host))} types',
                host=host,
            )

        if not isinstance(host, type) or not issubclass(host, BaseModel):
            raise SynthesisError('expects a pydantic model class', host=host)

        if parameters := host.__pydantic_generic_metadata__['parameters']:
            raise SynthesisError(
                f'expects a model without type parameters, but it has {len(parameters)}',
                host=host,
            )

        return host

    @classmethod
    def build_wrapped(cls, host: type[RootModel[Any]],
                      definitions: 'TypeDefinitions') -> tuple[SchemaType, 'Evaluation[Any]']:
        """Build the body type and evaluator of a single wrapped value.

        Args:
            host: Root model wrapping the value.
            definitions: Registered types.

        Returns:
            Body type of the wrapped value and the model evaluator.

        Raises:
            SynthesisError: If the wrapped value is optional, holds more than
                one value or can not be classified.
        """
        annotation = host.model_fields['root'].annotation

        if get_origin(annotation) is tuple and (values := get_args(annotation)) and Ellipsis not in values:
            raise SynthesisError(
                'expects a wrapped type to hold exactly 1 value, '
                f'but was given a tuple of {len(values)} values',
                host=host,
            )

        try:
            kind = classify(annotation, definitions)
            if isinstance(kind, OptionalKind):
                raise UnsupportedShapeError(f'{OPTIONAL_PLACEMENT}, not as the wrapped value')

            return (
                cls.build_body_type(kind),
                evaluators.wrapped_of(host, cls.build_evaluation(kind)),
            )

        except UnsupportedShapeError as base:
            raise SynthesisError(base.message, host=host) from base

    @classmethod
    def build_record(cls, host: type[BaseModel],
                     definitions: 'TypeDefinitions') -> tuple[DictType, 'Evaluation[Any]']:
        """Build the dict body type and evaluator of a record model.

        Entries follow the model field order. A field's key is the name
        the model validates it from, see `field_key`.

        Args:
            host: Record model.
            definitions: Registered types.

        Returns:
            Dict body type and the model evaluator.

        Raises:
            SynthesisError: If the model has no fields or a field annotation
                can not be classified.
        """
        if not host.model_fields:
            raise SynthesisError('expects a record with at least one field', host=host)

        entries: list[DictEntry] = []
        fields: list[tuple[str, FieldEvaluation[Any]]] = []

        for name, info in host.model_fields.items():
            key = cls.field_key(host, name, info)
            try:
                entry, evaluation = cls.build_entry(key, classify(info.annotation, definitions))
            except UnsupportedShapeError as base:
                raise SynthesisError(base.message, host=host, field=name) from base

            entries.append(entry)
            fields.append((key, evaluation))

        return DictType(entries=tuple(entries)), evaluators.record_of(host, fields)

    @staticmethod
    def field_key(host: type[BaseModel], name: str, info: 'FieldInfo') -> str:
        """Select the dict key of a record field.

        The key is the name the host model accepts on validation: the
        validation alias, else the alias, else the field name.

        Raises:
            SynthesisError: If the field is validated from alias choices or
                a nested alias path.
        """
        alias = info.validation_alias if info.validation_alias is not None else info.alias
        if alias is None:
            return name

        if not isinstance(alias, str):
            raise SynthesisError(
                f'expects a plain string alias, but was given {type(alias).__name__}',
                host=host,
                field=name,
            )

        return alias

    @classmethod
    def build_entry(cls, key: str, kind: 'Kind') -> tuple[DictEntry, 'FieldEvaluation[Any]']:
        """Build the dict entry and field evaluator of one record field.

        Args:
            key: Entry key.
            kind: Kind of the field annotation.

        Returns:
            Dict entry and field evaluator.
        """
        if isinstance(kind, OptionalKind):
            return (
                DictEntry(name=key, value_type=cls.build_body_type(kind.inner), required=False),
                evaluators.optional_field(key, cls.build_evaluation(kind.inner)),
            )

        return (
            DictEntry(name=key, value_type=cls.build_body_type(kind), required=True),
            evaluators.required_field(key, cls.build_evaluation(kind)),
        )

    @classmethod
    def build_body_type(cls, kind: 'Kind') -> SchemaType:
        """Lower a kind to its schema type.

        Raises:
            UnsupportedShapeError: For an optional kind.
        """
        match kind:
            case StringKind():
                return StringType()
            case IntegerKind() | DoubleKind():
                return NumberType()
            case BoolKind():
                return BoolType()
            case ListKind(element=element):
                return ListType(element=cls.build_body_type(element))
            case ExtImportKind():
                return ExtImportType()
            case JSONKind():
                return QuoterType(tag='json')
            case QuotedBlockKind(tag=tag):
                return QuoterType(tag=tag)
            case DeclRefKind(declaration=declaration):
                return DeclRefType(name=declaration)
            case EnumKind(enum_type=enum_type):
                return EnumRefType(name=enum_type.name)
            case OptionalKind():
                raise UnsupportedShapeError(OPTIONAL_PLACEMENT)
            case _:
                assert_never(kind)

    @classmethod
    def build_evaluation(cls, kind: 'Kind') -> 'Evaluation[Any]':
        """Lower a kind to its primitive evaluator.

        Raises:
            UnsupportedShapeError: For an optional kind.
        """
        match kind:
            case StringKind():
                return evaluators.evaluate_string
            case IntegerKind():
                return evaluators.evaluate_integer
            case DoubleKind():
                return evaluators.evaluate_double
            case BoolKind():
                return evaluators.evaluate_bool
            case ListKind(element=element):
                return evaluators.list_of(cls.build_evaluation(element))
            case ExtImportKind():
                return evaluators.evaluate_ext_import
            case JSONKind():
                return evaluators.evaluate_json
            case QuotedBlockKind(host=host):
                return evaluators.quoted_block(host)
            case DeclRefKind(declaration=declaration, host=host):
                return evaluators.decl_ref(declaration, host)
            case EnumKind(enum_type=enum_type):
                return evaluators.enum_of(enum_type)
            case OptionalKind():
                raise UnsupportedShapeError(OPTIONAL_PLACEMENT)
            case _:
                assert_never(kind)

    @staticmethod
    def build_enum_type(host: Any) -> EnumType:  # noqa: ANN401
        """Build an enum type from an enum class.

        Args:
            host: `enum.Enum` subclass with at least one member.

        Returns:
            Enum type named after the class, with member names as labels.

        Raises:
            SynthesisError: If the host is not a non-empty enum class.
        """
        if not isinstance(host, type) or not issubclass(host, Enum):
            raise SynthesisError('expects an enum class', host=host)

        labels = tuple(host.__members__)
        if not labels:
            raise SynthesisError('expects an enum with at least one member', host=host)

        return EnumType(name=host.__name__, labels=labels, host=host)
