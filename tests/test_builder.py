"""Tests for declaration and enum type synthesis."""

from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

import pytest
import yaml
from pydantic import AliasChoices, AliasPath, BaseModel, Field, RootModel, ValidationError

from tests.examples.declarations import Admins, Database, DbSystem, Email, Page, Role, User
from typedecl.core import DocumentParser
from typedecl.errors import SynthesisError
from typedecl.schema import (
    BoolType,
    DeclRefType,
    DictEntry,
    DictType,
    EnumRefType,
    ExtImportType,
    ListType,
    NumberType,
    QuoterType,
    StringType,
)
from typedecl.values import Ref

if TYPE_CHECKING:
    from typedecl.core import TypeDefinitions

T = TypeVar('T')


@pytest.fixture
def registered(definitions: 'TypeDefinitions') -> 'TypeDefinitions':
    """Provide type definitions with the example enums and `User` registered."""
    definitions.add_enum_type(DocumentParser.build_enum_type(Role))
    definitions.add_enum_type(DocumentParser.build_enum_type(DbSystem))
    definitions.add_decl_type(DocumentParser.build_decl_type(User, definitions))

    return definitions


def test_record_body_type(registered: 'TypeDefinitions') -> None:
    """Build a dict body type with entries in field order."""
    decl_type = registered.get_decl_type('user')

    assert decl_type is not None
    assert decl_type.host is User
    assert decl_type.body_type == DictType(entries=(
        DictEntry(name='name', value_type=StringType()),
        DictEntry(name='email', value_type=StringType()),
        DictEntry(name='role', value_type=EnumRefType(name='Role')),
        DictEntry(name='age', value_type=NumberType(), required=False),
        DictEntry(name='tags', value_type=ListType(element=StringType()), required=False),
    ))
    assert str(decl_type.body_type) == (
        '{ name: string, email: string, role: Role, age?: number, tags?: [string] }'
    )


def test_dict_type_unique_entries() -> None:
    """Dict body types reject entries sharing a key."""
    with pytest.raises(ValidationError, match=r'dict entry names are not unique'):
        DictType(entries=(
            DictEntry(name='title', value_type=StringType()),
            DictEntry(name='title', value_type=NumberType()),
        ))


def test_record_aliases_and_defaults(registered: 'TypeDefinitions') -> None:
    """Use aliases as keys; defaults do not make fields optional."""
    decl_type = DocumentParser.build_decl_type(Database, registered)

    assert decl_type.name == 'database'
    assert decl_type.body_type == DictType(entries=(
        DictEntry(name='system', value_type=EnumRefType(name='DbSystem')),
        DictEntry(name='schema', value_type=QuoterType(tag='psl')),
        DictEntry(name='port', value_type=NumberType()),
        DictEntry(name='seeds', value_type=QuoterType(tag='json'), required=False),
        DictEntry(name='ratio', value_type=NumberType(), required=False),
        DictEntry(name='debug', value_type=BoolType(), required=False),
    ))


def test_record_with_references(registered: 'TypeDefinitions') -> None:
    """Build entries for imports and optional references."""
    decl_type = DocumentParser.build_decl_type(Page, registered)

    assert decl_type.body_type == DictType(entries=(
        DictEntry(name='route', value_type=StringType()),
        DictEntry(name='component', value_type=ExtImportType()),
        DictEntry(name='owner', value_type=DeclRefType(name='user'), required=False),
    ))


@pytest.mark.parametrize(('host', 'name', 'body_type'), (
    pytest.param(Email, 'email', StringType(), id='string'),
    pytest.param(Admins, 'admins', ListType(element=DeclRefType(name='user')), id='list of references'),
))
def test_wrapped_body_type(host: type[BaseModel], name: str, body_type: object,
                           registered: 'TypeDefinitions') -> None:
    """Build the body type of a wrapped value from the wrapped annotation."""
    decl_type = DocumentParser.build_decl_type(host, registered)

    assert decl_type.name == name
    assert decl_type.body_type == body_type


def test_name_lowercases_first_letter(definitions: 'TypeDefinitions') -> None:
    """Derive the declaration type name from the model name."""
    class NpmDependencies(RootModel[list[str]]):
        pass

    assert DocumentParser.build_decl_type(NpmDependencies, definitions).name == 'npmDependencies'


class Box(BaseModel, Generic[T]):
    value: T


class Empty(BaseModel):
    pass


class Pair(RootModel[tuple[int, str]]):
    pass


class MaybeNumber(RootModel[int | None]):
    pass


class Numbers(RootModel[list[int | None]]):
    pass


class Broken(BaseModel):
    name: str
    values: dict[str, int]


class Misplaced(BaseModel):
    values: list[str | None]


class Dangling(BaseModel):
    admins: Ref[Admins]


@pytest.mark.parametrize(('host', 'message'), (
    pytest.param(
        int,
        r'^Can not make declaration type from int: expects a pydantic model class$',
        id='not a model',
    ),
    pytest.param(
        User | Email,
        r'^Can not make declaration type from .+: expects a type with exactly one constructor, '
        r'but was given a union of 2 types$',
        id='union',
    ),
    pytest.param(
        Box,
        r'^Can not make declaration type from Box: expects a model without type parameters, but it has 1$',
        id='type parameters',
    ),
    pytest.param(
        Empty,
        r'^Can not make declaration type from Empty: expects a record with at least one field$',
        id='no fields',
    ),
    pytest.param(
        Pair,
        r'^Can not make declaration type from Pair: expects a wrapped type to hold exactly 1 value, '
        r'but was given a tuple of 2 values$',
        id='tuple root',
    ),
    pytest.param(
        MaybeNumber,
        r'^Can not make declaration type from MaybeNumber: '
        r'Optional is only allowed in record fields, not as the wrapped value$',
        id='optional root',
    ),
    pytest.param(
        Numbers,
        r'^Can not make declaration type from Numbers: Optional is only allowed in record fields$',
        id='optional list element',
    ),
    pytest.param(
        Broken,
        r'^Can not make declaration type from Broken.values: No kind for annotation dict\[str, int\]$',
        id='unsupported field',
    ),
    pytest.param(
        Misplaced,
        r'^Can not make declaration type from Misplaced.values: Optional is only allowed in record fields$',
        id='optional in record list',
    ),
    pytest.param(
        Dangling,
        r'^Can not make declaration type from Dangling.admins: .+ is not a registered declaration type$',
        id='unregistered reference',
    ),
))
def test_rejected_shapes(host: object, message: str, registered: 'TypeDefinitions') -> None:
    """Reject host shapes with a message naming the model and the rule."""
    with pytest.raises(SynthesisError, match=message) as error:
        DocumentParser.build_decl_type(host, registered)

    assert error.value.host is host


def test_failed_synthesis_registers_nothing(registered: 'TypeDefinitions') -> None:
    """A rejected model leaves the type definitions unchanged."""
    count = len(registered)

    with pytest.raises(SynthesisError):
        DocumentParser.build_decl_type(Broken, registered)

    assert len(registered) == count
    assert registered.find_decl_type(Broken) is None


def test_field_alias_in_synthesis_error(definitions: 'TypeDefinitions') -> None:
    """Name the offending field by its attribute name."""
    class Aliased(BaseModel):
        values_: set[str] = Field(alias='values')

    with pytest.raises(SynthesisError, match=r'from Aliased.values_: ') as error:
        DocumentParser.build_decl_type(Aliased, definitions)

    assert error.value.field == 'values_'


def test_validation_alias_key(loader: type[yaml.SafeLoader]) -> None:
    """Key entries by the name the model validates the field from."""
    class Article(BaseModel):
        name: str = Field(validation_alias='title')
        body: str = Field(alias='text')

    parser = DocumentParser(loader, load_plugins=False)
    decl_type = parser.add_declaration(Article)

    assert decl_type.body_type == DictType(entries=(
        DictEntry(name='title', value_type=StringType()),
        DictEntry(name='text', value_type=StringType()),
    ))

    (decl,) = parser.analyze('article Intro:\n  title: Hello\n  text: World\n')
    assert decl.value == Article(title='Hello', text='World')


@pytest.mark.parametrize('alias', (
    pytest.param(AliasChoices('title', 'heading'), id='choices'),
    pytest.param(AliasPath('meta', 'title'), id='path'),
))
def test_unsupported_validation_alias(alias: AliasChoices | AliasPath, definitions: 'TypeDefinitions') -> None:
    """Fields validated from several or nested keys have no single entry key."""
    class Article(BaseModel):
        name: str = Field(validation_alias=alias)

    with pytest.raises(SynthesisError, match=rf'^Can not make declaration type from Article.name: '
                                             rf'expects a plain string alias, but was given {type(alias).__name__}$'):
        DocumentParser.build_decl_type(Article, definitions)


def test_enum_type() -> None:
    """Build an enum type with member names as labels."""
    enum_type = DocumentParser.build_enum_type(Role)

    assert enum_type.name == 'Role'
    assert enum_type.labels == ('Admin', 'Member', 'Guest')
    assert enum_type.host is Role
    assert enum_type.member('Admin') is Role.Admin
    assert enum_type.member('admin') is None


def test_enum_type_rejected_shapes() -> None:
    """Reject non-enum and empty enum classes."""
    class Nothing(Enum):
        pass

    with pytest.raises(SynthesisError, match=r'^Can not make declaration type from User: expects an enum class$'):
        DocumentParser.build_enum_type(User)

    with pytest.raises(SynthesisError, match=r'expects an enum with at least one member$'):
        DocumentParser.build_enum_type(Nothing)
