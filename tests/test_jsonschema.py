"""Tests for the JSON Schema export."""

import re
from json import loads
from typing import TYPE_CHECKING

import pytest

from typedecl.jsonschema import SCHEMA_DIALECT, SchemaGenerator
from typedecl.names import DECLARATION_PATTERN
from typedecl.schema import SchemaType

if TYPE_CHECKING:
    from typedecl.core import DocumentParser, TypeDefinitions


def get_body_schema(schema: dict, type_name: str) -> dict:
    """Find the schema of declarations of a type."""
    return schema['patternProperties'][rf'^{type_name}\s+[a-zA-Z][\w]*$']


def test_document_schema(parser: 'DocumentParser') -> None:
    """Describe every declaration type as a pattern property."""
    schema = loads(SchemaGenerator(parser.build()).make_schema())

    assert schema['$schema'] == SCHEMA_DIALECT
    assert schema['title'] == 'typedecl'
    assert schema['type'] == 'object'
    assert schema['additionalProperties'] is False
    assert len(schema['patternProperties']) == 7  # noqa: PLR2004

    assert schema['$defs']['Role'] == {
        'type': 'string',
        'enum': ['Admin', 'Member', 'Guest'],
        'title': 'Role',
    }


@pytest.mark.parametrize(('key', 'accepted'), (
    pytest.param('user Alice', True, id='single space'),
    pytest.param('user   Alice', True, id='several spaces'),
    pytest.param('user\tAlice', True, id='tab'),
    pytest.param('user 1st', False, id='invalid name'),
    pytest.param('userAlice', False, id='no separator'),
    pytest.param('admins Alice', False, id='other type'),
))
def test_declaration_key_pattern(key: str, accepted: bool, parser: 'DocumentParser') -> None:
    """Key patterns accept the same keys as the document parser."""
    schema = SchemaGenerator(parser.build()).generate_document()
    pattern = next(pattern for pattern in schema['patternProperties'] if pattern.startswith('^user'))

    assert (re.match(pattern, key) is not None) is accepted
    assert (DECLARATION_PATTERN.match(key) is not None and key.startswith('user')) is accepted


def test_record_schema(parser: 'DocumentParser') -> None:
    """Describe record bodies as objects with required entries."""
    schema = SchemaGenerator(parser.build()).generate_document()

    assert get_body_schema(schema, 'user') == {
        'type': 'object',
        'title': 'user',
        'properties': {
            'name': {'type': 'string'},
            'email': {'type': 'string'},
            'role': {'$ref': '#/$defs/Role'},
            'age': {'type': 'number'},
            'tags': {'type': 'array', 'items': {'type': 'string'}},
        },
        'required': ['name', 'email', 'role'],
        'additionalProperties': False,
    }


def test_wrapped_schema(parser: 'DocumentParser') -> None:
    """Describe wrapped bodies by the wrapped value."""
    schema = SchemaGenerator(parser.build()).generate_document()

    assert get_body_schema(schema, 'email') == {'type': 'string', 'title': 'email'}
    assert get_body_schema(schema, 'admins') == {
        'type': 'array',
        'items': {'type': 'string', 'description': 'Reference to a user declaration (!ref)'},
        'title': 'admins',
    }
    assert get_body_schema(schema, 'query') == {
        'type': 'string',
        'description': 'Quoted sql block (!sql)',
        'title': 'query',
    }


def test_tagged_values_schema(parser: 'DocumentParser') -> None:
    """Describe tagged values loosely."""
    schema = SchemaGenerator(parser.build()).generate_document()

    database = get_body_schema(schema, 'database')
    assert database['properties']['schema'] == {'type': 'string', 'description': 'Quoted psl block (!psl)'}
    assert database['required'] == ['system', 'schema', 'port']

    page = get_body_schema(schema, 'page')
    assert page['properties']['component']['required'] == ['from']
    assert set(page['properties']['component']['properties']) == {'default', 'name', 'from'}


def test_empty_schema(definitions: 'TypeDefinitions') -> None:
    """Documents without declaration types accept only empty mappings."""
    schema = SchemaGenerator(definitions).generate_document()

    assert schema == {
        'type': 'object',
        'patternProperties': {},
        'additionalProperties': False,
    }


def test_unsupported_schema_type(definitions: 'TypeDefinitions') -> None:
    """Unknown schema types can not be rendered."""
    with pytest.raises(TypeError, match=r'^Unsupported schema type SchemaType$'):
        SchemaGenerator(definitions).generate(SchemaType())
