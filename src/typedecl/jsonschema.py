"""JSON Schema management.

Renders the registered declaration types as a JSON Schema suitable for
YAML editors. Every declaration type contributes a pattern property
matching its `<declType> <Name>` keys; enum types are shared definitions.

Tagged values (`!ref`, `!import`, quoters) can only be described loosely
since JSON Schema has no notion of YAML tags.
"""

from json import dumps
from typing import TYPE_CHECKING, Any

from typedecl.names import DECLARATION_KEY_PATTERN
from typedecl.schema import (
    BoolType,
    DeclRefType,
    DictType,
    EnumRefType,
    ExtImportType,
    ListType,
    NumberType,
    QuoterType,
    SchemaType,
    StringType,
)

if TYPE_CHECKING:
    from typedecl.core import TypeDefinitions

type JsonSchemaValue = dict[str, Any]

SCHEMA_DIALECT = 'https://json-schema.org/draft/2020-12/schema'


class SchemaGenerator:
    """JSON Schema generator for typedecl documents.

    Attributes:
        definitions: Registered declaration and enum types.
    """

    def __init__(self, definitions: 'TypeDefinitions') -> None:
        self.definitions = definitions

    def make_schema(self, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema of documents.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **self.generate_document(),
            'title': 'typedecl',
            'description': 'JSON Schema for typedecl declaration documents',
            '$schema': SCHEMA_DIALECT,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

    def generate_document(self) -> JsonSchemaValue:
        """Generate the schema of the document root mapping."""
        schema: JsonSchemaValue = {
            'type': 'object',
            'patternProperties': {
                DECLARATION_KEY_PATTERN.format(type_name=decl_type.name): {
                    **self.generate(decl_type.body_type),
                    'title': decl_type.name,
                }
                for decl_type in self.definitions
            },
            'additionalProperties': False,
        }

        if enum_types := self.definitions.enum_types:
            schema['$defs'] = {
                name: {
                    'type': 'string',
                    'enum': list(enum_type.labels),
                    'title': name,
                }
                for name, enum_type in enum_types.items()
            }

        return schema

    def generate(self, schema_type: SchemaType) -> JsonSchemaValue:  # noqa: PLR0911
        """Generate the schema of a body type.

        Args:
            schema_type: Declaration body type or one of its parts.

        Returns:
            JSON Schema fragment.
        """
        match schema_type:
            case StringType():
                return {'type': 'string'}
            case NumberType():
                return {'type': 'number'}
            case BoolType():
                return {'type': 'boolean'}
            case ListType(element=element):
                return {'type': 'array', 'items': self.generate(element)}
            case DictType():
                return self.generate_dict(schema_type)
            case ExtImportType():
                return {
                    'type': 'object',
                    'description': 'External import (!import)',
                    'properties': {
                        'default': {'type': 'string'},
                        'name': {'type': 'string'},
                        'from': {'type': 'string'},
                    },
                    'required': ['from'],
                    'additionalProperties': False,
                }
            case QuoterType(tag=tag):
                return {'type': 'string', 'description': f'Quoted {tag} block (!{tag})'}
            case DeclRefType(name=name):
                return {'type': 'string', 'description': f'Reference to a {name} declaration (!ref)'}
            case EnumRefType(name=name):
                return {'$ref': f'#/$defs/{name}'}
            case _:
                raise TypeError(f'Unsupported schema type {type(schema_type).__name__}')

    def generate_dict(self, schema_type: DictType) -> JsonSchemaValue:
        """Generate the schema of a dict body type."""
        schema: JsonSchemaValue = {
            'type': 'object',
            'properties': {
                entry.name: self.generate(entry.value_type)
                for entry in schema_type.entries
            },
            'additionalProperties': False,
        }

        if required := [entry.name for entry in schema_type.entries if entry.required]:
            schema['required'] = required

        return schema
