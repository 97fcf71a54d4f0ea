"""YAML document parser and evaluation runtime.

This module defines a high-level parser responsible for integrating
declaration types and instructions into a YAML loader, and for turning
YAML documents into evaluated declarations.

The parser coordinates:
- built-in instructions and plugin-provided extensions,
- custom YAML constructors producing positioned expression nodes,
- the sealed registry of declaration and enum types,
- evaluation of every declaration with error collection.

A document is a YAML mapping whose keys are `<declType> <Name>` and whose
values are the declaration bodies:

    user Alice:
      name: Alice
      email: alice@example.com

    admins Admins:
      - !ref Alice
"""

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from yaml import add_constructor, load
from yaml.error import MarkedYAMLError
from yaml.nodes import ScalarNode

from typedecl.builtins import instructions
from typedecl.context import Bindings
from typedecl.errors import (
    DocumentEvaluationError,
    DSLError,
    DSLSchemaError,
    ErrorContext,
    EvaluationError,
    UnknownDeclarationTypeError,
)
from typedecl.names import DECLARATION_PATTERN
from typedecl.schema import (
    BaseExpression,
    BoolLiteral,
    Decl,
    DictItem,
    DictLiteral,
    DoubleLiteral,
    IntegerLiteral,
    ListLiteral,
    Position,
    Statement,
    StringLiteral,
)

from .builder import DeclarationsBuilderMixin
from .loader import ExtensionsLoaderMixin

if TYPE_CHECKING:
    from collections.abc import Iterable
    from io import TextIOBase

    from yaml import SafeLoader
    from yaml.nodes import MappingNode, Node, SequenceNode

    from typedecl.core.definitions import TypeDefinitions
    from typedecl.extensions import Plugin

logger = getLogger(__name__)

#: Parsed declaration statements of a document.
type Statements = tuple[Statement, ...]

#: Evaluated declarations of a document.
type Decls = tuple[Decl, ...]

#: Prefix of the tags YAML resolves plain scalars to.
STANDARD_TAG_PREFIX = 'tag:yaml.org,2002:'

#: Standard YAML tag of merge keys (`<<`).
MERGE_TAG = 'tag:yaml.org,2002:merge'


def _schema_error(message: str, position: Position | None) -> DSLSchemaError:
    """Create a schema error located at an expression position."""
    if position is None:
        return DSLSchemaError(message)

    return DSLSchemaError(message, context=ErrorContext(
        filename=position.filename,
        line_num=position.line,
        column_num=position.column,
    ))


def construct_string(loader: 'SafeLoader', node: 'ScalarNode') -> StringLiteral:
    """Construct a string literal from a plain or quoted scalar."""
    return StringLiteral(value=loader.construct_scalar(node), position=Position.from_yaml_node(node))


def construct_integer(loader: 'SafeLoader', node: 'ScalarNode') -> IntegerLiteral:
    """Construct an integer literal."""
    return IntegerLiteral(value=loader.construct_yaml_int(node), position=Position.from_yaml_node(node))


def construct_double(loader: 'SafeLoader', node: 'ScalarNode') -> DoubleLiteral:
    """Construct a double literal."""
    return DoubleLiteral(value=loader.construct_yaml_float(node), position=Position.from_yaml_node(node))


def construct_bool(loader: 'SafeLoader', node: 'ScalarNode') -> BoolLiteral:
    """Construct a bool literal."""
    return BoolLiteral(value=loader.construct_yaml_bool(node), position=Position.from_yaml_node(node))


def construct_null(loader: 'SafeLoader', node: 'ScalarNode') -> BaseExpression:  # noqa: ARG001
    """Reject null values, which have no counterpart in declaration bodies."""
    raise DSLSchemaError.from_yaml_node('Null values are not supported', node)


def construct_list(loader: 'SafeLoader', node: 'SequenceNode') -> ListLiteral:
    """Construct a list literal from a sequence."""
    return ListLiteral(
        items=tuple(loader.construct_object(item, deep=True) for item in node.value),
        position=Position.from_yaml_node(node),
    )


def construct_dict(loader: 'SafeLoader', node: 'MappingNode') -> DictLiteral:
    """Construct a dict literal from a mapping.

    Merge keys are resolved first and merged entries are overridden by
    the mapping's own entries. Keys are untagged scalars taken as their
    source text, so `on` or `1` are keys too. The mapping's own keys must
    be unique.
    """
    explicit = sum(1 for key_node, _ in node.value if key_node.tag != MERGE_TAG)
    loader.flatten_mapping(node)
    merged = len(node.value) - explicit

    explicit_keys: set[str] = set()
    items: dict[str, DictItem] = {}

    for index, (key_node, value_node) in enumerate(node.value):
        if not isinstance(key_node, ScalarNode) or not key_node.tag.startswith(STANDARD_TAG_PREFIX):
            raise DSLSchemaError.from_yaml_node('Mapping keys must be untagged scalars', key_node)

        key = loader.construct_scalar(key_node)
        if index >= merged:
            if key in explicit_keys:
                raise DSLSchemaError.from_yaml_node(f'Duplicate key {key!r}', key_node)
            explicit_keys.add(key)

        items[key] = DictItem(
            key=key,
            value=loader.construct_object(value_node, deep=True),
            position=Position.from_yaml_node(key_node),
        )

    return DictLiteral(items=tuple(items.values()), position=Position.from_yaml_node(node))


def construct_undefined(loader: 'SafeLoader', node: 'Node') -> BaseExpression:  # noqa: ARG001
    """Reject tags without a registered instruction."""
    raise DSLSchemaError.from_yaml_node(f'Unsupported tag {node.tag!r}', node)


#: Constructors of the standard YAML tags.
CONSTRUCTORS = {
    'tag:yaml.org,2002:str': construct_string,
    'tag:yaml.org,2002:int': construct_integer,
    'tag:yaml.org,2002:float': construct_double,
    'tag:yaml.org,2002:bool': construct_bool,
    'tag:yaml.org,2002:null': construct_null,
    'tag:yaml.org,2002:timestamp': construct_string,
    'tag:yaml.org,2002:seq': construct_list,
    'tag:yaml.org,2002:map': construct_dict,
    None: construct_undefined,
}


class DocumentParser(DeclarationsBuilderMixin, ExtensionsLoaderMixin):
    """YAML declarations parser with plugin and extension support.

    This class is responsible for:
    - registering declaration models, enumerations and instructions,
      built-in or plugin-provided;
    - attaching custom YAML constructors to a loader;
    - sealing the registry of declaration and enum types;
    - parsing YAML documents into statements and evaluating them.

    Registration happens during a single-threaded build phase. Once
    `build` is called the registry is read-only and documents may be
    evaluated concurrently.
    """

    def __init__(self, loader: type['SafeLoader'],
                 strict: bool = False, load_plugins: bool = True,
                 plugins: 'Iterable[Plugin]' = (),
                 auto_attach: bool = True,
                 auto_build: bool = False) -> None:
        """Initialize the document parser.

        During initialization, the parser:
        - resets internal registry state;
        - registers all built-in instructions;
        - registers the given plugins, then loads entry point plugins;
        - optionally attaches constructors to the YAML loader;
        - optionally seals the registry.

        Args:
            loader: YAML loader class to extend with constructors. Must
                derive from `yaml.SafeLoader`.
            strict: Whether to raise errors on plugin loading failures
                instead of emitting warnings.
            load_plugins: Whether to discover plugins via entry points.
            plugins: Plugins to register explicitly.
            auto_attach: Whether to automatically attach all known
                constructors to the YAML loader during initialization.
            auto_build: Whether to seal the registry during initialization.

        Raises:
            DSLBuildError: If a plugin provides declarations that can
                not be registered.
            PluginError: If plugin loading fails on strict mode.
        """
        self.loader = loader
        self.strict_mode = strict

        self.clear_plugins()

        self.add_instruction(instructions.ref)
        self.add_instruction(instructions.import_)
        self.add_instruction(instructions.json)
        self.add_instruction(instructions.psl)

        for plugin in plugins:
            self.add_plugin(plugin)

        if load_plugins:
            self.load_plugins()

        if auto_attach:
            self.attach()

        if auto_build:
            self.build()

    def attach(self) -> None:
        """Attach all known constructors to the YAML loader.

        This method mutates the provided YAML loader class in-place by
        registering constructors for:
        - standard scalars, sequences and mappings (expression literals),
        - instruction tags (`!<instruction>`).

        It is safe to call this method multiple times, for example after
        registering instructions late, but repeated calls overwrite
        previously registered constructors.
        """
        for tag, constructor in CONSTRUCTORS.items():
            add_constructor(tag, constructor, Loader=self.loader)

        for instruction in self.instructions.values():
            add_constructor(instruction.tag, instruction.build(), Loader=self.loader)

    def build(self) -> 'TypeDefinitions':
        """Seal and return the registry of declaration and enum types.

        Returns:
            The read-only type definitions.
        """
        self.definitions.seal()

        return self.definitions

    def parse(self, content: 'TextIOBase | str') -> Statements:
        """Parse a YAML document into declaration statements.

        Args:
            content: YAML content as a string or file-like object.

        Returns:
            Statements in document order; an empty document has none.

        Raises:
            DSLSchemaError: If YAML parsing fails, the document root is not
                a mapping, a key is not a declaration key or a declaration
                name is used twice.
        """
        try:
            document = load(content, Loader=self.loader)

        except MarkedYAMLError as base:
            raise DSLSchemaError.from_yaml_error(base) from base

        except DSLError:
            raise

        except Exception as base:
            raise DSLSchemaError('Unexpected error') from base

        if document is None:
            return ()

        if not isinstance(document, DictLiteral):
            raise _schema_error('Document must be a mapping of declarations', document.position)

        statements: list[Statement] = []
        names: set[str] = set()

        for item in document.items:
            if (match := DECLARATION_PATTERN.match(item.key)) is None:
                raise _schema_error(
                    f'Invalid declaration key {item.key!r}, expected "<declType> <Name>"',
                    item.position,
                )

            name = match.group('name')
            if name in names:
                raise _schema_error(f'Duplicate declaration name {name!r}', item.position)
            names.add(name)

            statements.append(Statement(
                type_name=match.group('type_name'),
                name=name,
                body=item.value,
                position=item.position,
            ))

        return tuple(statements)

    def evaluate(self, statements: 'Iterable[Statement]') -> Decls:
        """Evaluate declaration statements.

        Every statement is evaluated, even after a failure, against the
        bindings of all statement names, so references may point forwards.

        Args:
            statements: Statements with unique names.

        Returns:
            Evaluated declarations in statement order.

        Raises:
            DocumentEvaluationError: Listing the error of every declaration
                that failed to evaluate.
        """
        statements = tuple(statements)
        definitions = self.build()
        bindings = Bindings.from_statements(statements)

        decls: list[Decl] = []
        errors: list[EvaluationError] = []

        for statement in statements:
            try:
                decl_type = definitions.get_decl_type(statement.type_name)
                if decl_type is None:
                    raise UnknownDeclarationTypeError(statement.type_name, position=statement.position)

                decls.append(decl_type.make_decl(statement.name, statement.body, bindings, definitions))

            except EvaluationError as error:
                errors.append(error.within(statement.name))

        if errors:
            logger.debug('%d of %d declaration(s) failed to evaluate', len(errors), len(statements))
            raise DocumentEvaluationError(errors)

        logger.debug('Evaluated %d declaration(s)', len(decls))

        return tuple(decls)

    def analyze(self, content: 'TextIOBase | str') -> Decls:
        """Parse and evaluate a YAML document.

        Args:
            content: YAML content as a string or file-like object.

        Returns:
            Evaluated declarations in document order.

        Raises:
            DSLSchemaError: If the document is structurally invalid.
            DocumentEvaluationError: If any declaration fails to evaluate.
        """
        return self.evaluate(self.parse(content))

    def analyze_file(self, path: Path | str) -> Decls:
        """Parse and evaluate a YAML file.

        Positions of expression nodes and errors carry the file name.

        Args:
            path: Path of the document.

        Returns:
            Evaluated declarations in document order.

        Raises:
            DSLSchemaError: If the document is structurally invalid.
            DocumentEvaluationError: If any declaration fails to evaluate.
        """
        with Path(path).open('rt', encoding='utf-8') as content:
            return self.analyze(content)
