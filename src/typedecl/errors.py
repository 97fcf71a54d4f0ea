"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report plugin loading issues, declaration type synthesis failures,
document structure problems and evaluation errors in a structured and
extensible way.

Build-time errors (`DSLBuildError` and its subclasses) are fatal: a program
must not start with a declaration type whose schema or evaluator could not
be synthesized. Evaluation errors (`EvaluationError` and its subclasses) are
attributable to one declaration and one field path and are collected by the
document parser rather than aborting evaluation of sibling declarations.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml.error import MarkedYAMLError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from yaml.nodes import Node

if TYPE_CHECKING:
    from typedecl.schema.expressions import Position

FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4

#: A single segment of a field path: a dict key or a list index.
type PathSegment = str | int


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    This structure aggregates optional metadata that may be available
    at different stages of document parsing and evaluation.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source file.
    line_num: int | None
    #: Column number in the source file.
    column_num: int | None

    #: Name of the declaration being evaluated.
    declaration: str | None
    #: Field path inside the declaration body.
    path: 'Sequence[PathSegment] | None'

    #: Underlying exception that triggered formatting.
    error: Exception | None


class ErrorFormatter:
    """Utility class for formatting DSL-related errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location, declaration
    and field path information, and YAML-based snippets.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        This method combines a base message with optional location
        metadata and a YAML snippet of the failing source.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source and declaration location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            column, declaration name and field path when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        line_num = context.get('line_num')

        message = ''
        if filename or line_num is not None:
            message += f'{indent}in "{filename or FORMAT_FILENAME}"'
            if line_num is not None:
                line_num += 1
                message += f', line {line_num}'
                if (column_num := context.get('column_num')) is not None:
                    column_num += 1
                    message += f', column {column_num}'
            message += linesep

        if (declaration := context.get('declaration')) is not None:
            message += f'{indent}in declaration {declaration!r}'
            if path := context.get('path'):
                message += f', field {cls.format_path(path)}'
            message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing the underlying YAML error.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (error := context.get('error')) and isinstance(error, MarkedYAMLError):
            if error.problem_mark is None:
                return ''
            snippet = error.problem_mark.get_snippet(indent=0) or ''
            return cls._make_indent(snippet, indent)

        return ''

    @staticmethod
    def format_path(path: 'Iterable[PathSegment]') -> str:
        """Render a field path.

        Args:
            path: Dict keys and list indexes from the declaration body root.

        Returns:
            Dotted path with indexes in brackets, e.g. `admins[1].name`.
        """
        rendered = ''
        for segment in path:
            if isinstance(segment, int):
                rendered += f'[{segment}]'
            elif rendered:
                rendered += f'.{segment}'
            else:
                rendered = segment

        return rendered

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.

        Args:
            value: Original multi-line string.
            indent: Indentation prefix.

        Returns:
            Indented string.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input.

        Args:
            indent: Indentation as string or number of spaces.

        Returns:
            A string consisting of spaces or the provided string.
        """
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin-related issues.

    This warning is used when a plugin cannot be loaded or processed,
    but the error does not prevent further execution (for example,
    when running in non-strict mode).
    """


class DSLError(Exception, ErrorFormatter):
    """Base exception for all typedecl errors.

    All custom exceptions raised by the library should inherit from
    this class to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)

    @classmethod
    def from_yaml_node(cls, message: str, node: 'Node',
                       error: Exception | None = None) -> 'Self':
        """Create an error instance from a YAML node.

        This helper extracts positional information from a PyYAML
        node and attaches it to the resulting error context.

        Args:
            message: Human-readable error message.
            node: YAML node associated with the error.
            error: Optional underlying exception.

        Returns:
            An initialized DSLError instance with location context.
        """
        error_context = ErrorContext(
            filename=node.start_mark.name,
            line_num=node.start_mark.line,
            column_num=node.start_mark.column,
            error=error,
        )

        return cls(message, context=error_context)


class PluginError(DSLError):
    """Error raised for fatal plugin-related failures.

    This exception is raised when a plugin entry point is invalid,
    misconfigured, or fails to load in strict mode.
    """

    def __init__(self, message: str, *,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.entrypoint = entrypoint

        super().__init__(message)


class DSLBuildError(DSLError):
    """Error raised while building declaration or enum types.

    This exception indicates a build-time contract violation: a host
    model that cannot be turned into a declaration type, a conflicting
    registration, or a change to a sealed registry.
    """


class UnsupportedShapeError(DSLBuildError):
    """Error raised when an annotation cannot be classified into a kind."""

    def __init__(self, message: str, *,
                 annotation: Any = None) -> None:  # noqa: ANN401
        """Initialize a classification error.

        Args:
            message: Human-readable error description.
            annotation: The annotation that failed classification.
        """
        self.annotation = annotation

        super().__init__(message)


class SynthesisError(DSLBuildError):
    """Error raised when a host model violates a declaration type rule.

    The message always names the offending model and the rule violated.
    """

    def __init__(self, message: str, *,
                 host: Any = None,  # noqa: ANN401
                 field: str | None = None) -> None:
        """Initialize a synthesis error.

        Args:
            message: Human-readable description of the violated rule.
            host: The host model (or object) being synthesized.
            field: Name of the offending field, if applicable.
        """
        self.host = host
        self.field = field

        name = getattr(host, '__name__', None) or repr(host)
        if field:
            name += f'.{field}'

        super().__init__(f'Can not make declaration type from {name}: {message}')


class DuplicateNameError(DSLBuildError):
    """Error raised when a type name is registered twice."""

    def __init__(self, name: str, *, kind: str = 'declaration') -> None:
        """Initialize a duplicate name error.

        Args:
            name: The conflicting type name.
            kind: Registry section, `declaration` or `enum`.
        """
        self.name = name
        self.kind = kind

        super().__init__(f'{kind.capitalize()} type {name!r} is already registered')


class DSLSchemaError(DSLError):
    """Error raised when a document is structurally invalid.

    This exception is used for YAML syntax errors and for documents that
    cannot be turned into declaration statements (malformed keys,
    duplicate names, unsupported values or malformed tags).
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError) -> 'Self':
        """Create a schema error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.

        Returns:
            DSLSchemaError representing the YAML parsing failure.
        """
        error_context = ErrorContext(error=error)
        if mark := error.problem_mark:
            error_context.update(
                filename=mark.name,
                line_num=mark.line,
                column_num=mark.column,
            )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)


class EvaluationError(DSLError):
    """Error raised while evaluating a declaration body.

    Carries the position of the failing expression node, the field path
    from the declaration body root and the declaration name. The path and
    declaration are filled in while the error propagates outwards through
    nested evaluators.
    """

    def __init__(self, message: str, *,
                 position: 'Position | None' = None,
                 path: 'Sequence[PathSegment]' = (),
                 declaration: str | None = None) -> None:
        """Initialize an evaluation error.

        Args:
            message: Human-readable error description.
            position: Source position of the failing expression.
            path: Field path inside the declaration body.
            declaration: Name of the declaration being evaluated.
        """
        self.position = position
        self.path = tuple(path)
        self.declaration = declaration

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        error_context = ErrorContext()
        if self.declaration is not None:
            error_context.update(
                declaration=self.declaration,
                path=self.path,
            )
        if self.position is not None:
            error_context.update(
                filename=self.position.filename,
                line_num=self.position.line,
                column_num=self.position.column,
            )

        return self.format(self.message, error_context)

    def at(self, segment: PathSegment) -> 'Self':
        """Prepend a path segment while the error propagates outwards.

        Args:
            segment: Dict key or list index of the enclosing container.

        Returns:
            The same error instance.
        """
        self.path = (segment, *self.path)
        return self

    def within(self, declaration: str) -> 'Self':
        """Attach the declaration name.

        Args:
            declaration: Name of the declaration being evaluated.

        Returns:
            The same error instance.
        """
        self.declaration = declaration
        return self


class KindMismatchError(EvaluationError):
    """Error raised when a node has a different shape than expected."""

    def __init__(self, expected: str, actual: str, *,
                 position: 'Position | None' = None) -> None:
        """Initialize a kind mismatch error.

        Args:
            expected: Description of the expected kind.
            actual: Description of the node found.
            position: Source position of the node.
        """
        self.expected = expected
        self.actual = actual

        super().__init__(f'Expected {expected}, got {actual}', position=position)


class MissingRequiredFieldError(EvaluationError):
    """Error raised when a required dict entry is absent."""

    def __init__(self, field: str, *,
                 position: 'Position | None' = None) -> None:
        """Initialize a missing field error.

        Args:
            field: Key of the missing entry.
            position: Source position of the dict literal.
        """
        self.field = field

        super().__init__(f'Missing required field {field!r}', position=position)


class UnexpectedFieldError(EvaluationError):
    """Error raised when a dict literal holds a key the schema does not declare."""

    def __init__(self, field: str, allowed: 'Sequence[str]', *,
                 position: 'Position | None' = None) -> None:
        """Initialize an unexpected field error.

        Args:
            field: The unknown key.
            allowed: Keys declared by the schema.
            position: Source position of the entry.
        """
        self.field = field
        self.allowed = tuple(allowed)

        super().__init__(
            f'Unexpected field {field!r}, expected one of: {', '.join(self.allowed)}',
            position=position,
        )


class UnresolvedReferenceError(EvaluationError):
    """Error raised when an identifier is not bound in the document."""

    def __init__(self, name: str, *,
                 position: 'Position | None' = None) -> None:
        """Initialize an unresolved reference error.

        Args:
            name: The unbound identifier.
            position: Source position of the identifier.
        """
        self.name = name

        super().__init__(f'Undefined reference {name!r}', position=position)


class TypeMismatchError(EvaluationError):
    """Error raised when a reference points to a declaration of another type."""

    def __init__(self, name: str, expected: str, actual: str, *,
                 position: 'Position | None' = None) -> None:
        """Initialize a reference type mismatch error.

        Args:
            name: The referenced declaration name.
            expected: Expected declaration type name.
            actual: Declaration type name the reference is bound to.
            position: Source position of the identifier.
        """
        self.name = name
        self.expected = expected
        self.actual = actual

        super().__init__(
            f'Reference {name!r} is a {actual!r} declaration, expected {expected!r}',
            position=position,
        )


class InvalidEnumLabelError(EvaluationError):
    """Error raised when an enum label is outside the allowed set."""

    def __init__(self, label: str, enumeration: str, allowed: 'Sequence[str]', *,
                 position: 'Position | None' = None) -> None:
        """Initialize an invalid enum label error.

        Args:
            label: The label found in the document.
            enumeration: Enum type name.
            allowed: Labels allowed by the enum type.
            position: Source position of the label.
        """
        self.label = label
        self.enumeration = enumeration
        self.allowed = tuple(allowed)

        super().__init__(
            f'Invalid {enumeration} label {label!r}, expected one of: {', '.join(self.allowed)}',
            position=position,
        )


class UnknownDeclarationTypeError(EvaluationError):
    """Error raised when a statement names an unregistered declaration type."""

    def __init__(self, type_name: str, *,
                 position: 'Position | None' = None) -> None:
        """Initialize an unknown declaration type error.

        Args:
            type_name: The declaration type name used by the statement.
            position: Source position of the statement.
        """
        self.type_name = type_name

        super().__init__(f'Unknown declaration type {type_name!r}', position=position)


class ConstructionError(EvaluationError):
    """Error raised when the host model rejects evaluated values.

    Raised when validators defined on the host model itself fail after
    all fields were evaluated successfully.
    """


class DocumentEvaluationError(DSLError):
    """Error aggregating every failed declaration of a document.

    Evaluating one declaration never aborts evaluation of its siblings;
    all failures are collected and reported together.
    """

    def __init__(self, errors: 'Sequence[EvaluationError]') -> None:
        """Initialize a document evaluation error.

        Args:
            errors: Per-declaration evaluation errors, in document order.
        """
        self.errors = tuple(errors)

        super().__init__(f'{len(self.errors)} declaration(s) failed to evaluate')

    def __str__(self) -> str:
        """String represenatation."""
        return linesep.join((
            self.message,
            *(str(error) for error in self.errors),
        ))
