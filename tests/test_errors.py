"""Tests for error formatting."""

import pytest
import yaml

from typedecl.errors import (
    DocumentEvaluationError,
    DSLSchemaError,
    ErrorFormatter,
    EvaluationError,
    KindMismatchError,
    SynthesisError,
    UnresolvedReferenceError,
)
from typedecl.schema import Position


@pytest.mark.parametrize(('path', 'expected'), (
    pytest.param((), '', id='empty'),
    pytest.param(('name',), 'name', id='key'),
    pytest.param(('admins', 1, 'name'), 'admins[1].name', id='nested'),
    pytest.param((0, 'name'), '[0].name', id='leading index'),
    pytest.param(('matrix', 0, 1), 'matrix[0][1]', id='indexes'),
))
def test_format_path(path: tuple[str | int, ...], expected: str) -> None:
    """Render field paths with dotted keys and bracketed indexes."""
    assert ErrorFormatter.format_path(path) == expected


def test_bare_evaluation_error() -> None:
    """Errors without location render the message only."""
    assert str(KindMismatchError('string', 'integer')) == 'Expected string, got integer'


def test_propagated_evaluation_error() -> None:
    """Path segments are prepended while the error propagates outwards."""
    error = UnresolvedReferenceError('Bob', position=Position(filename='team.yaml', line=3, column=6))
    error.at(1).at('members').within('Team')

    assert error.path == ('members', 1)
    assert error.declaration == 'Team'
    assert str(error).splitlines() == [
        "Undefined reference 'Bob'",
        '    in "team.yaml", line 4, column 7',
        "    in declaration 'Team', field members[1]",
    ]


def test_declaration_error_without_path() -> None:
    """Errors at the body root name the declaration only."""
    error = EvaluationError('Invalid Port', position=Position(filename='ports.yaml', line=0, column=0))
    error.within('Http')

    assert str(error).splitlines()[-1] == "    in declaration 'Http'"


def test_document_evaluation_error() -> None:
    """Report every failed declaration."""
    first = KindMismatchError('string', 'integer').within('Alice')
    second = UnresolvedReferenceError('Bob').at(0).within('Team')

    error = DocumentEvaluationError([first, second])

    assert error.errors == (first, second)
    assert str(error).splitlines() == [
        '2 declaration(s) failed to evaluate',
        'Expected string, got integer',
        "    in declaration 'Alice'",
        "Undefined reference 'Bob'",
        "    in declaration 'Team', field [0]",
    ]


def test_synthesis_error() -> None:
    """Name the host model and field."""
    class Team:
        pass

    error = SynthesisError('expects a pydantic model class', host=Team, field='members')

    assert str(error) == 'Can not make declaration type from Team.members: expects a pydantic model class'
    assert error.host is Team


def test_yaml_error() -> None:
    """Report YAML syntax errors with the problem and a snippet."""
    with pytest.raises(yaml.MarkedYAMLError) as base:
        yaml.safe_load('user Alice: [a, b\n')

    error = DSLSchemaError.from_yaml_error(base.value)
    lines = str(error).splitlines()

    assert lines[0] == 'Invalid YAML'
    assert lines[1].startswith('    ')
    assert any(line.strip().startswith('in "<unicode string>", line') for line in lines)
