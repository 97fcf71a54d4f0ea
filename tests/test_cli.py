"""Tests for the command-line utilities."""

from json import dumps, loads
from pathlib import Path

import pytest
from click.testing import CliRunner

from typedecl.__main__ import cli

PLUGIN_OPTIONS = ('--no-entrypoints', '--plugin', 'tests.examples.plugins:example')

DOCUMENT = (
    'user Alice:\n'
    '  name: Alice\n'
    '  email: alice@example.com\n'
    '  role: Admin\n'
    'admins Team: [!ref Alice]\n'
)


@pytest.fixture
def runner() -> CliRunner:
    """Provide a click test runner."""
    return CliRunner()


def test_schema(runner: CliRunner) -> None:
    """Print the JSON Schema of the registered declaration types."""
    result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'schema'])

    assert result.exit_code == 0, result.output

    schema = loads(result.output)
    assert schema['title'] == 'typedecl'
    assert len(schema['patternProperties']) == 7  # noqa: PLR2004


def test_schema_without_plugins(runner: CliRunner) -> None:
    """Without plugins only empty documents are described."""
    result = runner.invoke(cli, ['--no-entrypoints', 'schema'])

    assert result.exit_code == 0, result.output
    assert loads(result.output)['patternProperties'] == {}


def test_plugins_from_environment(runner: CliRunner) -> None:
    """Read settings from environment variables."""
    result = runner.invoke(cli, ['schema'], env={
        'TYPEDECL_LOAD_PLUGINS': '0',
        'TYPEDECL_PLUGINS': '["tests.examples.plugins:example"]',
    })

    assert result.exit_code == 0, result.output
    assert len(loads(result.output)['patternProperties']) == 7  # noqa: PLR2004


def test_invalid_plugin(runner: CliRunner) -> None:
    """Exit with the plugin error on strict mode."""
    result = runner.invoke(cli, [
        '--no-entrypoints', '--strict',
        '--plugin', 'tests.examples.plugins:missing',
        'schema',
    ])

    assert result.exit_code == 1
    assert "Failed to load entrypoint 'tests.examples.plugins:missing'" in result.output


def test_check(runner: CliRunner) -> None:
    """Print evaluated declarations."""
    with runner.isolated_filesystem():
        Path('team.decl.yaml').write_text(DOCUMENT)

        result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'check', 'team.decl.yaml'])

    assert result.exit_code == 0, result.output

    alice, team = result.output.splitlines()
    assert alice.startswith("user Alice: User(name='Alice', email='alice@example.com'")
    assert team.startswith('admins Team: Admins(root=[')


def test_check_json(runner: CliRunner) -> None:
    """Print evaluated declarations as JSON."""
    with runner.isolated_filesystem():
        Path('team.decl.yaml').write_text(DOCUMENT)

        result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'check', '--json', 'team.decl.yaml'])

    assert result.exit_code == 0, result.output
    assert loads(result.output) == {
        'user Alice': {
            'name': 'Alice',
            'email': 'alice@example.com',
            'role': 'admin',
            'age': None,
            'tags': None,
        },
        'admins Team': [{'name': 'Alice'}],
    }


def test_check_errors(runner: CliRunner) -> None:
    """Exit with all evaluation errors of the document."""
    with runner.isolated_filesystem():
        Path('team.decl.yaml').write_text(
            'user Alice: {name: Alice, role: Admin}\n'
            'admins Team: [!ref Bob]\n',
        )

        result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'check', 'team.decl.yaml'])

    assert result.exit_code == 1
    assert '2 declaration(s) failed to evaluate' in result.output
    assert "Missing required field 'email'" in result.output
    assert "Undefined reference 'Bob'" in result.output
    assert 'in "team.decl.yaml", line 2, column 15' in result.output


def test_check_invalid_document(runner: CliRunner) -> None:
    """Exit with the schema error of a malformed document."""
    with runner.isolated_filesystem():
        Path('team.decl.yaml').write_text('- user Alice\n')

        result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'check', 'team.decl.yaml'])

    assert result.exit_code == 1
    assert 'Document must be a mapping of declarations' in result.output


def test_check_missing_document(runner: CliRunner) -> None:
    """Documents must exist."""
    with runner.isolated_filesystem():
        result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'check', 'missing.decl.yaml'])

    assert result.exit_code == 2  # noqa: PLR2004


def test_vscode_configure(runner: CliRunner) -> None:
    """Write the schema file and merge VSCode settings."""
    with runner.isolated_filesystem():
        Path('.vscode').mkdir()
        Path('.vscode/settings.json').write_text(dumps({
            'editor.tabSize': 4,
            'yaml.customTags': ['!Ref scalar'],
        }))

        result = runner.invoke(cli, [*PLUGIN_OPTIONS, 'vscode-configure'])

        assert result.exit_code == 0, result.output

        schema = loads(Path('.vscode/typedecl.schema.json').read_text())
        settings = loads(Path('.vscode/settings.json').read_text())

    assert len(schema['patternProperties']) == 7  # noqa: PLR2004

    assert settings['editor.tabSize'] == 4  # noqa: PLR2004
    assert settings['yaml.customTags'] == [
        '!Ref scalar',
        '!import mapping',
        '!json scalar',
        '!psl scalar',
        '!ref scalar',
        '!sql scalar',
    ]
    assert settings['yaml.schemas'] == {
        '.vscode/typedecl.schema.json': ['*.decl.yaml', '*.decl.yml'],
    }


def test_vscode_configure_custom_paths(runner: CliRunner) -> None:
    """Create missing settings at custom locations."""
    with runner.isolated_filesystem():
        result = runner.invoke(cli, [
            *PLUGIN_OPTIONS, 'vscode-configure',
            '--schema', 'schemas/decl.json',
            'editor/settings.json',
        ])

        assert result.exit_code == 0, result.output
        assert Path('schemas/decl.json').exists()

        settings = loads(Path('editor/settings.json').read_text())

    assert settings['yaml.schemas'] == {'schemas/decl.json': ['*.decl.yaml', '*.decl.yml']}
