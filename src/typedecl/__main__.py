"""CLI utilities for typedecl documents.

Provides commands to print the JSON Schema of the registered declaration
types, to check declaration documents and to configure VSCode YAML
validation. Declaration types come from installed plugins and from plugins
given with `--plugin module:attr`.
"""

from json import dumps
from logging import basicConfig, getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

from click import Choice, Context, argument, echo, group, option, pass_context
from click import Path as PathParam
from yaml import SafeLoader, safe_load

from typedecl.core import DocumentParser
from typedecl.errors import DSLError
from typedecl.jsonschema import SchemaGenerator
from typedecl.settings import Settings

if TYPE_CHECKING:
    from typedecl.core import Decls

logger = getLogger(__name__)

CUSTOM_TAGS_OPTION = 'yaml.customTags'
SCHEMAS_OPTION = 'yaml.schemas'

#: File patterns of declaration documents validated by VSCode.
DOCUMENT_GLOBS = [
    '*.decl.yaml',
    '*.decl.yml',
]

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'

InputFilepath = PathParam(
    dir_okay=False,
    exists=True,
    readable=True,
    path_type=Path,
)

OutputFilepath = PathParam(
    dir_okay=False,
    readable=True,
    writable=True,
    path_type=Path,
)


def make_parser(settings: Settings) -> DocumentParser:
    """Create a sealed document parser.

    Args:
        settings: Resolved runtime settings.

    Returns:
        Parser with all plugins registered and constructors attached
        to a dedicated loader class.
    """
    class Loader(SafeLoader):
        pass

    parser = DocumentParser(
        Loader,
        strict=settings.strict,
        load_plugins=settings.load_plugins,
        auto_attach=False,
    )

    for reference in settings.plugins:
        parser.load_plugin_reference(reference)

    parser.attach()
    parser.build()

    logger.info('Registered %d declaration type(s)', len(parser.definitions))

    return parser


@group(help='Command-line utilities for typedecl declaration documents.')
@option(
    '-p', '--plugin', 'plugins',
    multiple=True,
    help='Plugin object reference (module:attr) to load. Repeatable.',
)
@option(
    '--strict/--no-strict',
    default=None,
    help='Raise errors on plugin loading issues instead of warnings.',
)
@option(
    '--entrypoints/--no-entrypoints', 'load_plugins',
    default=None,
    help='Discover plugins from installed entry points.',
)
@option(
    '--log-level',
    type=Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default=None,
    help='Logging level.',
)
@pass_context
def cli(ctx: Context, plugins: tuple[str, ...], strict: bool | None,
        load_plugins: bool | None, log_level: str | None) -> None:
    """Root CLI group for typedecl tools."""
    overrides: dict[str, Any] = {}
    if strict is not None:
        overrides['strict'] = strict
    if load_plugins is not None:
        overrides['load_plugins'] = load_plugins
    if log_level is not None:
        overrides['log_level'] = log_level.upper()

    settings = Settings(**overrides)
    if plugins:
        settings = settings.model_copy(update={'plugins': [*settings.plugins, *plugins]})

    basicConfig(level=settings.log_level, format=LOG_FORMAT)

    ctx.obj = settings


def _get_parser(ctx: Context, settings: Settings) -> DocumentParser:
    """Create the parser or exit with the build error."""
    try:
        return make_parser(settings)

    except DSLError as error:
        echo(str(error), err=True)
        ctx.exit(1)


@cli.command(
    name='schema',
    help='Print the JSON Schema of declaration documents to standard output.',
)
@pass_context
def print_schema(ctx: Context) -> None:
    """Generate and print the JSON Schema."""
    parser = _get_parser(ctx, ctx.obj)
    echo(SchemaGenerator(parser.definitions).make_schema())


def _render_decls(decls: 'Decls', *, as_json: bool) -> str:
    """Render evaluated declarations.

    Args:
        decls: Evaluated declarations.
        as_json: Whether to render a JSON object keyed by declaration keys.

    Returns:
        Rendered declarations.
    """
    if as_json:
        return dumps(
            {
                f'{decl.type_name} {decl.name}': decl.value.model_dump(mode='json', by_alias=True)
                for decl in decls
            },
            ensure_ascii=False,
            indent=4,
        )

    return '\n'.join(
        f'{decl.type_name} {decl.name}: {decl.value!r}'
        for decl in decls
    )


@cli.command(
    name='check',
    help='Evaluate a declaration document and print its declarations.',
)
@option(
    '--json', 'as_json',
    is_flag=True,
    help='Print declarations as JSON.',
)
@argument(
    'document',
    type=InputFilepath,
)
@pass_context
def check_document(ctx: Context, document: Path, as_json: bool) -> None:
    """Evaluate a document, exiting with status 1 on errors.

    Args:
        ctx: Click context holding the settings.
        document: Path of the declaration document.
        as_json: Whether to print declarations as JSON.
    """
    parser = _get_parser(ctx, ctx.obj)

    try:
        decls = parser.analyze_file(document)

    except DSLError as error:
        echo(str(error), err=True)
        ctx.exit(1)

    if output := _render_decls(decls, as_json=as_json):
        echo(output)


def _update_tags(parser: DocumentParser, tags: list[str]) -> list[str]:
    """Update YAML custom tags for VSCode configuration.

    Args:
        parser: Document parser instance.
        tags: Existing YAML custom tags.

    Returns:
        Updated list of YAML custom tags.
    """
    if not isinstance(tags, list):
        tags = []

    return sorted({
        *tags,
        *(
            f'{instruction.tag} {instruction.node_type}'
            for instruction in parser.instructions.values()
        ),
    })


def _update_schemas(schema: str,
                    schemas: dict[str, str | list[str]]) -> dict[str, str | list[str]]:
    """Update YAML schema mappings for VSCode configuration.

    Args:
        schema: Path to the generated schema file.
        schemas: Existing YAML schema configuration mapping.

    Returns:
        Updated schema configuration.
    """
    if not isinstance(schemas, dict):
        schemas = {}

    return {
        **schemas,
        schema: DOCUMENT_GLOBS,
    }


@cli.command(
    name='vscode-configure',
    help=(
        'Generate a JSON Schema file and update VSCode settings.json '
        'to enable YAML validation for declaration documents.'
    ),
)
@option(
    '-s', '--schema',
    type=OutputFilepath,
    help='Output path for the generated JSON Schema file.',
    default='.vscode/typedecl.schema.json',
)
@argument(
    'settings',
    type=OutputFilepath,
    default='.vscode/settings.json',
)
@pass_context
def configure_vscode(ctx: Context, schema: Path, settings: Path) -> None:
    """Configure VSCode YAML validation for declaration documents.

    Args:
        ctx: Click context holding the settings.
        schema: Output path for the schema file.
        settings: Path to VSCode settings file.
    """
    parser = _get_parser(ctx, ctx.obj)

    schema.parent.mkdir(parents=True, exist_ok=True)
    with schema.open('wt') as output:
        output.write(SchemaGenerator(parser.definitions).make_schema())
        output.write('\n')

    content = {}
    if settings.exists():
        content = safe_load(settings.read_text()) or {}

    content[CUSTOM_TAGS_OPTION] = _update_tags(
        parser,
        content.get(CUSTOM_TAGS_OPTION, []),
    )

    content[SCHEMAS_OPTION] = _update_schemas(
        schema.as_posix(),
        content.get(SCHEMAS_OPTION, {}),
    )

    settings.parent.mkdir(parents=True, exist_ok=True)
    with settings.open('wt') as output:
        output.write(dumps(content, ensure_ascii=False, indent=4))
        output.write('\n')


if __name__ == '__main__':
    cli()
