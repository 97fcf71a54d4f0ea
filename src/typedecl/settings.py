"""Runtime settings.

Settings are resolved from `TYPEDECL_`-prefixed environment variables,
for example `TYPEDECL_STRICT=1` or `TYPEDECL_PLUGINS='["pkg.mod:plugin"]'`,
and may be overridden by command-line options.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from typedecl.models import SettingsModel

type LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR']


class Settings(SettingsModel):
    """Settings of the document parser and the command-line tools."""

    model_config = SettingsConfigDict(
        env_prefix='TYPEDECL_',
    )

    strict: bool = Field(
        default=False,
        title='Strict mode',
        description='Raise errors on plugin loading issues instead of emitting warnings.',
    )

    load_plugins: bool = Field(
        default=True,
        title='Load plugins',
        description='Discover plugins from the `typedecl_plugins` entry point group.',
    )

    plugins: list[str] = Field(
        default_factory=list,
        title='Extra plugins',
        description='Plugin object references in the `module:attr` form.',
    )

    log_level: LogLevel = Field(
        default='WARNING',
        title='Log level',
    )
