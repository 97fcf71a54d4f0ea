"""Extensions discovery and extension loading infrastructure.

This module defines a mixin responsible for registering declaration
models, enumerations and YAML instructions, and for discovering and
loading typedecl plugins exposed via Python entry points.

Plugins are loaded defensively: a plugin that can not be loaded does not
interrupt the loading process unless strict mode is enabled. Declaration
and enum types contributed by a loaded plugin are always synthesized
strictly: a model that can not be turned into a declaration type, or a
name registered twice, is a fatal build error.
"""

from importlib.metadata import EntryPoint
from logging import getLogger
from typing import TYPE_CHECKING, Any
from warnings import warn

from pydantic import ValidationError

from typedecl.core.definitions import TypeDefinitions
from typedecl.errors import PluginError, PluginWarning
from typedecl.extensions import Plugin

if TYPE_CHECKING:
    from collections.abc import Callable
    from enum import Enum

    from pydantic import BaseModel

    from typedecl.extensions import Instruction
    from typedecl.schema import DeclType, EnumType

logger = getLogger(__name__)

#: Entry point group of typedecl plugins.
PLUGINS_GROUP = 'typedecl_plugins'


class ExtensionsLoaderMixin:
    """Mixin defining extension registration and plugin loading behavior.

    This mixin encapsulates registration of declaration models, enum
    classes and instructions, and the discovery of plugins providing
    them. Type synthesis itself is delegated to the builder mixin the
    implementer is combined with.

    Attributes:
        strict_mode: If True, any plugin loading issue raises an error.
            If False, issues are emitted as warnings and loading continues.
    """

    strict_mode: bool = False

    definitions: TypeDefinitions
    instructions: dict[str, 'Instruction']

    build_decl_type: 'Callable[[Any, TypeDefinitions], DeclType]'
    build_enum_type: 'Callable[[Any], EnumType]'

    def add_declaration(self, host: 'type[BaseModel]') -> 'DeclType':
        """Synthesize and register a declaration type.

        Models referenced with `Ref[T]` and enums used by the host must be
        registered first.

        Args:
            host: Declaration model.

        Returns:
            The registered declaration type.

        Raises:
            SynthesisError: If the model does not fit a declaration shape.
            DuplicateNameError: If the derived name is already registered.
            DSLBuildError: If the type definitions are sealed.
        """
        decl_type = self.build_decl_type(host, self.definitions)
        self.definitions.add_decl_type(decl_type)

        return decl_type

    def add_enumeration(self, host: 'type[Enum]') -> 'EnumType':
        """Synthesize and register an enum type.

        Args:
            host: Enum class.

        Returns:
            The registered enum type.

        Raises:
            SynthesisError: If the host is not a non-empty enum class.
            DuplicateNameError: If the enum name is already registered.
            DSLBuildError: If the type definitions are sealed.
        """
        enum_type = self.build_enum_type(host)
        self.definitions.add_enum_type(enum_type)

        return enum_type

    def add_instruction(self, instruction: 'Instruction',
                        entrypoint: EntryPoint | None = None) -> None:
        """Register an instruction.

        Args:
            instruction: Declarative instruction definition.
            entrypoint: Entry point from which the instruction was loaded, if applicable.

        Raises:
            PluginError: If the instruction shadows an existing one on strict mode.
        """
        module = entrypoint.value if entrypoint else instruction.__module__

        if instruction.name in self.instructions and (error := self.emit_plugin_issue(
            f'Instruction {instruction.tag!r} from {module!r} is shadowing an existing',
            entrypoint,
        )):
            raise error

        self.instructions[instruction.name] = instruction

    def add_plugin(self, plugin: Plugin,
                   entrypoint: EntryPoint | None = None) -> None:
        """Register every extension of a plugin.

        Enumerations are registered first, then declarations in the
        listed order, then instructions.

        Args:
            plugin: Declarative plugin definition.
            entrypoint: Entry point from which the plugin was loaded, if applicable.

        Raises:
            DSLBuildError: If a declaration or enum type can not be registered.
            PluginError: If an instruction is shadowing an existing one on strict mode.
        """
        for enumeration in plugin.enumerations:
            self.add_enumeration(enumeration)

        for declaration in plugin.declarations:
            self.add_declaration(declaration)

        for instruction in plugin.instructions:
            self.add_instruction(instruction, entrypoint)

        logger.info(
            'Loaded plugin %r: %d declaration(s), %d enumeration(s), %d instruction(s)',
            plugin.name,
            len(plugin.declarations),
            len(plugin.enumerations),
            len(plugin.instructions),
        )

    def emit_plugin_issue(self, message: str,
                          entrypoint: EntryPoint | None = None) -> Exception | None:
        """Emit a plugin warning or return the exception.

        Args:
            message: Warning message to emit.
            entrypoint: Entry point from which the plugin was loaded, if applicable.

        Returns:
            PluginError on strict mode, otherwise `None`
                with producing a PluginWarning.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=2)

        return None

    def _load_plugin(self, entrypoint: EntryPoint) -> None:
        """Load and register a single plugin entry point.

        Args:
            entrypoint: Entry point describing the plugin to load.

        Raises:
            PluginError: If any loading issues occur on strict mode.
            DSLBuildError: If the plugin provides invalid declarations.
        """
        try:
            plugin = entrypoint.load()

        except ValidationError as base:
            if error := self.emit_plugin_issue(
                f'Failed to validate entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        except Exception as base:
            if error := self.emit_plugin_issue(
                f'Failed to load entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        if not isinstance(plugin, Plugin):
            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin',
                entrypoint,
            ):
                raise error
            return None

        self.add_plugin(plugin, entrypoint)

    def load_plugin_reference(self, reference: str) -> None:
        """Load a plugin given as an object reference.

        Args:
            reference: Plugin object reference in the `module:attr` form.

        Raises:
            PluginError: If the plugin can not be loaded on strict mode.
        """
        self._load_plugin(EntryPoint(name=reference, value=reference, group=PLUGINS_GROUP))

    def clear_plugins(self) -> None:
        """Clear all registered extensions.

        Replace the type definitions and instructions with empty ones.
        """
        self.definitions = TypeDefinitions()
        self.instructions = {}

    def load_plugins(self) -> None:
        """Load plugins via entry points and register their extensions.

        Discovers plugins from the `typedecl_plugins` entry point group.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        for entrypoint in entry_points().select(group=PLUGINS_GROUP):
            self._load_plugin(entrypoint)
