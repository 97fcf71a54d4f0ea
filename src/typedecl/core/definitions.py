"""Registry of declaration and enum types.

The registry is written during a single-threaded initialization phase and
is read-only afterwards: the document parser seals it when it is built.
It is consulted by the kind classifier (to recognize references and enums)
and by evaluation (to select the declaration type of each statement).
"""

from logging import getLogger
from typing import TYPE_CHECKING

from typedecl.errors import DSLBuildError, DuplicateNameError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from typedecl.schema import DeclType, EnumType

logger = getLogger(__name__)


class TypeDefinitions:
    """Append-only registry of declaration and enum types.

    Declaration and enum type names live in separate namespaces. Each
    name may be registered once; there is no deregistration.
    """

    def __init__(self) -> None:
        self.decl_types: dict[str, DeclType] = {}
        self.enum_types: dict[str, EnumType] = {}
        self.sealed = False

    def add_decl_type(self, decl_type: 'DeclType') -> None:
        """Register a declaration type.

        Args:
            decl_type: Declaration type to register.

        Raises:
            DuplicateNameError: If the name is already registered.
            DSLBuildError: If the registry is sealed.
        """
        self._ensure_writable(decl_type.name)

        if decl_type.name in self.decl_types:
            raise DuplicateNameError(decl_type.name, kind='declaration')

        self.decl_types[decl_type.name] = decl_type
        logger.debug('Registered declaration type %r: %s', decl_type.name, decl_type.body_type)

    def add_enum_type(self, enum_type: 'EnumType') -> None:
        """Register an enum type.

        Args:
            enum_type: Enum type to register.

        Raises:
            DuplicateNameError: If the name is already registered.
            DSLBuildError: If the registry is sealed.
        """
        self._ensure_writable(enum_type.name)

        if enum_type.name in self.enum_types:
            raise DuplicateNameError(enum_type.name, kind='enum')

        self.enum_types[enum_type.name] = enum_type
        logger.debug('Registered enum type %r: %s', enum_type.name, ', '.join(enum_type.labels))

    def get_decl_type(self, name: str) -> 'DeclType | None':
        """Look up a declaration type by name."""
        return self.decl_types.get(name)

    def get_enum_type(self, name: str) -> 'EnumType | None':
        """Look up an enum type by name."""
        return self.enum_types.get(name)

    def find_decl_type(self, host: object) -> 'DeclType | None':
        """Look up the declaration type built from a host model.

        Args:
            host: Any annotation; only registered model classes match.

        Returns:
            The declaration type, or `None`.
        """
        for decl_type in self.decl_types.values():
            if decl_type.host is host:
                return decl_type

        return None

    def find_enum_type(self, host: object) -> 'EnumType | None':
        """Look up the enum type built from an enum class.

        Args:
            host: Any annotation; only registered enum classes match.

        Returns:
            The enum type, or `None`.
        """
        for enum_type in self.enum_types.values():
            if enum_type.host is host:
                return enum_type

        return None

    def seal(self) -> None:
        """Make the registry read-only."""
        if not self.sealed:
            logger.debug(
                'Sealed type definitions with %d declaration and %d enum types',
                len(self.decl_types), len(self.enum_types),
            )
        self.sealed = True

    def __iter__(self) -> 'Iterator[DeclType]':
        """Iterate over declaration types in registration order."""
        return iter(self.decl_types.values())

    def __len__(self) -> int:
        return len(self.decl_types)

    def _ensure_writable(self, name: str) -> None:
        """Reject registration into a sealed registry."""
        if self.sealed:
            raise DSLBuildError(f'Can not register {name!r}: type definitions are sealed')
