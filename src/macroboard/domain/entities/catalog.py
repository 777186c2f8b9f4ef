"""Template catalog entities.

The catalog is the immutable set of abstract table roles and macro
definitions handed to MacroBoard at startup. Macros declare which roles
they depend on and carry a SQL template with ``{{name}}`` placeholders for
both the tables behind those roles and their formal parameters.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from macroboard.domain.exceptions import UnknownMacroError


@dataclass(frozen=True)
class TableRole:
    """An abstract table that macros can depend on.

    Attributes:
        name: Role name, also the placeholder used in SQL templates.
        description: Human-readable description shown to users.
        expected_columns: Columns a table bound to this role should provide.
        category: Grouping category (e.g. "mco").
    """

    name: str
    description: str = ""
    expected_columns: tuple[str, ...] = ()
    category: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Table role name is required")


@dataclass(frozen=True)
class MacroParameter:
    """A formal parameter of a macro.

    A ``default`` of None means no default was declared.
    """

    name: str
    type: str = "VARCHAR"
    default: Any = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Macro parameter name is required")

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class MacroDefinition:
    """A named, parameterized, table-producing query template.

    Attributes:
        id: Unique identifier, also the macro name in the query engine.
        name: Display title.
        description: Longer description for search and listings.
        category: Category tag used to group templates.
        parameters: Ordered formal parameters.
        depends_on: Ordered role names the template reads from.
        sql_template: SQL body with ``{{role}}`` and ``{{parameter}}`` placeholders.
    """

    id: str
    sql_template: str
    name: str = ""
    description: str = ""
    category: str = ""
    parameters: tuple[MacroParameter, ...] = ()
    depends_on: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Macro ID is required")
        if not self.sql_template or not self.sql_template.strip():
            raise ValueError(f"Macro {self.id!r} has an empty SQL template")
        if not self.name:
            object.__setattr__(self, "name", self.id)

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]

    def depends_on_role(self, role: str) -> bool:
        return role in self.depends_on

    def missing_roles(self, bound_roles: Iterable[str]) -> list[str]:
        """Return dependency roles absent from ``bound_roles``, in declaration order."""
        bound = set(bound_roles)
        return [dep for dep in self.depends_on if dep not in bound]


@dataclass(frozen=True)
class TemplateCatalog:
    """Immutable catalog of table roles and macro definitions.

    Both mappings preserve declaration order, which is the order used for
    auto-binding and listings.
    """

    roles: Mapping[str, TableRole] = field(default_factory=dict)
    macros: Mapping[str, MacroDefinition] = field(default_factory=dict)

    @classmethod
    def from_entities(
        cls,
        roles: Iterable[TableRole],
        macros: Iterable[MacroDefinition],
    ) -> "TemplateCatalog":
        """Build a catalog from entity lists, rejecting duplicate keys."""
        role_map: dict[str, TableRole] = {}
        for role in roles:
            if role.name in role_map:
                raise ValueError(f"Duplicate table role: {role.name!r}")
            role_map[role.name] = role

        macro_map: dict[str, MacroDefinition] = {}
        for macro in macros:
            if macro.id in macro_map:
                raise ValueError(f"Duplicate macro id: {macro.id!r}")
            macro_map[macro.id] = macro

        return cls(roles=role_map, macros=macro_map)

    def has_role(self, name: str) -> bool:
        return name in self.roles

    def get_macro(self, macro_id: str) -> MacroDefinition:
        """Get a macro by ID.

        Raises:
            UnknownMacroError: If the catalog has no such macro.
        """
        try:
            return self.macros[macro_id]
        except KeyError:
            raise UnknownMacroError(macro_id) from None

    def macros_depending_on(self, role: str) -> list[MacroDefinition]:
        return [m for m in self.macros.values() if m.depends_on_role(role)]

    def available_macros(self, bound_roles: Iterable[str]) -> list[MacroDefinition]:
        """Macros whose every dependency is in ``bound_roles``."""
        bound = set(bound_roles)
        return [m for m in self.macros.values() if all(dep in bound for dep in m.depends_on)]

    def macro_count_by_role(self) -> dict[str, int]:
        return {name: len(self.macros_depending_on(name)) for name in self.roles}

    def undeclared_dependencies(self) -> dict[str, list[str]]:
        """Map macro ids to dependency roles the catalog does not declare."""
        problems: dict[str, list[str]] = {}
        for macro in self.macros.values():
            missing = [dep for dep in macro.depends_on if dep not in self.roles]
            if missing:
                problems[macro.id] = missing
        return problems
