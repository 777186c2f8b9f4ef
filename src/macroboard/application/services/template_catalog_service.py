"""Template catalog service - read-only views for the command palette.

Every query is a pure function of the catalog and the set of currently
bound roles, so it is safe to call on every keystroke of a search box.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from macroboard.core.macros.generator import generate_invocation_sql
from macroboard.domain.entities.catalog import (
    MacroDefinition,
    MacroParameter,
    TemplateCatalog,
)

OTHER_CATEGORY = "other"


@dataclass(frozen=True)
class TemplateCategory:
    """A known category of the command palette."""

    id: str
    label: str
    description: str


CATEGORIES: tuple[TemplateCategory, ...] = (
    TemplateCategory("casemix", "Casemix", "GHM/GHS analysis"),
    TemplateCategory("activity", "Activity", "Volume and activity metrics"),
    TemplateCategory("exploration", "Exploration", "Data exploration queries"),
    TemplateCategory("quality", "Quality", "Data quality checks"),
)


@dataclass(frozen=True)
class TemplateEntry:
    """A macro as shown in the command palette.

    Attributes:
        id: Macro id.
        title: Display title.
        description: Macro description.
        category: Category tag.
        sql: Ready-to-edit invocation SQL.
        parameters: Formal parameters.
        depends_on: Required roles.
        available: Whether every required role is bound.
        missing_dependencies: Required roles that are not bound.
    """

    id: str
    title: str
    description: str
    category: str
    sql: str
    parameters: tuple[MacroParameter, ...] = ()
    depends_on: tuple[str, ...] = ()
    available: bool = True
    missing_dependencies: tuple[str, ...] = ()


@dataclass
class TemplateGroup:
    """Templates of one category."""

    id: str
    label: str
    description: str
    templates: list[TemplateEntry] = field(default_factory=list)


@dataclass(frozen=True)
class RoleUsage:
    """A catalog role with its binding status and dependent template count."""

    name: str
    description: str
    category: str
    expected_columns: tuple[str, ...]
    is_bound: bool
    template_count: int


@dataclass(frozen=True)
class AvailabilitySummary:
    """How many catalog templates are currently runnable."""

    available: int
    total: int
    percentage: int


class TemplateCatalogService:
    """Read-only projections of the catalog for the presentation layer.

    ``bound`` arguments accept any iterable of bound role names, including
    a role -> table mapping such as ``RoleBindingTable.all_bindings()``.
    """

    def __init__(self, catalog: TemplateCatalog) -> None:
        self.catalog = catalog

    def runnable_templates(self, bound: Iterable[str]) -> list[TemplateEntry]:
        """Templates whose dependencies are all bound."""
        bound_roles = set(bound)
        return [
            self._entry(macro, [])
            for macro in self.catalog.available_macros(bound_roles)
        ]

    def all_templates_with_status(self, bound: Iterable[str]) -> list[TemplateEntry]:
        """Every template, flagged available or not with its missing roles."""
        bound_roles = set(bound)
        return [
            self._entry(macro, macro.missing_roles(bound_roles))
            for macro in self.catalog.macros.values()
        ]

    def by_category(
        self,
        bound: Iterable[str],
        include_unsatisfied: bool = False,
    ) -> dict[str, TemplateGroup]:
        """Group templates by category.

        Known categories are always present, in their fixed order. An
        ``other`` group is added only when some template has an unknown
        category.
        """
        templates = self._select(bound, include_unsatisfied)
        known = {category.id for category in CATEGORIES}

        grouped: dict[str, TemplateGroup] = {}
        for category in CATEGORIES:
            grouped[category.id] = TemplateGroup(
                id=category.id,
                label=category.label,
                description=category.description,
                templates=[t for t in templates if t.category == category.id],
            )

        uncategorized = [t for t in templates if t.category not in known]
        if uncategorized:
            grouped[OTHER_CATEGORY] = TemplateGroup(
                id=OTHER_CATEGORY,
                label="Other",
                description="Miscellaneous templates",
                templates=uncategorized,
            )

        return grouped

    def search(
        self,
        query: Optional[str],
        bound: Iterable[str],
        include_unsatisfied: bool = False,
    ) -> list[TemplateEntry]:
        """Case-insensitive substring search over title, description, category and id.

        A blank query returns the unfiltered selection.
        """
        templates = self._select(bound, include_unsatisfied)
        if not query or not query.strip():
            return templates

        needle = query.lower()
        return [
            t
            for t in templates
            if needle in t.title.lower()
            or needle in t.description.lower()
            or needle in t.category.lower()
            or needle in t.id.lower()
        ]

    def roles_with_usage_counts(self, bound: Iterable[str]) -> list[RoleUsage]:
        """Every catalog role with its binding status and dependent template count."""
        bound_roles = set(bound)
        counts = self.catalog.macro_count_by_role()
        return [
            RoleUsage(
                name=name,
                description=role.description,
                category=role.category,
                expected_columns=role.expected_columns,
                is_bound=name in bound_roles,
                template_count=counts.get(name, 0),
            )
            for name, role in self.catalog.roles.items()
        ]

    def availability_summary(self, bound: Iterable[str]) -> AvailabilitySummary:
        """Count runnable templates; the percentage is rounded half up."""
        total = len(self.catalog.macros)
        available = len(self.catalog.available_macros(set(bound)))
        percentage = (available * 200 + total) // (2 * total) if total else 0
        return AvailabilitySummary(available=available, total=total, percentage=percentage)

    def _select(self, bound: Iterable[str], include_unsatisfied: bool) -> list[TemplateEntry]:
        if include_unsatisfied:
            return self.all_templates_with_status(bound)
        return self.runnable_templates(bound)

    @staticmethod
    def _entry(macro: MacroDefinition, missing: list[str]) -> TemplateEntry:
        return TemplateEntry(
            id=macro.id,
            title=macro.name,
            description=macro.description,
            category=macro.category,
            sql=generate_invocation_sql(macro),
            parameters=macro.parameters,
            depends_on=macro.depends_on,
            available=not missing,
            missing_dependencies=tuple(missing),
        )
