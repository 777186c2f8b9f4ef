"""Macro SQL generation.

Turns catalog macro definitions into DuckDB statements. Templates use
``{{name}}`` placeholders: a role name is replaced by the concrete table
currently bound to it, a parameter name by the bare parameter identifier
so that it becomes a macro-local variable of the generated table macro.

All functions here are pure.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from macroboard.domain.entities.catalog import MacroDefinition

# Pattern to match placeholders: {{name}}
PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

COMMENT_PREFIX = "--"


@dataclass(frozen=True)
class MappingValidation:
    """Whether every dependency role of a macro is bound."""

    satisfied: bool
    missing_roles: list[str] = field(default_factory=list)


def extract_placeholders(sql_template: str) -> list[str]:
    """Return placeholder names in first-seen order, without duplicates."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(sql_template):
        seen.setdefault(match.group(1), None)
    return list(seen)


def validate_mappings(macro: MacroDefinition, bindings: Mapping[str, str]) -> MappingValidation:
    """Check that every role ``macro`` depends on has a binding.

    A role counts as bound whenever it has an entry in ``bindings``, the
    same rule ``RoleBindingTable.is_bound`` applies.
    """
    missing = [dep for dep in macro.depends_on if dep not in bindings]
    return MappingValidation(satisfied=not missing, missing_roles=missing)


def strip_comment_lines(sql: str) -> str:
    """Drop lines that start with ``--``.

    Only whole comment lines are removed; trailing comments and ``--``
    inside string literals are left alone. This is not a SQL parser.
    """
    lines = [line for line in sql.split("\n") if not line.strip().startswith(COMMENT_PREFIX)]
    return "\n".join(lines).strip()


def sql_literal(value: Any) -> str:
    """Render a Python value as a SQL literal."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    if value is None:
        return "NULL"
    text = str(value).replace("'", "''")
    return f"'{text}'"


def generate_definition_sql(
    macro: MacroDefinition,
    bindings: Mapping[str, str],
    parameter_defaults: Optional[Mapping[str, Any]] = None,
) -> str:
    """Generate the ``CREATE OR REPLACE MACRO ... AS TABLE`` statement.

    Args:
        macro: The macro definition.
        bindings: Current role -> table bindings. Callers validate first;
            placeholders for unbound roles are left untouched.
        parameter_defaults: Optional parameter name -> value. Parameters
            listed here are declared with a default (``name := value``).

    Returns:
        Complete DuckDB statement defining the macro.
    """
    body = strip_comment_lines(macro.sql_template)
    parameter_names = set(macro.parameter_names)

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name in bindings:
            return bindings[name]
        if name in parameter_names:
            return name
        return match.group(0)

    body = PLACEHOLDER_PATTERN.sub(replace, body)

    defaults = parameter_defaults or {}
    signature = ", ".join(
        f"{name} := {sql_literal(defaults[name])}" if name in defaults else name
        for name in macro.parameter_names
    )

    return f"CREATE OR REPLACE MACRO {macro.id}({signature}) AS TABLE\n{body}"


def generate_drop_sql(macro_id: str, table_macro: bool = True) -> str:
    """Generate the statement removing a macro.

    DuckDB drops table macros with ``DROP MACRO TABLE``; the generic
    ``DROP MACRO`` form is the fallback.
    """
    if table_macro:
        return f"DROP MACRO TABLE IF EXISTS {macro_id}"
    return f"DROP MACRO IF EXISTS {macro_id}"


def generate_invocation_sql(macro: MacroDefinition) -> str:
    """Generate a sample call for the user to edit.

    Parameters with a default use it; the others get a ``{name}`` token
    for the user to replace.
    """
    args = ", ".join(
        sql_literal(p.default) if p.has_default else f"{{{p.name}}}"
        for p in macro.parameters
    )
    return f"SELECT * FROM {macro.id}({args})"
