"""Macro generation and activation.

Example usage:
    from macroboard.core.macros import MacroActivationManager

    manager = MacroActivationManager(connection, bindings)
    await manager.activate_all_satisfied()
"""

from macroboard.core.macros.activation import (
    ActivationStatus,
    MacroActivationManager,
    PendingMacro,
    QueryConnection,
)
from macroboard.core.macros.generator import (
    MappingValidation,
    extract_placeholders,
    generate_definition_sql,
    generate_drop_sql,
    generate_invocation_sql,
    sql_literal,
    strip_comment_lines,
    validate_mappings,
)

__all__ = [
    # Activation
    "ActivationStatus",
    "MacroActivationManager",
    "PendingMacro",
    "QueryConnection",
    # Generation
    "MappingValidation",
    "extract_placeholders",
    "generate_definition_sql",
    "generate_drop_sql",
    "generate_invocation_sql",
    "sql_literal",
    "strip_comment_lines",
    "validate_mappings",
]
