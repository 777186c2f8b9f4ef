"""Domain entities for MacroBoard.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from macroboard.domain.entities.catalog import (
    MacroDefinition,
    MacroParameter,
    TableRole,
    TemplateCatalog,
)

__all__ = [
    "MacroDefinition",
    "MacroParameter",
    "TableRole",
    "TemplateCatalog",
]
