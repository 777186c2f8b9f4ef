"""Pydantic schemas for compiled catalog documents.

A compiled catalog document is the JSON produced by the build-time template
compiler: a ``tables`` object keyed by role name and a ``macros`` object
keyed by macro id, each macro carrying its SQL template inline.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from macroboard.core.logging import get_logger
from macroboard.domain.entities.catalog import (
    MacroDefinition,
    MacroParameter,
    TableRole,
    TemplateCatalog,
)
from macroboard.domain.exceptions import CatalogError

logger = get_logger(__name__)


class TableRoleSchema(BaseModel):
    """Definition of a table role in a catalog document."""

    description: str = Field(default="", description="Human-readable description")
    expected_columns: list[str] = Field(
        default_factory=list,
        description="Columns a bound table is expected to provide",
    )
    category: str = Field(default="", description="Grouping category")


class MacroParameterSchema(BaseModel):
    """Definition of a formal macro parameter."""

    name: str = Field(..., min_length=1, description="Parameter name")
    type: str = Field(default="VARCHAR", description="Parameter type tag")
    default: Any = Field(default=None, description="Default value, if any")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Parameter names become macro-local identifiers."""
        if not v.isidentifier():
            raise ValueError("Parameter name must be a valid identifier")
        return v


class MacroSchema(BaseModel):
    """Definition of a macro in a catalog document."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", description="Display title")
    description: str = Field(default="", description="Macro description")
    category: str = Field(default="", description="Category tag")
    depends_on: list[str] = Field(default_factory=list, description="Required table roles")
    parameters: list[MacroParameterSchema] = Field(default_factory=list)
    sql_template: str = Field(..., alias="sqlTemplate", min_length=1)


class CatalogDocument(BaseModel):
    """Root schema of a compiled catalog document."""

    tables: dict[str, TableRoleSchema] = Field(default_factory=dict)
    macros: dict[str, MacroSchema] = Field(default_factory=dict)

    @field_validator("macros")
    @classmethod
    def validate_macro_ids(cls, v: dict[str, MacroSchema]) -> dict[str, MacroSchema]:
        """Macro ids are used verbatim as macro names in SQL."""
        for macro_id in v:
            if not macro_id.isidentifier():
                raise ValueError(f"Macro id {macro_id!r} must be a valid identifier")
        return v

    def to_catalog(self) -> TemplateCatalog:
        """Convert the document into an immutable catalog."""
        roles = [
            TableRole(
                name=name,
                description=definition.description,
                expected_columns=tuple(definition.expected_columns),
                category=definition.category,
            )
            for name, definition in self.tables.items()
        ]
        macros = [
            MacroDefinition(
                id=macro_id,
                name=definition.name,
                description=definition.description,
                category=definition.category,
                parameters=tuple(
                    MacroParameter(name=p.name, type=p.type, default=p.default)
                    for p in definition.parameters
                ),
                depends_on=tuple(definition.depends_on),
                sql_template=definition.sql_template.strip(),
            )
            for macro_id, definition in self.macros.items()
        ]
        return TemplateCatalog.from_entities(roles, macros)


def catalog_from_dict(data: dict[str, Any]) -> TemplateCatalog:
    """Validate a catalog document and build the catalog.

    Raises:
        CatalogError: If the document is invalid.
    """
    try:
        document = CatalogDocument.model_validate(data)
        catalog = document.to_catalog()
    except (ValidationError, ValueError) as e:
        raise CatalogError(f"Invalid catalog document: {e}") from e

    for macro_id, missing in catalog.undeclared_dependencies().items():
        logger.warning(
            "Macro depends on undeclared table roles",
            macro_id=macro_id,
            missing_roles=missing,
        )

    logger.debug(
        "Catalog loaded",
        role_count=len(catalog.roles),
        macro_count=len(catalog.macros),
    )
    return catalog


def load_catalog(path: str | Path) -> TemplateCatalog:
    """Load a compiled catalog document from a JSON file.

    Raises:
        CatalogError: If the file cannot be read or is not a valid document.
    """
    catalog_path = Path(path)
    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read catalog {catalog_path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Catalog {catalog_path} must contain a JSON object")

    return catalog_from_dict(data)
