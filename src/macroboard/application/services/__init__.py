"""Application services."""

from macroboard.application.services.table_lifecycle_service import (
    TableLifecycleService,
    register_table_handlers,
)
from macroboard.application.services.table_names import (
    SUPPORTED_EXTENSIONS,
    generate_unique_table_name,
    sanitize_table_name,
)
from macroboard.application.services.template_catalog_service import (
    CATEGORIES,
    AvailabilitySummary,
    RoleUsage,
    TemplateCatalogService,
    TemplateEntry,
    TemplateGroup,
)

__all__ = [
    "CATEGORIES",
    "SUPPORTED_EXTENSIONS",
    "AvailabilitySummary",
    "RoleUsage",
    "TableLifecycleService",
    "TemplateCatalogService",
    "TemplateEntry",
    "TemplateGroup",
    "generate_unique_table_name",
    "register_table_handlers",
    "sanitize_table_name",
]
