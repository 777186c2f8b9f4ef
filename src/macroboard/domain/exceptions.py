"""Domain exceptions for MacroBoard."""


class UnknownMacroError(KeyError):
    """Raised when a macro identifier is not present in the catalog.

    This is a caller contract violation: every identifier that reaches the
    activation manager is expected to come from the catalog itself.
    """

    def __init__(self, macro_id: str) -> None:
        self.macro_id = macro_id
        super().__init__(macro_id)

    def __str__(self) -> str:
        return f"Unknown macro: {self.macro_id!r}"


class CatalogError(ValueError):
    """Raised when a catalog document cannot be turned into a catalog."""
