"""MacroBoard domain layer."""
