"""MacroBoard application layer."""
