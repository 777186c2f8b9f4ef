"""MacroBoard infrastructure layer."""
