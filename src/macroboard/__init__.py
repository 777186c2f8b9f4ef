"""MacroBoard - parameterized SQL templates bound to the tables you load.

Templates are declared against abstract table roles and registered as
DuckDB table macros once every role they need is bound to a loaded table.
"""

__version__ = "0.1.0"
