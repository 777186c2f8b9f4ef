"""Helpers for turning uploaded file names into SQL-safe table names."""

import re
from collections.abc import Collection

SUPPORTED_EXTENSIONS = (".parquet", ".csv")

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def sanitize_table_name(filename: str, fallback: str = "table") -> str:
    """Derive a lowercase identifier from a file name.

    The extension is dropped, every other character than ``[a-z0-9_]``
    becomes an underscore, runs of underscores collapse and leading or
    trailing underscores are removed. ``fallback`` is used when nothing is
    left; a leading digit gets a ``t_`` prefix.
    """
    name = filename
    for extension in SUPPORTED_EXTENSIONS:
        if name.lower().endswith(extension):
            name = name[: -len(extension)]
            break

    name = _INVALID_CHARS.sub("_", name.lower())
    name = _REPEATED_UNDERSCORES.sub("_", name).strip("_")

    if not name:
        return fallback
    if name[0].isdigit():
        return f"t_{name}"
    return name


def generate_unique_table_name(base_name: str, existing: Collection[str]) -> str:
    """Append ``_2``, ``_3``... to ``base_name`` until it is not in ``existing``."""
    if base_name not in existing:
        return base_name

    suffix = 2
    candidate = f"{base_name}_{suffix}"
    while candidate in existing:
        suffix += 1
        candidate = f"{base_name}_{suffix}"
    return candidate
