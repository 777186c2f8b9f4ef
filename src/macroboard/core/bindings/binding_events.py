"""Binding change events.

Listeners registered on a RoleBindingTable receive one of these event names
as the first positional argument, followed by the role, the new table
(None for unmap) and the previous table (None if the role was unbound).
"""

from collections.abc import Callable
from typing import Optional


class BindingEvent:
    """Binding change event names."""

    MAP = "map"
    UNMAP = "unmap"


BindingListener = Callable[[str, str, Optional[str], Optional[str]], None]
