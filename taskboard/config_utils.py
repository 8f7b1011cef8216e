"""Environment lookups for taskboard settings.

Blank values count as unset, so ``DATABASE_URL=`` behaves like a missing
variable.
"""

from __future__ import annotations

import os
from typing import Optional

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def env_value(*names: str) -> Optional[str]:
    """The first of ``names`` set to a non-blank value, stripped."""
    for name in names:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    return None


def env_flag(name: str, default: bool = False) -> bool:
    value = (env_value(name) or "").lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default
