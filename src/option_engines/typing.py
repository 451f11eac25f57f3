from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

# typing only
Callback: TypeAlias = Callable[[], None]
