"""Process environment settings.

FORKPATH_DEV_MODE: initial value of the dev-mode flag on the default context.
FORKPATH_PRODUCTION: production build variant; set_dev_mode() becomes a
    reported no-op and results are never locked.
"""

from __future__ import annotations

import os

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        True if the variable holds one of 1/true/yes/on (case-insensitive)
    """
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return raw.lower() in _TRUTHY


dev_mode = env_flag("FORKPATH_DEV_MODE")
production = env_flag("FORKPATH_PRODUCTION")
