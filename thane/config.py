"""
Thane runtime configuration.

Host applications configure the engine the same way they configure their
program metadata: through dunder attributes on the __main__ module, plus a
couple of environment variables for switches that are useful without touching
code.

__main__ attributes
- __prog__   : program name shown in banners and fault headers (default: basename of argv[0]).
- __styles__ : mapping of palette keys to rich styles, merged over the defaults.
- __codes__  : mapping of FaultCode -> label used when rendering fault codes.

Environment
- THANE_DEBUG     : "1", "true", "yes" or "on" turns on debugging mode for command sets
                    that do not set it explicitly (faults propagate instead of being reported).
- THANE_LOG_LEVEL : default level name for thane.logs.configure().
"""
import os
import sys
from collections import defaultdict

DEBUG_VARIABLE = "THANE_DEBUG"
LOG_LEVEL_VARIABLE = "THANE_LOG_LEVEL"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _main():
    return sys.modules.get("__main__")


def debugging():
    """return True when the THANE_DEBUG environment variable is truthy."""
    return os.environ.get(DEBUG_VARIABLE, "").strip().lower() in _TRUTHY


def log_level(default="WARNING", /):
    """return the level name from THANE_LOG_LEVEL (upper-cased), or `default`."""
    return os.environ.get(LOG_LEVEL_VARIABLE, "").strip().upper() or default


def prog():
    """
    return the host program name.

    lookup order
    - __main__.__prog__ when defined.
    - basename of sys.argv[0] otherwise ("thane" when argv is empty, e.g. embedded interpreters).
    """
    name = getattr(_main(), "__prog__", None)
    if name:
        return str(name)
    if sys.argv and sys.argv[0]:
        return os.path.basename(sys.argv[0])
    return "thane"


def palette(defaults, /):
    """
    merge the host's __styles__ over `defaults`.

    missing keys resolve to "" (no style), so renderers can look up any key safely.
    """
    return defaultdict(str, dict(defaults) | dict(getattr(_main(), "__styles__", {})))


def codes():
    """return the host's __codes__ mapping (empty when undefined)."""
    return dict(getattr(_main(), "__codes__", {}))


__all__ = (
    "DEBUG_VARIABLE",
    "LOG_LEVEL_VARIABLE",
    "debugging",
    "log_level",
    "prog",
    "palette",
    "codes",
)
