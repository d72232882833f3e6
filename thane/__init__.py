__title__ = 'thane'
__license__ = 'MIT'
__version__ = "0.1.0"

from .faults import *
from .options import *
from .tasks import *
from .registry import *
from .splitter import *
from .shell import *
from .dispatch import *
from .commands import *
from .wrapper import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[name-defined]
# Load the exposed API of the options
__all__ += options.__all__  # type: ignore[name-defined]
# Load the exposed API of the tasks
__all__ += tasks.__all__  # type: ignore[name-defined]
# Load the exposed API of the registry
__all__ += registry.__all__  # type: ignore[name-defined]
# Load the exposed API of the splitter
__all__ += splitter.__all__  # type: ignore[name-defined]
# Load the exposed API of the shell
__all__ += shell.__all__  # type: ignore[name-defined]
# Load the exposed API of the dispatcher
__all__ += dispatch.__all__  # type: ignore[name-defined]
# Load the exposed API of the command sets
__all__ += commands.__all__  # type: ignore[name-defined]
# Load the exposed API of the wrappers
__all__ += wrapper.__all__  # type: ignore[name-defined]
