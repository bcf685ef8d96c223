__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'optwalker'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

import logging

from .conversions import *
from .arguments import *
from .commands import *
from .cursor import advance, retreat
from .faults import *
from .rendering import *
from .utils import Slot, Unset, trace

logging.getLogger(__name__).addHandler(logging.NullHandler())

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "advance",
    "retreat",
    "Slot",
    "Unset",
    "trace",
)

for _module in (conversions, arguments, commands, faults, rendering):  # type: ignore[name-defined]
    __all__ += _module.__all__
del _module
