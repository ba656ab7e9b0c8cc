__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'signet'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .capture import *
from .faults import *
from .hooks import *
from .matcher import *
from .parameters import *
from .policy import *
from .runner import *
from .signatures import *
from .usage import *
from .values import *

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
    "version_info"
)

# Load the exposed API of every layer, leaves first
__all__ += values.__all__  # type: ignore[attr-defined]
__all__ += faults.__all__  # type: ignore[attr-defined]
__all__ += parameters.__all__  # type: ignore[attr-defined]
__all__ += signatures.__all__  # type: ignore[attr-defined]
__all__ += policy.__all__  # type: ignore[attr-defined]
__all__ += capture.__all__  # type: ignore[attr-defined]
__all__ += matcher.__all__  # type: ignore[attr-defined]
__all__ += usage.__all__  # type: ignore[attr-defined]
__all__ += hooks.__all__  # type: ignore[attr-defined]
__all__ += runner.__all__  # type: ignore[attr-defined]
