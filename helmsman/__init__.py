__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'helmsman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .compiler import *
from .converters import *
from .faults import *
from .lexer import *
from .matcher import *
from .parser import *
from .resolver import *
from .segments import *
from .validation import *

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

# Load the exposed API of the compiler
__all__ += compiler.__all__  # type: ignore[attr-defined]
# Load the exposed API of the converters
__all__ += converters.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the lexer
__all__ += lexer.__all__  # type: ignore[attr-defined]
# Load the exposed API of the matcher
__all__ += matcher.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser
__all__ += parser.__all__  # type: ignore[attr-defined]
# Load the exposed API of the resolver
__all__ += resolver.__all__  # type: ignore[attr-defined]
# Load the exposed API of the segments
__all__ += segments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the validation
__all__ += validation.__all__  # type: ignore[attr-defined]
