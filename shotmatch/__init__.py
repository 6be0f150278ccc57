from . import utils
from . import vision
from . import composition
from . import session

__version__ = "1.0.0"

__all__ = [
    "utils",
    "vision",
    "composition",
    "session",
]
