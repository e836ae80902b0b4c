"""
uniload - Load prebuilt packages into the running process

Tool code asks for a set of packages by name and gets their exports back,
without spawning a subprocess or running a build. Results are cached per
request until the release changes.
"""

__version__ = "0.1.0"


__all__ = [
    "load",
    "Uniloader",
    "CacheRegistry",
    "LoadFailedError",
    "UniloadConfig",
    "load_config",
    "get_uniload_home",
]

from .cache import CacheRegistry
from .config import UniloadConfig, load_config, get_uniload_home
from .errors import LoadFailedError
from .loader import Uniloader, load
