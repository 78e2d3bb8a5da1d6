"""Translation cache system."""
from .cache_backend import CachedBackend
from .version_manager import VersionManager, VERSION_KEY

__all__ = ["CachedBackend", "VersionManager", "VERSION_KEY"]
