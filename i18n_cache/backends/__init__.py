"""Translation backends."""
from .simple_backend import SimpleBackend

__all__ = ["SimpleBackend"]
