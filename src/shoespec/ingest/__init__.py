"""Content source connector."""
from .loader import SourceError, load_articles

__all__ = ["SourceError", "load_articles"]
