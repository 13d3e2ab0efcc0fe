"""Running shoe specification extraction from long-form articles."""

__version__ = "0.1.0"
