"""Model keys and sink rows."""
from .model_key import generate_model_key
from .rows import ShoeRow, build_shoe_row

__all__ = ["ShoeRow", "build_shoe_row", "generate_model_key"]
