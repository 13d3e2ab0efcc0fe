"""Normalization stage between extraction and the sink."""
from .fields import FieldChange, NormalizeResult, normalize_record

__all__ = ["FieldChange", "NormalizeResult", "normalize_record"]
