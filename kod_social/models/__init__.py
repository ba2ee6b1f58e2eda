"""Convenience exports for ORM models."""
from .document import DocumentRow

__all__ = ["DocumentRow"]
