"""Social relationship and collaboration engine for the keep-or-discard app."""

__version__ = "0.1.0"
