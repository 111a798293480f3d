"""Trellis - hierarchical task tracking on a multi-parent task graph."""

__version__ = "0.5.0"
