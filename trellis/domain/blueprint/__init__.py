"""Blueprint domain - reusable subtree templates.

Key Types:
    Blueprint - Position-indexed copy of a subtree
    EmptyBlueprint - Error for a blueprint without nodes

Functions:
    extract_blueprint - Copy a subtree out of a graph
    import_blueprint - Insert a blueprint under a node or as a root
    graph_from_blueprint - Standalone graph built from a blueprint
"""

from .extract import (
    EmptyBlueprint,
    blueprint_positions,
    extract_blueprint,
    graph_from_blueprint,
    import_blueprint,
)
from .models import Blueprint

__all__ = [
    "Blueprint",
    "EmptyBlueprint",
    "blueprint_positions",
    "extract_blueprint",
    "import_blueprint",
    "graph_from_blueprint",
]
