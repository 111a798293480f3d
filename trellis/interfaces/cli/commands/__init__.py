"""CLI command groups for Trellis.

Command groups:
- node: Graph editing and listing (add, rm, link, ls, ...), registered
  directly on the main app
- blueprint: Blueprint store (save, ins, show, ls, rm, export), mounted
  as ``trellis bp``
"""

from trellis.interfaces.cli.commands import blueprint, node

__all__ = ["node", "blueprint"]
