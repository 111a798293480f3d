"""Domain layer: the graph engine, blueprints, and the document codec.

Nothing in this package performs I/O.
"""
