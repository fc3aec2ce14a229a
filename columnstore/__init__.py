"""Columnar storage primitives: columns, indexes, matching, predicates and compression."""

__version__ = "0.1.0"

__all__ = ["column", "common", "compress", "evaluate", "index", "match", "predicate"]