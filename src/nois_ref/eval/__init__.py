"""Evaluator helper modules for the Nois runtime."""

__all__ = [
    "blocks",
    "common",
    "destructure",
    "expr",
    "fn",
    "match",
]
