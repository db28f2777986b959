"""
.. include:: ../README.md
"""

__all__ = [
    "config",
    "exceptions",
    "fields",
    "kustomize",
    "manifest",
    "patch",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
