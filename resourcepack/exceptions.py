"""Exceptions related to resourcepack."""

__all__ = [
    "ResourcePackException",
    "InputException",
    "FieldPathException",
    "OverlayException",
]


class ResourcePackException(Exception):
    """Generic base exception used for this library."""


class InputException(ResourcePackException):
    """Raised when the input files or values are not formatted as expected."""


class FieldPathException(ResourcePackException):
    """Raised when a dotted field path cannot be traversed in an object."""


class OverlayException(ResourcePackException):
    """Raised when an overlay patch object cannot be serialized."""
