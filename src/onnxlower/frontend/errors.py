"""Lowering error taxonomy.

Every error carries the description of the source node that failed so the
importer can report it. Errors are never recovered locally: the import that
raised one is aborted.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "AttributeTypeMismatchError",
    "AxesRankTooLargeError",
    "ErrorKind",
    "LoweringError",
    "NoTranslatorFoundError",
    "NonStaticAxesShapeError",
    "UnsupportedTypeError",
]

from enum import Enum


class ErrorKind(Enum):
    """Kind of lowering failure."""

    UNSUPPORTED_TYPE = "UnsupportedType"
    AXES_RANK_TOO_LARGE = "AxesRankTooLarge"
    NON_STATIC_AXES_SHAPE = "NonStaticAxesShape"
    TYPE_MISMATCH = "TypeMismatch"
    NO_TRANSLATOR_FOUND = "NoTranslatorFound"


class LoweringError(ValueError):
    """Base class for errors raised while lowering a source node.

    :param message: Error message
    :param node_description: Description of the failing source node
    """

    kind: ErrorKind

    def __init__(self, message: str, node_description: str):
        super().__init__(f"{message}. Node: {node_description}")
        self.node_description = node_description


class UnsupportedTypeError(LoweringError):
    kind = ErrorKind.UNSUPPORTED_TYPE


class AxesRankTooLargeError(LoweringError):
    kind = ErrorKind.AXES_RANK_TOO_LARGE


class NonStaticAxesShapeError(LoweringError):
    kind = ErrorKind.NON_STATIC_AXES_SHAPE


class AttributeTypeMismatchError(LoweringError):
    kind = ErrorKind.TYPE_MISMATCH


class NoTranslatorFoundError(LoweringError):
    kind = ErrorKind.NO_TRANSLATOR_FOUND
