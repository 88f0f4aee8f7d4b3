"""Stage 3: Operator Lowering.

This module lowers ONNX nodes into the target IR through versioned translators.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "SUPPORTED_TYPES_V1",
    "SUPPORTED_TYPES_V2",
    "AllAxesDynamic",
    "AttributeTypeMismatchError",
    "AxesFromAttribute",
    "AxesFromInput",
    "AxesRankTooLargeError",
    "AxesSpec",
    "ErrorKind",
    "LoweringError",
    "NoAxes",
    "NoTranslatorFoundError",
    "Node",
    "NonStaticAxesShapeError",
    "Translator",
    "UnsupportedTypeError",
    "import_model",
    "lookup_translator",
    "register_translator",
]

from onnxlower.frontend.errors import (
    AttributeTypeMismatchError,
    AxesRankTooLargeError,
    ErrorKind,
    LoweringError,
    NonStaticAxesShapeError,
    NoTranslatorFoundError,
    UnsupportedTypeError,
)
from onnxlower.frontend.node import Node
from onnxlower.frontend._translators import (
    Translator,
    lookup_translator,
    register_translator,
)
from onnxlower.frontend._translators._reduce import (
    SUPPORTED_TYPES_V1,
    SUPPORTED_TYPES_V2,
    AllAxesDynamic,
    AxesFromAttribute,
    AxesFromInput,
    AxesSpec,
    NoAxes,
)
from onnxlower.frontend.importer import import_model
