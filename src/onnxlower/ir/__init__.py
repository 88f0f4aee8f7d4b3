"""Target IR.

Element types, partial shapes, values, operations, construction primitives
and a reference evaluator.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "ElementType",
    "Model",
    "Operation",
    "PartialShape",
    "ReductionKind",
    "Value",
    "evaluate",
    "ops",
]

from onnxlower.ir import ops
from onnxlower.ir.evaluate import evaluate
from onnxlower.ir.model import Model
from onnxlower.ir.ops import ReductionKind
from onnxlower.ir.types import ElementType, Operation, PartialShape, Value
