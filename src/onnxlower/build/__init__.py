"""Stage 2: Structural IR Construction.

This module builds structural intermediate representation (IR) from normalized
ONNX models.
"""

__docformat__ = "restructuredtext"
__all__ = ["ModelIR", "NodeIR", "build_model_ir"]

from onnxlower.build.builder import build_model_ir
from onnxlower.build.types import ModelIR, NodeIR
