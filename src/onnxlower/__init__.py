__docformat__ = "restructuredtext"
__version__ = "2026.1.0"
__all__ = [
    "OnnxLower",
    "evaluate",
]

from onnxlower._onnxlower import OnnxLower
from onnxlower.ir import evaluate
