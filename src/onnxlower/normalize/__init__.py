"""Stage 1: ONNX Model Normalization.

This module normalizes ONNX models to a canonical form suitable for lowering.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "DEFAULT_DOMAINS",
    "MAX_TESTED_OPSET",
    "MIN_TESTED_OPSET",
    "extract_onnx_opset_version",
    "get_onnx_initializers",
    "get_onnx_model_elem_types",
    "get_onnx_model_input_names",
    "get_onnx_model_output_names",
    "get_onnx_model_shapes",
    "get_onnx_nodes",
    "load_and_preprocess_onnx_model",
]

from onnxlower.normalize.normalize import (
    MAX_TESTED_OPSET,
    MIN_TESTED_OPSET,
    load_and_preprocess_onnx_model,
)
from onnxlower.normalize.utils import (
    DEFAULT_DOMAINS,
    extract_onnx_opset_version,
    get_onnx_initializers,
    get_onnx_model_elem_types,
    get_onnx_model_input_names,
    get_onnx_model_output_names,
    get_onnx_model_shapes,
    get_onnx_nodes,
)
