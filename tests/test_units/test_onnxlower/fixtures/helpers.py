"""Test helpers for building Node views and running reference models."""

import onnx.helper as onnx_helper
import onnxruntime as ort

from onnxlower.frontend import Node
from onnxlower.ir import ElementType, PartialShape, ops


def make_node(op_type, inputs, opset=1, name=None, **attrs):
    """Create a Node view with ONNX attributes built from keyword arguments."""
    attributes = {key: onnx_helper.make_attribute(key, value) for key, value in attrs.items()}
    return Node(name or f"{op_type}_0", op_type, inputs, attributes, opset)


def make_input(shape, element_type=ElementType.F32, name="X"):
    """Create a Parameter value.

    :param shape: Dimensions (None entries unknown), or None for unknown rank
    """
    return ops.parameter(name, element_type, PartialShape(None if shape is None else tuple(shape)))


def run_onnxruntime(model, feeds):
    """Run an ONNX model with onnxruntime and return its outputs by name."""
    session = ort.InferenceSession(model.SerializeToString(), providers=["CPUExecutionProvider"])
    names = [output.name for output in session.get_outputs()]
    return dict(zip(names, session.run(None, feeds), strict=True))
