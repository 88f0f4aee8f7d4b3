"""Stage 2: Structural IR Type Definitions.

Defines NodeIR and ModelIR dataclasses for pure structural IR.
Stage 2 extracts ONNX graph structure only - no lowering happens here.
"""

__docformat__ = "restructuredtext"
__all__ = ["ModelIR", "NodeIR"]

from dataclasses import dataclass

from onnx import AttributeProto, TensorProto


@dataclass(frozen=True)
class NodeIR:
    """Pure structural IR for a single ONNX node.

    :param name: Node name (from ONNX node.name or generated)
    :param onnx_op_type: ONNX operator type (e.g., "ReduceSum", "Identity")
    :param domain: Operator domain ("" for the default ONNX domain)
    :param raw_attributes: Raw ONNX attributes by name (unparsed AttributeProto)
    :param input_names: ALL input tensor names ("" marks an absent optional input)
    :param output_names: ALL output tensor names
    """

    name: str
    onnx_op_type: str
    domain: str
    raw_attributes: dict[str, AttributeProto]
    input_names: list[str]
    output_names: list[str]


@dataclass(frozen=True)
class ModelIR:
    """Pure structural IR for complete ONNX model.

    :param name: Graph name
    :param opset_version: Default-domain opset version
    :param layers: List of node IRs in graph order
    :param input_names: Model input tensor names (initializers excluded)
    :param output_names: Model output tensor names
    :param shapes: Tensor shapes (str for symbolic dims, None for unknown rank)
    :param elem_types: Tensor element types (TensorProto.DataType)
    :param initializers: All ONNX initializers
    """

    name: str
    opset_version: int
    layers: list[NodeIR]
    input_names: list[str]
    output_names: list[str]
    shapes: dict[str, tuple[int | str | None, ...] | None]
    elem_types: dict[str, int]
    initializers: dict[str, TensorProto]
