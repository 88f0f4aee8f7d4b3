"""Stage 2: Structural IR Builder.

Builds pure structural intermediate representation (IR) from normalized ONNX
models.
"""

__docformat__ = "restructuredtext"
__all__ = ["build_model_ir"]

from onnx import ModelProto, NodeProto

from onnxlower.build.types import ModelIR, NodeIR
from onnxlower.normalize import (
    extract_onnx_opset_version,
    get_onnx_initializers,
    get_onnx_model_elem_types,
    get_onnx_model_input_names,
    get_onnx_model_output_names,
    get_onnx_model_shapes,
    get_onnx_nodes,
)


def _build_node_ir(node: NodeProto, node_counter: int) -> NodeIR:
    """Build pure structural NodeIR for a single ONNX node.

    :param node: ONNX node
    :param node_counter: Current node index (for name generation)
    :return: NodeIR representation
    """
    # Generate node name from ONNX node name, or use first output name as fallback
    name = (
        node.name
        if node.name
        else (node.output[0] if node.output else f"node_{node_counter}")
    )

    return NodeIR(
        name=name,
        onnx_op_type=node.op_type,
        domain=node.domain,
        raw_attributes={attr.name: attr for attr in node.attribute},
        input_names=list(node.input),
        output_names=list(node.output),
    )


def build_model_ir(model: ModelProto) -> ModelIR:
    """Build pure structural IR from ONNX model.

    Stage 2 extracts only structural information:
    - ONNX operator types and domains
    - Graph topology (connections between nodes)
    - Tensor shapes and element types
    - Raw attributes (unparsed)

    :param model: ONNX model
    :return: ModelIR representation (structural only)
    """
    opset_version = extract_onnx_opset_version(model)

    layers = [_build_node_ir(node, idx) for idx, node in enumerate(get_onnx_nodes(model))]

    return ModelIR(
        name=model.graph.name,
        opset_version=opset_version,
        layers=layers,
        input_names=get_onnx_model_input_names(model),
        output_names=get_onnx_model_output_names(model),
        shapes=get_onnx_model_shapes(model),
        elem_types=get_onnx_model_elem_types(model),
        initializers=get_onnx_initializers(model),
    )
