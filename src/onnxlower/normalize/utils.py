"""Utility functions for ONNX model normalization and inspection."""

__docformat__ = "restructuredtext"
__all__ = [
    "extract_onnx_opset_version",
    "get_onnx_initializers",
    "get_onnx_model_elem_types",
    "get_onnx_model_input_names",
    "get_onnx_model_output_names",
    "get_onnx_model_shapes",
    "get_onnx_nodes",
]

from onnx import ModelProto, NodeProto, TensorProto, ValueInfoProto

DEFAULT_DOMAINS = ("", "ai.onnx")


def _get_value_infos(model: ModelProto) -> list[ValueInfoProto]:
    return [*model.graph.input, *model.graph.output, *model.graph.value_info]


def get_onnx_model_input_names(model: ModelProto) -> list[str]:
    """Get model input tensor names, excluding initializers.

    :param model: ONNX model
    :return: List of input tensor names
    """
    initializers = get_onnx_initializers(model)
    return [inp.name for inp in model.graph.input if inp.name not in initializers]


def get_onnx_model_output_names(model: ModelProto) -> list[str]:
    """Get model output tensor names.

    :param model: ONNX model
    :return: List of output tensor names
    """
    return [output_info.name for output_info in model.graph.output]


def get_onnx_nodes(model: ModelProto) -> list[NodeProto]:
    """Get all nodes in the model graph.

    :param model: ONNX model
    :return: List of ONNX nodes
    """
    return list(model.graph.node)


def get_onnx_initializers(model: ModelProto) -> dict[str, TensorProto]:
    """Get all initializer tensors.

    :param model: ONNX model
    :return: Dictionary mapping initializer tensor names to TensorProto
    """
    return {init.name: init for init in model.graph.initializer}


def _get_shape_from_type(tensor_type) -> tuple[int | str | None, ...] | None:
    """Extract shape from tensor type.

    :param tensor_type: ONNX TypeProto.Tensor
    :return: Shape tuple (str for symbolic dims, None for unknown dims),
        or None if the rank is unknown
    """
    if not tensor_type.HasField("shape"):
        return None
    dims: list[int | str | None] = []
    for d in tensor_type.shape.dim:
        kind = d.WhichOneof("value")
        if kind == "dim_value":
            dims.append(d.dim_value)
        elif kind == "dim_param":
            dims.append(d.dim_param)
        else:
            dims.append(None)
    return tuple(dims)


def get_onnx_model_shapes(model: ModelProto) -> dict[str, tuple[int | str | None, ...] | None]:
    """Get shapes of all typed tensors in the ONNX model.

    Initializer shapes are always static.

    :param model: ONNX model
    :return: Mapping from tensor name to shape (None if rank is unknown)
    """
    shapes: dict[str, tuple[int | str | None, ...] | None] = {}
    for value_info in _get_value_infos(model):
        if value_info.type.HasField("tensor_type"):
            shapes[value_info.name] = _get_shape_from_type(value_info.type.tensor_type)
    for init in model.graph.initializer:
        shapes[init.name] = tuple(init.dims)
    return shapes


def get_onnx_model_elem_types(model: ModelProto) -> dict[str, int]:
    """Get ONNX element types of all typed tensors in the model.

    :param model: ONNX model
    :return: Mapping from tensor name to TensorProto.DataType
    """
    elem_types: dict[str, int] = {}
    for value_info in _get_value_infos(model):
        if value_info.type.HasField("tensor_type"):
            elem_types[value_info.name] = value_info.type.tensor_type.elem_type
    for init in model.graph.initializer:
        elem_types[init.name] = init.data_type
    return elem_types


def extract_onnx_opset_version(model: ModelProto) -> int:
    """Extract the default-domain ONNX opset version from model.

    :param model: ONNX model
    :return: Opset version
    """
    if not model.opset_import:
        raise ValueError("Model has no opset_import")

    for opset in model.opset_import:
        if opset.domain in DEFAULT_DOMAINS:
            return opset.version  # type: ignore[no-any-return]

    raise ValueError("Model has no primary opset (domain='' or 'ai.onnx')")
