"""Stage 3: Graph Import.

Lowers every node of a structural model IR into the target IR by dispatching
to the registered translators.
"""

__docformat__ = "restructuredtext"
__all__ = ["import_model"]

from onnx import numpy_helper

from onnxlower.build import ModelIR, NodeIR
from onnxlower.frontend._translators import lookup_translator
from onnxlower.frontend.errors import NoTranslatorFoundError
from onnxlower.frontend.node import Node
from onnxlower.ir import ElementType, Model, PartialShape, Value, ops
from onnxlower.normalize import DEFAULT_DOMAINS


def _create_parameters(model_ir: ModelIR) -> dict[str, Value]:
    """Create a Parameter for each model input.

    :param model_ir: Structural model IR
    :return: Parameter values by input name
    """
    parameters = {}
    for name in model_ir.input_names:
        elem_type = ElementType.from_onnx(model_ir.elem_types[name])
        shape = PartialShape.from_onnx(model_ir.shapes.get(name))
        parameters[name] = ops.parameter(name, elem_type, shape)
    return parameters


def _create_constants(model_ir: ModelIR) -> dict[str, Value]:
    """Create a Constant for each initializer.

    :param model_ir: Structural model IR
    :return: Constant values by initializer name
    """
    constants = {}
    for name, tensor in model_ir.initializers.items():
        elem_type = ElementType.from_onnx(tensor.data_type)
        constant = ops.constant(numpy_helper.to_array(tensor), elem_type)
        constant.producer.name = name
        constants[name] = constant
    return constants


def _get_node_inputs(node_ir: NodeIR, values: dict[str, Value]) -> list[Value]:
    """Get the values bound to a node's inputs.

    Empty names mark absent optional inputs. Trailing absent inputs are dropped.

    :param node_ir: Structural node IR
    :param values: Values produced so far, by tensor name
    :return: Input values
    """
    names = list(node_ir.input_names)
    while names and not names[-1]:
        names.pop()

    inputs = []
    for name in names:
        if not name:
            raise NotImplementedError(
                f"{node_ir.onnx_op_type} node {node_ir.name} skips an optional input "
                "before a present one"
            )
        if name not in values:
            raise ValueError(f"Input {name} of node {node_ir.name} is not produced before use")
        inputs.append(values[name])
    return inputs


def _name_operations(outputs: list[Value], inputs: list[Value], node_name: str) -> None:
    """Name the operations a translator created after the source node.

    Pass-through outputs keep their producer's name.
    """
    for idx, value in enumerate(outputs):
        if any(value is inp for inp in inputs):
            continue
        value.producer.name = node_name if len(outputs) == 1 else f"{node_name}:{idx}"


def _lower_node(node_ir: NodeIR, opset_version: int, values: dict[str, Value]) -> None:
    """Lower a single node and bind its outputs.

    :param node_ir: Structural node IR
    :param opset_version: Model opset version
    :param values: Values produced so far, by tensor name (updated in place)
    """
    inputs = _get_node_inputs(node_ir, values)
    node = Node.from_node_ir(node_ir, inputs, opset_version)

    if node_ir.domain not in DEFAULT_DOMAINS:
        raise NoTranslatorFoundError(
            f"Operator domain '{node_ir.domain}' is not supported", node.description
        )

    translate = lookup_translator(node.op_type, opset_version, node.description)
    outputs = translate(node)

    output_names = [name for name in node_ir.output_names if name]
    if len(outputs) < len(output_names):
        raise ValueError(
            f"{node.description} produced {len(outputs)} outputs, "
            f"expected {len(output_names)}"
        )

    _name_operations(outputs, inputs, node_ir.name)
    for name, value in zip(output_names, outputs, strict=False):
        values[name] = value


def import_model(model_ir: ModelIR) -> Model:
    """Lower a structural model IR into a target IR model.

    Any failure aborts the whole import; no partial model is returned.

    :param model_ir: Structural model IR
    :return: Lowered model
    """
    parameters = _create_parameters(model_ir)
    values: dict[str, Value] = {**_create_constants(model_ir), **parameters}

    for node_ir in model_ir.layers:
        _lower_node(node_ir, model_ir.opset_version, values)

    missing = [name for name in model_ir.output_names if name not in values]
    if missing:
        raise ValueError(f"Model outputs {missing} are not produced by any node")

    results = {name: values[name] for name in model_ir.output_names}
    return Model(name=model_ir.name, parameters=parameters, results=results)
