"""Read-only view over a source ONNX operator."""

__docformat__ = "restructuredtext"
__all__ = ["Node"]

from collections.abc import Sequence
from typing import Any

import numpy as np
from onnx import AttributeProto, numpy_helper

from onnxlower.build import NodeIR
from onnxlower.frontend.errors import AttributeTypeMismatchError
from onnxlower.ir import Value

# Attribute type extractors
EXTRACT_ATTR_MAP: dict[int, Any] = {
    AttributeProto.FLOAT: lambda x: x.f,
    AttributeProto.INT: lambda x: x.i,
    AttributeProto.STRING: lambda x: x.s.decode("utf-8"),
    AttributeProto.TENSOR: lambda x: numpy_helper.to_array(x.t),
    AttributeProto.FLOATS: lambda x: tuple(x.floats),
    AttributeProto.INTS: lambda x: tuple(x.ints),
    AttributeProto.STRINGS: lambda x: tuple(s.decode("utf-8") for s in x.strings),
}


class Node:
    """Source operator as seen by a translator.

    :param name: Node name
    :param op_type: ONNX operator type
    :param inputs: Input values (absent optional inputs dropped)
    :param attributes: Raw attributes by name
    :param opset_version: Opset version the node is interpreted under
    :param domain: Operator domain
    """

    def __init__(
        self,
        name: str,
        op_type: str,
        inputs: Sequence[Value],
        attributes: dict[str, AttributeProto],
        opset_version: int,
        domain: str = "",
    ):
        self._name = name
        self._op_type = op_type
        self._inputs = tuple(inputs)
        self._attributes = dict(attributes)
        self._opset_version = opset_version
        self._domain = domain

    @classmethod
    def from_node_ir(
        cls, node_ir: NodeIR, inputs: Sequence[Value], opset_version: int
    ) -> "Node":
        """Create a view over a structural node.

        :param node_ir: Structural node IR
        :param inputs: Values bound to the node's present inputs
        :param opset_version: Model opset version
        :return: Node view
        """
        return cls(
            node_ir.name,
            node_ir.onnx_op_type,
            inputs,
            node_ir.raw_attributes,
            opset_version,
            node_ir.domain,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def op_type(self) -> str:
        return self._op_type

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def inputs(self) -> tuple[Value, ...]:
        return self._inputs

    @property
    def opset_version(self) -> int:
        return self._opset_version

    @property
    def description(self) -> str:
        """Human-readable node identity for diagnostics."""
        return f"<Node({self._op_type}): {self._name}>"

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def get_attribute(self, name: str, attr_type: int, default: Any = None) -> Any:
        """Get an attribute value.

        :param name: Attribute name
        :param attr_type: Expected AttributeProto.AttributeType
        :param default: Value returned when the attribute is absent
        :return: Attribute value (tuples for lists, numpy arrays for tensors)
        :raises AttributeTypeMismatchError: If the stored type differs from attr_type
        """
        attr = self._attributes.get(name)
        if attr is None:
            return default
        if attr.type != attr_type:
            raise AttributeTypeMismatchError(
                f"Attribute '{name}' is stored as "
                f"{AttributeProto.AttributeType.Name(attr.type)}, requested "
                f"{AttributeProto.AttributeType.Name(attr_type)}",
                self.description,
            )
        extract = EXTRACT_ATTR_MAP.get(attr_type)
        if extract is None:
            raise NotImplementedError(
                f"Attribute {name} with type {attr.type} is not supported"
            )
        return extract(attr)

    def get_int(self, name: str, default: int) -> int:
        return int(self.get_attribute(name, AttributeProto.INT, default))

    def get_ints(self, name: str, default: Sequence[int] = ()) -> tuple[int, ...]:
        return tuple(self.get_attribute(name, AttributeProto.INTS, tuple(default)))

    def get_float(self, name: str, default: float) -> float:
        return float(self.get_attribute(name, AttributeProto.FLOAT, default))

    def get_string(self, name: str, default: str) -> str:
        return str(self.get_attribute(name, AttributeProto.STRING, default))

    def get_tensor(self, name: str, default: np.ndarray | None = None) -> np.ndarray | None:
        value: np.ndarray | None = self.get_attribute(name, AttributeProto.TENSOR, default)
        return value

    def __repr__(self) -> str:
        return f"{self.description} (opset {self._opset_version})"
