"""Target IR type definitions.

Defines element types, partial shapes, values and operations of the
target intermediate representation. Operations are free-standing: they hold
references to their input values, and a model is formed from its result
values by traversal.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "ElementType",
    "Operation",
    "PartialShape",
    "Value",
]

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
import torch
from onnx import TensorProto


class ElementType(Enum):
    """Tensor element type.

    :cvar BOOLEAN: Boolean
    :cvar BF16: Brain floating point (16-bit)
    """

    BOOLEAN = "boolean"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    F16 = "f16"
    BF16 = "bf16"
    F32 = "f32"
    F64 = "f64"
    STRING = "string"

    @classmethod
    def from_onnx(cls, onnx_type: int) -> "ElementType":
        """Convert an ONNX TensorProto data type.

        :param onnx_type: TensorProto.DataType value
        :return: Element type
        """
        elem_type = _FROM_ONNX.get(onnx_type)
        if elem_type is None:
            raise ValueError(
                f"ONNX data type {TensorProto.DataType.Name(onnx_type)} is not supported"
            )
        return elem_type

    @classmethod
    def from_numpy(cls, dtype: np.dtype) -> "ElementType":
        """Convert a numpy dtype.

        :param dtype: Numpy dtype
        :return: Element type
        """
        for elem_type, np_dtype in _TO_NUMPY.items():
            if np.dtype(dtype) == np_dtype:
                return elem_type
        raise ValueError(f"Numpy dtype {dtype} is not supported")

    def to_torch(self) -> torch.dtype:
        """Get the equivalent torch dtype."""
        dtype = _TO_TORCH.get(self)
        if dtype is None:
            raise ValueError(f"Element type {self.value} has no torch equivalent")
        return dtype

    def to_numpy(self) -> np.dtype:
        """Get the equivalent numpy dtype."""
        dtype = _TO_NUMPY.get(self)
        if dtype is None:
            raise ValueError(f"Element type {self.value} has no numpy equivalent")
        return dtype

    @property
    def is_integral(self) -> bool:
        return self in _INTEGRAL_TYPES

    @property
    def is_real(self) -> bool:
        return self in (ElementType.F16, ElementType.BF16, ElementType.F32, ElementType.F64)


_FROM_ONNX: dict[int, ElementType] = {
    TensorProto.BOOL: ElementType.BOOLEAN,
    TensorProto.INT8: ElementType.I8,
    TensorProto.INT16: ElementType.I16,
    TensorProto.INT32: ElementType.I32,
    TensorProto.INT64: ElementType.I64,
    TensorProto.UINT8: ElementType.U8,
    TensorProto.UINT16: ElementType.U16,
    TensorProto.UINT32: ElementType.U32,
    TensorProto.UINT64: ElementType.U64,
    TensorProto.FLOAT16: ElementType.F16,
    TensorProto.BFLOAT16: ElementType.BF16,
    TensorProto.FLOAT: ElementType.F32,
    TensorProto.DOUBLE: ElementType.F64,
    TensorProto.STRING: ElementType.STRING,
}

_TO_TORCH: dict[ElementType, torch.dtype] = {
    ElementType.BOOLEAN: torch.bool,
    ElementType.I8: torch.int8,
    ElementType.I16: torch.int16,
    ElementType.I32: torch.int32,
    ElementType.I64: torch.int64,
    ElementType.U8: torch.uint8,
    ElementType.U16: torch.uint16,
    ElementType.U32: torch.uint32,
    ElementType.U64: torch.uint64,
    ElementType.F16: torch.float16,
    ElementType.BF16: torch.bfloat16,
    ElementType.F32: torch.float32,
    ElementType.F64: torch.float64,
}

# bf16 has no native numpy dtype
_TO_NUMPY: dict[ElementType, np.dtype] = {
    ElementType.BOOLEAN: np.dtype(np.bool_),
    ElementType.I8: np.dtype(np.int8),
    ElementType.I16: np.dtype(np.int16),
    ElementType.I32: np.dtype(np.int32),
    ElementType.I64: np.dtype(np.int64),
    ElementType.U8: np.dtype(np.uint8),
    ElementType.U16: np.dtype(np.uint16),
    ElementType.U32: np.dtype(np.uint32),
    ElementType.U64: np.dtype(np.uint64),
    ElementType.F16: np.dtype(np.float16),
    ElementType.F32: np.dtype(np.float32),
    ElementType.F64: np.dtype(np.float64),
}

_INTEGRAL_TYPES = frozenset(
    {
        ElementType.I8,
        ElementType.I16,
        ElementType.I32,
        ElementType.I64,
        ElementType.U8,
        ElementType.U16,
        ElementType.U32,
        ElementType.U64,
    }
)


@dataclass(frozen=True)
class PartialShape:
    """Tensor shape that may be partially or fully unknown.

    :param dims: Dimensions (None entries are unknown), or None if the rank
        itself is unknown
    """

    dims: tuple[int | None, ...] | None

    @classmethod
    def dynamic(cls, rank: int | None = None) -> "PartialShape":
        """Create a shape with unknown dimensions.

        :param rank: Known rank, or None for dynamic rank
        :return: Partial shape
        """
        if rank is None:
            return cls(None)
        return cls((None,) * rank)

    @classmethod
    def from_onnx(cls, shape: tuple[int | str | None, ...] | None) -> "PartialShape":
        """Create from an ONNX-style shape where symbolic dims are strings.

        :param shape: Shape tuple (str/None for symbolic/unknown dims) or None
        :return: Partial shape
        """
        if shape is None:
            return cls(None)
        return cls(tuple(d if isinstance(d, int) else None for d in shape))

    @property
    def rank(self) -> int | None:
        return None if self.dims is None else len(self.dims)

    @property
    def rank_is_static(self) -> bool:
        return self.dims is not None

    @property
    def is_static(self) -> bool:
        return self.dims is not None and all(d is not None for d in self.dims)

    def to_shape(self) -> tuple[int, ...]:
        """Get the static shape.

        :return: Shape tuple
        :raises ValueError: If the shape is not static
        """
        if not self.is_static:
            raise ValueError(f"Shape {self} is not static")
        return tuple(d for d in self.dims if d is not None)  # type: ignore[union-attr]

    def __str__(self) -> str:
        if self.dims is None:
            return "[...]"
        return "[" + ",".join("?" if d is None else str(d) for d in self.dims) + "]"


@dataclass(frozen=True, eq=False)
class Value:
    """Handle to one output of an operation.

    Values compare and hash by identity.

    :param producer: Operation producing this value
    :param index: Output index on the producer
    :param element_type: Element type
    :param shape: Partial shape
    """

    producer: "Operation"
    index: int
    element_type: ElementType
    shape: PartialShape

    def __repr__(self) -> str:
        return (
            f"Value({self.producer.op_type}:{self.index}, "
            f"{self.element_type.value}{self.shape})"
        )


@dataclass(eq=False)
class Operation:
    """Target IR operation.

    :param op_type: Operation type (e.g., "ReduceSum", "Constant")
    :param inputs: Input values
    :param attributes: Operation attributes
    :param name: Diagnostic name (assigned by the importer)
    :param outputs: Output values
    """

    op_type: str
    inputs: tuple[Value, ...]
    attributes: dict[str, Any]
    name: str = ""
    outputs: tuple[Value, ...] = field(default=())

    @property
    def output(self) -> Value:
        """The single output value."""
        if len(self.outputs) != 1:
            raise ValueError(f"{self.op_type} has {len(self.outputs)} outputs, expected 1")
        return self.outputs[0]

    def __repr__(self) -> str:
        label = f" '{self.name}'" if self.name else ""
        return f"Operation({self.op_type}{label}, inputs={len(self.inputs)})"
