"""Target IR construction primitives.

Each primitive creates one operation, infers its output element type and
partial shape, and returns the output value.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "ReductionKind",
    "constant",
    "exp",
    "log",
    "multiply",
    "parameter",
    "range_",
    "reduce",
    "shape_of",
    "squeeze",
]

from collections.abc import Sequence
from enum import Enum
from typing import Any

import numpy as np

from onnxlower.ir.types import ElementType, Operation, PartialShape, Value


class ReductionKind(Enum):
    """Reduction operation kinds. The value is the IR operation type."""

    SUM = "ReduceSum"
    MEAN = "ReduceMean"
    MIN = "ReduceMin"
    MAX = "ReduceMax"
    PROD = "ReduceProd"
    L1 = "ReduceL1"
    L2 = "ReduceL2"


def _make_operation(
    op_type: str,
    inputs: Sequence[Value],
    attributes: dict[str, Any],
    element_type: ElementType,
    shape: PartialShape,
) -> Value:
    """Create a single-output operation and return its output.

    :param op_type: Operation type
    :param inputs: Input values
    :param attributes: Operation attributes
    :param element_type: Output element type
    :param shape: Output shape
    :return: Output value
    """
    operation = Operation(op_type=op_type, inputs=tuple(inputs), attributes=attributes)
    operation.outputs = (Value(operation, 0, element_type, shape),)
    return operation.outputs[0]


def _get_constant_data(value: Value) -> np.ndarray | None:
    """Get constant data if the value is produced by a Constant operation."""
    if value.producer.op_type == "Constant":
        return value.producer.attributes["value"]  # type: ignore[no-any-return]
    return None


def _normalize_axes(axes: Sequence[int], rank: int, op_type: str) -> list[int]:
    """Normalize negative axes and check they are within [-rank, rank - 1].

    :param axes: Axis indices
    :param rank: Input rank
    :param op_type: Operation type for error messages
    :return: Non-negative axis indices
    """
    normalized = []
    for axis in axes:
        if not -rank <= axis < rank:
            raise ValueError(f"{op_type} axis {axis} is out of range for rank {rank}")
        normalized.append(axis + rank if axis < 0 else axis)
    return normalized


def _broadcast_shapes(a: PartialShape, b: PartialShape) -> PartialShape:
    """Numpy-style broadcast of two partial shapes."""
    if a.dims is None or b.dims is None:
        return PartialShape.dynamic()
    rank = max(len(a.dims), len(b.dims))
    dims_a = (1,) * (rank - len(a.dims)) + a.dims
    dims_b = (1,) * (rank - len(b.dims)) + b.dims
    dims: list[int | None] = []
    for da, db in zip(dims_a, dims_b, strict=True):
        if da == db or db == 1:
            dims.append(da)
        elif da == 1:
            dims.append(db)
        elif da is None or db is None:
            dims.append(None)
        else:
            raise ValueError(f"Shapes {a} and {b} are not broadcastable")
    return PartialShape(tuple(dims))


def parameter(name: str, element_type: ElementType, shape: PartialShape) -> Value:
    """Create a graph input.

    :param name: Parameter name
    :param element_type: Element type
    :param shape: Partial shape
    :return: Parameter value
    """
    return _make_operation("Parameter", (), {"name": name}, element_type, shape)


def constant(data: Any, element_type: ElementType | None = None) -> Value:
    """Create a constant.

    :param data: Array-like constant data
    :param element_type: Element type (inferred from data if None)
    :return: Constant value
    """
    if element_type is None:
        array = np.array(data)
        element_type = ElementType.from_numpy(array.dtype)
    else:
        array = np.array(data, dtype=element_type.to_numpy())
    array.setflags(write=False)
    return _make_operation(
        "Constant", (), {"value": array}, element_type, PartialShape(tuple(array.shape))
    )


def shape_of(data: Value) -> Value:
    """Create a ShapeOf operation producing the i64 shape of ``data``."""
    rank = data.shape.rank
    return _make_operation("ShapeOf", (data,), {}, ElementType.I64, PartialShape((rank,)))


def squeeze(data: Value, axes: Value) -> Value:
    """Create a Squeeze operation removing size-1 dimensions.

    :param data: Input value
    :param axes: Axes to remove
    :return: Squeezed value
    """
    axes_data = _get_constant_data(axes)
    dims = data.shape.dims
    if dims is None or axes_data is None:
        return _make_operation("Squeeze", (data, axes), {}, data.element_type, PartialShape(None))

    removed = set(_normalize_axes(axes_data.reshape(-1).tolist(), len(dims), "Squeeze"))
    for axis in removed:
        if dims[axis] is not None and dims[axis] != 1:
            raise ValueError(f"Squeeze cannot remove dimension {axis} of size {dims[axis]}")
    new_dims = tuple(d for i, d in enumerate(dims) if i not in removed)
    return _make_operation("Squeeze", (data, axes), {}, data.element_type, PartialShape(new_dims))


def range_(start: Value, stop: Value, step: Value, output_type: ElementType) -> Value:
    """Create a Range operation producing ``[start, stop)`` with ``step``.

    :param start: Scalar start
    :param stop: Scalar stop
    :param step: Scalar step
    :param output_type: Output element type
    :return: 1-D range value
    """
    for name, bound in (("start", start), ("stop", stop), ("step", step)):
        if bound.shape.rank not in (0, None):
            raise ValueError(f"Range {name} must be a scalar, got shape {bound.shape}")

    length: int | None = None
    bounds = [_get_constant_data(v) for v in (start, stop, step)]
    if all(b is not None for b in bounds):
        begin, end, delta = (b.item() for b in bounds)  # type: ignore[union-attr]
        if delta == 0:
            raise ValueError("Range step must be non-zero")
        length = len(range(int(begin), int(end), int(delta)))
    return _make_operation(
        "Range",
        (start, stop, step),
        {"output_type": output_type},
        output_type,
        PartialShape((length,)),
    )


def multiply(a: Value, b: Value) -> Value:
    """Create an elementwise Multiply with numpy broadcasting."""
    if a.element_type != b.element_type:
        raise ValueError(
            f"Multiply element types differ: {a.element_type.value} vs {b.element_type.value}"
        )
    shape = _broadcast_shapes(a.shape, b.shape)
    return _make_operation("Multiply", (a, b), {}, a.element_type, shape)


def exp(data: Value) -> Value:
    """Create an elementwise Exp."""
    return _make_operation("Exp", (data,), {}, data.element_type, data.shape)


def log(data: Value) -> Value:
    """Create an elementwise Log."""
    return _make_operation("Log", (data,), {}, data.element_type, data.shape)


def _infer_reduce_shape(data: PartialShape, axes: Value, keep_dims: bool) -> PartialShape:
    """Infer the output shape of a reduction.

    An empty axes tensor reduces nothing.

    :param data: Input shape
    :param axes: Axes value
    :param keep_dims: Whether reduced dimensions are kept with size 1
    :return: Output shape
    """
    if data.dims is None:
        return PartialShape.dynamic()

    axes_data = _get_constant_data(axes)
    if axes_data is None:
        if keep_dims:
            return PartialShape.dynamic(len(data.dims))
        if axes.shape.is_static:
            count = int(np.prod(axes.shape.to_shape()))
            return PartialShape.dynamic(max(len(data.dims) - count, 0))
        return PartialShape.dynamic()

    reduced = set(_normalize_axes(axes_data.reshape(-1).tolist(), len(data.dims), "Reduce"))
    dims: list[int | None] = []
    for i, d in enumerate(data.dims):
        if i in reduced:
            if keep_dims:
                dims.append(1)
        else:
            dims.append(d)
    return PartialShape(tuple(dims))


def reduce(kind: ReductionKind, data: Value, axes: Value, keep_dims: bool) -> Value:
    """Create a reduction operation.

    :param kind: Reduction kind
    :param data: Input value
    :param axes: 1-D (or scalar) integer axes value
    :param keep_dims: Whether reduced dimensions are kept with size 1
    :return: Reduced value
    """
    if not axes.element_type.is_integral:
        raise ValueError(f"{kind.value} axes must be integral, got {axes.element_type.value}")
    if axes.shape.rank not in (0, 1, None):
        raise ValueError(f"{kind.value} axes must be a scalar or 1-D, got shape {axes.shape}")
    shape = _infer_reduce_shape(data.shape, axes, keep_dims)
    return _make_operation(
        kind.value, (data, axes), {"keep_dims": keep_dims}, data.element_type, shape
    )
