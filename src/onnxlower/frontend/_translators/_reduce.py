"""Translators for the ONNX Reduce* operator family.

Two eras are handled:

- early: ``axes`` is an INTS attribute, narrower set of element types;
- later: ``axes`` is an optional second input, ``noop_with_empty_axes``
  selects identity for missing axes, bf16 is accepted.

ReduceSum switched to the later era at opset 13, the rest of the family at
opset 18.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "SUPPORTED_TYPES_V1",
    "SUPPORTED_TYPES_V2",
    "AllAxesDynamic",
    "AxesFromAttribute",
    "AxesFromInput",
    "AxesSpec",
    "NoAxes",
    "check_axes_rank",
    "check_element_type",
    "make_axes_value",
    "make_reduction",
    "reduce_l1",
    "reduce_l2",
    "reduce_log_sum",
    "reduce_log_sum_exp",
    "reduce_max",
    "reduce_mean",
    "reduce_min",
    "reduce_prod",
    "reduce_sum",
    "reduce_sum_square",
    "register_reduce_translators",
    "resolve_axes_from_attribute",
    "resolve_axes_from_input",
]

from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from onnxlower.frontend._translators._registry import Translator, register_translator
from onnxlower.frontend.errors import (
    AxesRankTooLargeError,
    NonStaticAxesShapeError,
    UnsupportedTypeError,
)
from onnxlower.frontend.node import Node
from onnxlower.ir import ElementType, ReductionKind, Value, ops

SUPPORTED_TYPES_V1: frozenset[ElementType] = frozenset(
    {
        ElementType.U32,
        ElementType.U64,
        ElementType.I32,
        ElementType.I64,
        ElementType.F16,
        ElementType.F32,
        ElementType.F64,
    }
)
SUPPORTED_TYPES_V2: frozenset[ElementType] = SUPPORTED_TYPES_V1 | {ElementType.BF16}


@dataclass(frozen=True)
class AxesFromAttribute:
    """Axes known at import time."""

    axes: tuple[int, ...]


@dataclass(frozen=True)
class AxesFromInput:
    """Axes read at run time from the node's second input."""

    value: Value


@dataclass(frozen=True)
class AllAxesDynamic:
    """All axes of an input whose rank is unknown at import time."""


@dataclass(frozen=True)
class NoAxes:
    """No reduction: the input passes through unchanged."""


AxesSpec = AxesFromAttribute | AxesFromInput | AllAxesDynamic | NoAxes


def check_element_type(node: Node, value: Value, supported_types: frozenset[ElementType]) -> None:
    """Check the value's element type is one of the supported types.

    :raises UnsupportedTypeError: If it is not
    """
    if value.element_type not in supported_types:
        raise UnsupportedTypeError(
            f"Unsupported input type {value.element_type.value}", node.description
        )


def check_axes_rank(node: Node, axes_count: int, rank: int) -> None:
    """Check the number of reduction axes does not exceed the input rank.

    :raises AxesRankTooLargeError: If it does
    """
    if axes_count > rank:
        raise AxesRankTooLargeError(
            f"Number of reduction axes ({axes_count}) is larger than "
            f"the input tensor's rank ({rank})",
            node.description,
        )


def resolve_axes_from_attribute(node: Node) -> AxesSpec:
    """Resolve reduction axes from the ``axes`` attribute.

    Missing axes mean all axes: a constant range when the input rank is
    known, a range computed at run time otherwise. Explicit axes are only
    checked against the rank when the rank is known.

    :param node: Source node
    :return: AxesFromAttribute or AllAxesDynamic
    """
    axes = node.get_ints("axes", ())
    rank = node.inputs[0].shape.rank

    if not axes:
        if rank is None:
            return AllAxesDynamic()
        return AxesFromAttribute(tuple(range(rank)))

    if rank is not None:
        check_axes_rank(node, len(axes), rank)
    return AxesFromAttribute(axes)


def resolve_axes_from_input(node: Node) -> AxesSpec:
    """Resolve reduction axes from the optional second input.

    The axes values may only be known at run time, but the axes tensor's
    shape must be static. A scalar or zero-length axes tensor counts as no
    axes.

    :param node: Source node
    :return: AxesFromInput, NoAxes or AllAxesDynamic
    :raises NonStaticAxesShapeError: If the axes tensor's shape is not static
    """
    noop_with_empty_axes = node.get_int("noop_with_empty_axes", 0)

    if len(node.inputs) > 1:
        axes = node.inputs[1]
        if not axes.shape.is_static:
            raise NonStaticAxesShapeError(
                "The axes tensor's shape needs to be known (static)", node.description
            )
        if axes.shape.to_shape() not in ((), (0,)):
            return AxesFromInput(axes)

    if noop_with_empty_axes:
        return NoAxes()
    return AllAxesDynamic()


def _make_dynamic_all_axes_range(data: Value) -> Value:
    """Build ``range(0, rank(data), 1)`` computed at run time."""
    rank = ops.shape_of(ops.shape_of(data))
    rank_scalar = ops.squeeze(rank, ops.constant([0], ElementType.I32))
    start = ops.constant(0, ElementType.I32)
    step = ops.constant(1, ElementType.I32)
    return ops.range_(start, rank_scalar, step, ElementType.I64)


def make_axes_value(node: Node, axes: AxesSpec) -> Value | None:
    """Lower the resolved axes to an IR value.

    :param node: Source node
    :param axes: Resolved axes
    :return: i64 axes value, or None for NoAxes
    """
    if isinstance(axes, AxesFromAttribute):
        return ops.constant(list(axes.axes), ElementType.I64)
    if isinstance(axes, AxesFromInput):
        return axes.value
    if isinstance(axes, AllAxesDynamic):
        return _make_dynamic_all_axes_range(node.inputs[0])
    return None


def make_reduction(
    node: Node,
    data: Value,
    kind: ReductionKind,
    supported_types: frozenset[ElementType],
    axes_from_attribute: bool = True,
) -> Value:
    """Build a reduction of ``data`` over the node's axes.

    :param node: Source node
    :param data: Value to reduce (the node input, or a value derived from it)
    :param kind: Reduction kind
    :param supported_types: Legal element types of ``data``
    :param axes_from_attribute: Read axes from the attribute (early era) or
        from the second input (later era)
    :return: Reduced value, or the node's input itself when there is nothing to reduce
    """
    keep_dims = bool(node.get_int("keepdims", 1))

    check_element_type(node, data, supported_types)

    if axes_from_attribute:
        axes = resolve_axes_from_attribute(node)
    else:
        axes = resolve_axes_from_input(node)

    axes_value = make_axes_value(node, axes)
    if axes_value is None:
        return node.inputs[0]
    return ops.reduce(kind, data, axes_value, keep_dims)


def _reduce_simple(
    kind: ReductionKind,
    node: Node,
    supported_types: frozenset[ElementType] = SUPPORTED_TYPES_V1,
    axes_from_attribute: bool = True,
) -> list[Value]:
    return [make_reduction(node, node.inputs[0], kind, supported_types, axes_from_attribute)]


reduce_sum = partial(_reduce_simple, ReductionKind.SUM)
reduce_mean = partial(_reduce_simple, ReductionKind.MEAN)
reduce_min = partial(_reduce_simple, ReductionKind.MIN)
reduce_max = partial(_reduce_simple, ReductionKind.MAX)
reduce_prod = partial(_reduce_simple, ReductionKind.PROD)
reduce_l1 = partial(_reduce_simple, ReductionKind.L1)
reduce_l2 = partial(_reduce_simple, ReductionKind.L2)


def reduce_log_sum(
    node: Node,
    supported_types: frozenset[ElementType] = SUPPORTED_TYPES_V1,
    axes_from_attribute: bool = True,
) -> list[Value]:
    """log(sum(x))."""
    total = make_reduction(
        node, node.inputs[0], ReductionKind.SUM, supported_types, axes_from_attribute
    )
    return [ops.log(total)]


def reduce_log_sum_exp(
    node: Node,
    supported_types: frozenset[ElementType] = SUPPORTED_TYPES_V1,
    axes_from_attribute: bool = True,
) -> list[Value]:
    """log(sum(exp(x))), without subtracting the maximum first."""
    check_element_type(node, node.inputs[0], supported_types)
    exponent = ops.exp(node.inputs[0])
    total = make_reduction(node, exponent, ReductionKind.SUM, supported_types, axes_from_attribute)
    return [ops.log(total)]


def reduce_sum_square(
    node: Node,
    supported_types: frozenset[ElementType] = SUPPORTED_TYPES_V1,
    axes_from_attribute: bool = True,
) -> list[Value]:
    """sum(x * x)."""
    data = node.inputs[0]
    check_element_type(node, data, supported_types)
    square = ops.multiply(data, data)
    return [make_reduction(node, square, ReductionKind.SUM, supported_types, axes_from_attribute)]


_REDUCE_TRANSLATORS: dict[str, Callable[..., list[Value]]] = {
    "ReduceL1": reduce_l1,
    "ReduceL2": reduce_l2,
    "ReduceLogSum": reduce_log_sum,
    "ReduceLogSumExp": reduce_log_sum_exp,
    "ReduceMax": reduce_max,
    "ReduceMean": reduce_mean,
    "ReduceMin": reduce_min,
    "ReduceProd": reduce_prod,
    "ReduceSum": reduce_sum,
    "ReduceSumSquare": reduce_sum_square,
}

# First opset where axes moved from the attribute to the second input
_AXES_AS_INPUT_SINCE: dict[str, int] = {op_type: 18 for op_type in _REDUCE_TRANSLATORS}
_AXES_AS_INPUT_SINCE["ReduceSum"] = 13


def _later_era(translate: Callable[..., list[Value]]) -> Translator:
    return partial(translate, supported_types=SUPPORTED_TYPES_V2, axes_from_attribute=False)


def register_reduce_translators() -> None:
    """Register all Reduce* translators.

    Opset 11 brings no behavioral change over opset 1 and is covered by the
    early-era entry.
    """
    for op_type, translate in _REDUCE_TRANSLATORS.items():
        boundary = _AXES_AS_INPUT_SINCE[op_type]
        register_translator(op_type, translate, since_version=1, until_version=boundary - 1)
        register_translator(op_type, _later_era(translate), since_version=boundary)
