"""Reference evaluator for lowered models.

Executes a target IR model with PyTorch. Used to check that lowered graphs
compute the same values as the source ONNX model.
"""

__docformat__ = "restructuredtext"
__all__ = ["evaluate"]

from collections.abc import Callable
from typing import Any

import numpy as np
import torch

from onnxlower.ir.model import Model
from onnxlower.ir.types import Operation, Value


def _to_dims(axes: torch.Tensor, rank: int) -> list[int]:
    """Convert an axes tensor to sorted, non-negative, unique dims."""
    dims = set()
    for axis in axes.reshape(-1).tolist():
        if not -rank <= axis < rank:
            raise ValueError(f"Axis {axis} is out of range for rank {rank}")
        dims.add(axis + rank if axis < 0 else axis)
    return sorted(dims)


def _reduce_sum(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    return torch.sum(x, dim=dims, keepdim=keep_dims, dtype=x.dtype)


def _reduce_mean(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    if x.dtype.is_floating_point:
        return torch.mean(x, dim=dims, keepdim=keep_dims)
    count = 1
    for d in dims:
        count *= x.shape[d]
    total = torch.sum(x, dim=dims, keepdim=keep_dims, dtype=x.dtype)
    return torch.div(total, count, rounding_mode="trunc").to(x.dtype)


def _reduce_min(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    return torch.amin(x, dim=dims, keepdim=keep_dims)


def _reduce_max(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    return torch.amax(x, dim=dims, keepdim=keep_dims)


def _reduce_prod(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    # torch.prod reduces one dim at a time; go from the last dim so indices stay valid
    result = x
    for d in reversed(dims):
        result = torch.prod(result, dim=d, keepdim=keep_dims, dtype=x.dtype)
    return result


def _reduce_l1(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    return torch.sum(torch.abs(x), dim=dims, keepdim=keep_dims, dtype=x.dtype)


def _reduce_l2(x: torch.Tensor, dims: list[int], keep_dims: bool) -> torch.Tensor:
    if x.dtype.is_floating_point:
        return torch.sqrt(torch.sum(x * x, dim=dims, keepdim=keep_dims))
    squares = torch.sum((x * x).to(torch.float64), dim=dims, keepdim=keep_dims)
    return torch.sqrt(squares).to(x.dtype)


_WIDENED_UNSIGNED = frozenset({torch.uint16, torch.uint32, torch.uint64})

_REDUCERS: dict[str, Callable[[torch.Tensor, list[int], bool], torch.Tensor]] = {
    "ReduceSum": _reduce_sum,
    "ReduceMean": _reduce_mean,
    "ReduceMin": _reduce_min,
    "ReduceMax": _reduce_max,
    "ReduceProd": _reduce_prod,
    "ReduceL1": _reduce_l1,
    "ReduceL2": _reduce_l2,
}


def _widen_unsigned(x: torch.Tensor) -> torch.Tensor:
    """Widen u16/u32/u64 tensors to int64, which has CPU arithmetic kernels.

    u64 values at or above 2**63 wrap; sums and products still match modulo
    2**64 after casting back.
    """
    if x.dtype in _WIDENED_UNSIGNED:
        return x.to(torch.int64)
    return x


def _eval_reduce(operation: Operation, args: list[torch.Tensor]) -> torch.Tensor:
    data, axes = args
    dims = _to_dims(axes, data.dim())
    # Reducing over no axes leaves the input unchanged
    if not dims:
        return data.clone()
    reduced = _REDUCERS[operation.op_type](
        _widen_unsigned(data), dims, operation.attributes["keep_dims"]
    )
    return reduced.to(data.dtype)


def _eval_multiply(operation: Operation, args: list[torch.Tensor]) -> torch.Tensor:
    a, b = args
    return torch.mul(_widen_unsigned(a), _widen_unsigned(b)).to(a.dtype)


def _eval_squeeze(operation: Operation, args: list[torch.Tensor]) -> torch.Tensor:
    data, axes = args
    result = data
    for d in reversed(_to_dims(axes, data.dim())):
        result = torch.squeeze(result, d)
    return result


def _eval_range(operation: Operation, args: list[torch.Tensor]) -> torch.Tensor:
    start, stop, step = (int(arg.item()) for arg in args)
    dtype = operation.attributes["output_type"].to_torch()
    return torch.arange(start, stop, step, dtype=dtype)


_EVALUATORS: dict[str, Callable[[Operation, list[torch.Tensor]], torch.Tensor]] = {
    "Constant": lambda op, args: torch.from_numpy(np.array(op.attributes["value"])),
    "ShapeOf": lambda op, args: torch.tensor(list(args[0].shape), dtype=torch.int64),
    "Squeeze": _eval_squeeze,
    "Range": _eval_range,
    "Multiply": _eval_multiply,
    "Exp": lambda op, args: torch.exp(args[0]),
    "Log": lambda op, args: torch.log(args[0]),
    **{op_type: _eval_reduce for op_type in _REDUCERS},
}


def _to_tensor(data: Any, value: Value) -> torch.Tensor:
    if isinstance(data, torch.Tensor):
        tensor = data
    else:
        tensor = torch.from_numpy(np.asarray(data))
    return tensor.to(value.element_type.to_torch())


def evaluate(model: Model, feeds: dict[str, Any]) -> dict[str, torch.Tensor]:
    """Evaluate a lowered model.

    :param model: Lowered model
    :param feeds: Input data by parameter name (numpy arrays or tensors)
    :return: Output tensors by result name
    """
    missing = set(model.parameters) - set(feeds)
    if missing:
        raise ValueError(f"Missing inputs: {sorted(missing)}")

    computed: dict[Value, torch.Tensor] = {
        value: _to_tensor(feeds[name], value) for name, value in model.parameters.items()
    }

    for operation in model.operations:
        if operation.op_type == "Parameter":
            if operation.output not in computed:
                raise ValueError(f"Parameter {operation.attributes['name']} is not a model input")
            continue
        evaluator = _EVALUATORS.get(operation.op_type)
        if evaluator is None:
            raise NotImplementedError(f"Evaluation of {operation.op_type} is not supported")
        args = [computed[inp] for inp in operation.inputs]
        computed[operation.output] = evaluator(operation, args)

    return {name: computed[value] for name, value in model.results.items()}
