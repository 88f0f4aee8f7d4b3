"""Tests for the Reduce* translators.

Calls the axis resolvers, the reduction builder and the operator translators
directly with Node views, without going through the importer.

Test Coverage:
- TestAxesFromAttribute: early-era axis resolution
- TestAxesFromInput: later-era axis resolution
- TestValidation: element type and axis count checks
- TestReductionBuilder: keepdims handling and lowering of each axes variant
- TestTranslators: structure and numerics of every operator translator
- TestSupportedTypes: numerics for every supported element type
"""

import numpy as np
import pytest

from onnxlower.frontend import (
    SUPPORTED_TYPES_V1,
    SUPPORTED_TYPES_V2,
    AllAxesDynamic,
    AxesFromAttribute,
    AxesFromInput,
    AxesRankTooLargeError,
    ErrorKind,
    NoAxes,
    NonStaticAxesShapeError,
    UnsupportedTypeError,
)
from onnxlower.frontend._translators._reduce import (
    make_axes_value,
    make_reduction,
    reduce_l1,
    reduce_l2,
    reduce_log_sum,
    reduce_log_sum_exp,
    reduce_max,
    reduce_mean,
    reduce_min,
    reduce_prod,
    reduce_sum,
    reduce_sum_square,
    resolve_axes_from_attribute,
    resolve_axes_from_input,
)
from onnxlower.ir import ElementType, Model, PartialShape, ReductionKind, evaluate, ops
from tests.test_units.test_onnxlower.fixtures.helpers import make_input, make_node

EARLY_TRANSLATORS = [
    reduce_l1,
    reduce_l2,
    reduce_log_sum,
    reduce_log_sum_exp,
    reduce_max,
    reduce_mean,
    reduce_min,
    reduce_prod,
    reduce_sum,
    reduce_sum_square,
]


def _evaluate(inputs, output, feeds):
    model = Model("m", inputs, {"Y": output})
    return evaluate(model, feeds)["Y"].numpy()


class TestAxesFromAttribute:
    """Test axis resolution from the axes attribute."""

    @pytest.mark.parametrize("rank", [0, 1, 2, 4])
    def test_empty_axes_with_static_rank_is_full_range(self, rank):
        node = make_node("ReduceSum", [make_input((2,) * rank)])
        assert resolve_axes_from_attribute(node) == AxesFromAttribute(tuple(range(rank)))

    def test_empty_axes_with_partial_shape_uses_rank(self):
        node = make_node("ReduceSum", [make_input((None, 3))])
        assert resolve_axes_from_attribute(node) == AxesFromAttribute((0, 1))

    def test_empty_axes_with_dynamic_rank_is_dynamic(self):
        node = make_node("ReduceSum", [make_input(None)])
        assert resolve_axes_from_attribute(node) == AllAxesDynamic()

    def test_explicit_axes(self):
        node = make_node("ReduceSum", [make_input((2, 3, 4))], axes=[2, 0])
        assert resolve_axes_from_attribute(node) == AxesFromAttribute((2, 0))

    def test_explicit_axes_with_dynamic_rank_are_kept(self):
        node = make_node("ReduceSum", [make_input(None)], axes=[0, 1, 2, 3])
        assert resolve_axes_from_attribute(node) == AxesFromAttribute((0, 1, 2, 3))

    def test_too_many_axes_raises(self):
        node = make_node("ReduceSum", [make_input((2, 3))], axes=[0, 1, 2])
        with pytest.raises(AxesRankTooLargeError, match=r"\(3\) is larger than .* rank \(2\)"):
            resolve_axes_from_attribute(node)


class TestAxesFromInput:
    """Test axis resolution from the optional second input."""

    def test_axes_input(self):
        axes = ops.constant([1], ElementType.I64)
        node = make_node("ReduceSum", [make_input((2, 3)), axes], opset=13)
        assert resolve_axes_from_input(node) == AxesFromInput(axes)

    def test_runtime_axes_values_with_static_shape(self):
        axes = make_input((2,), ElementType.I64, name="axes")
        node = make_node("ReduceSum", [make_input((2, 3)), axes], opset=13)
        spec = resolve_axes_from_input(node)
        assert isinstance(spec, AxesFromInput)
        assert spec.value is axes

    def test_missing_axes_reduce_all(self):
        node = make_node("ReduceSum", [make_input((2, 3))], opset=13)
        assert resolve_axes_from_input(node) == AllAxesDynamic()

    def test_missing_axes_with_noop_is_identity(self):
        node = make_node("ReduceSum", [make_input((2, 3))], opset=13, noop_with_empty_axes=1)
        assert resolve_axes_from_input(node) == NoAxes()

    @pytest.mark.parametrize(
        "axes_data", [np.zeros((0,), dtype=np.int64), np.array(1, dtype=np.int64)]
    )
    @pytest.mark.parametrize(("noop", "expected"), [(0, AllAxesDynamic()), (1, NoAxes())])
    def test_empty_or_scalar_axes_count_as_missing(self, axes_data, noop, expected):
        axes = ops.constant(axes_data)
        node = make_node(
            "ReduceSum", [make_input((2, 3)), axes], opset=13, noop_with_empty_axes=noop
        )
        assert resolve_axes_from_input(node) == expected

    @pytest.mark.parametrize("noop", [0, 1])
    @pytest.mark.parametrize("axes_shape", [(None,), None])
    def test_non_static_axes_shape_raises(self, noop, axes_shape):
        axes = make_input(axes_shape, ElementType.I64, name="axes")
        node = make_node(
            "ReduceSum", [make_input((2, 3)), axes], opset=13, noop_with_empty_axes=noop
        )
        with pytest.raises(NonStaticAxesShapeError, match="needs to be known") as error:
            resolve_axes_from_input(node)
        assert error.value.kind is ErrorKind.NON_STATIC_AXES_SHAPE


class TestValidation:
    """Test element type and axis count validation."""

    def test_supported_type_sets(self):
        assert ElementType.BF16 not in SUPPORTED_TYPES_V1
        assert SUPPORTED_TYPES_V2 == SUPPORTED_TYPES_V1 | {ElementType.BF16}
        assert ElementType.BOOLEAN not in SUPPORTED_TYPES_V2
        assert ElementType.I8 not in SUPPORTED_TYPES_V2

    @pytest.mark.parametrize("translate", EARLY_TRANSLATORS)
    def test_boolean_input_raises_before_building(self, translate):
        node = make_node("Reduce", [make_input((2, 3), ElementType.BOOLEAN)])
        with pytest.raises(UnsupportedTypeError, match="Unsupported input type boolean") as error:
            translate(node)
        assert error.value.kind is ErrorKind.UNSUPPORTED_TYPE

    def test_bf16_rejected_in_early_era(self):
        node = make_node("ReduceSum", [make_input((2, 3), ElementType.BF16)])
        with pytest.raises(UnsupportedTypeError, match="bf16"):
            reduce_sum(node)

    def test_bf16_accepted_in_later_era(self):
        node = make_node("ReduceSum", [make_input((2, 3), ElementType.BF16)], opset=13)
        (out,) = reduce_sum(node, supported_types=SUPPORTED_TYPES_V2, axes_from_attribute=False)
        assert out.element_type is ElementType.BF16

    @pytest.mark.parametrize("translate", EARLY_TRANSLATORS)
    def test_too_many_axes_raises_for_every_translator(self, translate):
        node = make_node("Reduce", [make_input((2, 3))], axes=[0, 1, 2])
        with pytest.raises(AxesRankTooLargeError) as error:
            translate(node)
        assert error.value.kind is ErrorKind.AXES_RANK_TOO_LARGE


class TestReductionBuilder:
    """Test the shared reduction builder."""

    def test_keepdims_defaults_to_true(self):
        node = make_node("ReduceSum", [make_input((2, 3, 4))], axes=[1])
        out = make_reduction(node, node.inputs[0], ReductionKind.SUM, SUPPORTED_TYPES_V1)
        assert out.producer.attributes["keep_dims"] is True
        assert out.shape == PartialShape((2, 1, 4))

    def test_keepdims_false_drops_axes(self):
        node = make_node("ReduceSum", [make_input((2, 3, 4))], axes=[1], keepdims=0)
        out = make_reduction(node, node.inputs[0], ReductionKind.SUM, SUPPORTED_TYPES_V1)
        assert out.shape == PartialShape((2, 4))

    def test_attribute_axes_become_i64_constant(self):
        node = make_node("ReduceMax", [make_input((2, 3, 4))], axes=[0, 2])
        out = make_reduction(node, node.inputs[0], ReductionKind.MAX, SUPPORTED_TYPES_V1)
        axes = out.producer.inputs[1]
        assert axes.producer.op_type == "Constant"
        assert axes.element_type is ElementType.I64
        assert axes.producer.attributes["value"].tolist() == [0, 2]

    def test_static_rank_full_reduction(self):
        node = make_node("ReduceSum", [make_input((2, 3))], keepdims=0)
        out = make_reduction(node, node.inputs[0], ReductionKind.SUM, SUPPORTED_TYPES_V1)
        assert out.producer.inputs[1].producer.attributes["value"].tolist() == [0, 1]
        assert out.shape == PartialShape(())

    def test_dynamic_all_axes_subgraph(self):
        x = make_input(None)
        node = make_node("ReduceSum", [x])
        out = make_reduction(node, x, ReductionKind.SUM, SUPPORTED_TYPES_V1)
        axes = out.producer.inputs[1]
        assert axes.producer.op_type == "Range"
        assert axes.element_type is ElementType.I64
        start, stop, step = axes.producer.inputs
        assert start.producer.attributes["value"].item() == 0
        assert step.producer.attributes["value"].item() == 1
        assert start.element_type is ElementType.I32
        assert stop.producer.op_type == "Squeeze"
        rank = stop.producer.inputs[0]
        assert rank.producer.op_type == "ShapeOf"
        assert rank.producer.inputs[0].producer.op_type == "ShapeOf"
        assert rank.producer.inputs[0].producer.inputs[0] is x

    def test_dynamic_all_axes_evaluates_to_full_reduction(self, rng):
        x = make_input(None)
        node = make_node("ReduceSum", [x], keepdims=0)
        out = make_reduction(node, x, ReductionKind.SUM, SUPPORTED_TYPES_V1)
        data = rng.standard_normal((2, 3, 4)).astype(np.float32)
        result = _evaluate({"X": x}, out, {"X": data})
        np.testing.assert_allclose(result, data.sum(), rtol=1e-5)

    def test_noop_returns_input_without_new_operation(self):
        x = make_input((2, 3))
        node = make_node("ReduceSum", [x], opset=13, noop_with_empty_axes=1)
        out = make_reduction(
            node, x, ReductionKind.SUM, SUPPORTED_TYPES_V2, axes_from_attribute=False
        )
        assert out is x
        assert Model("m", {"X": x}, {"Y": out}).count_operations() == {"Parameter": 1}

    def test_make_axes_value_noaxes_is_none(self):
        node = make_node("ReduceSum", [make_input((2,))])
        assert make_axes_value(node, NoAxes()) is None

    def test_make_axes_value_from_input_is_not_copied(self):
        axes = make_input((1,), ElementType.I64, name="axes")
        node = make_node("ReduceSum", [make_input((2,)), axes], opset=13)
        assert make_axes_value(node, AxesFromInput(axes)) is axes


class TestTranslators:
    """Test each operator translator."""

    @pytest.mark.parametrize(
        ("translate", "op_type"),
        [
            (reduce_sum, "ReduceSum"),
            (reduce_mean, "ReduceMean"),
            (reduce_min, "ReduceMin"),
            (reduce_max, "ReduceMax"),
            (reduce_prod, "ReduceProd"),
            (reduce_l1, "ReduceL1"),
            (reduce_l2, "ReduceL2"),
        ],
    )
    def test_simple_translators_emit_one_reduction(self, translate, op_type):
        x = make_input((2, 3))
        outputs = translate(make_node(op_type, [x], axes=[1]))
        assert len(outputs) == 1
        assert outputs[0].producer.op_type == op_type
        assert outputs[0].producer.inputs[0] is x

    def test_log_sum_structure(self):
        x = make_input((2, 3))
        (out,) = reduce_log_sum(make_node("ReduceLogSum", [x], axes=[1]))
        assert out.producer.op_type == "Log"
        total = out.producer.inputs[0]
        assert total.producer.op_type == "ReduceSum"
        assert total.producer.inputs[0] is x

    def test_log_sum_exp_structure(self):
        x = make_input((2, 3))
        (out,) = reduce_log_sum_exp(make_node("ReduceLogSumExp", [x], axes=[1]))
        assert out.producer.op_type == "Log"
        total = out.producer.inputs[0]
        assert total.producer.op_type == "ReduceSum"
        exponent = total.producer.inputs[0]
        assert exponent.producer.op_type == "Exp"
        assert exponent.producer.inputs[0] is x

    def test_sum_square_structure(self):
        x = make_input((2, 3))
        (out,) = reduce_sum_square(make_node("ReduceSumSquare", [x], axes=[1]))
        assert out.producer.op_type == "ReduceSum"
        square = out.producer.inputs[0]
        assert square.producer.op_type == "Multiply"
        assert square.producer.inputs == (x, x)

    @pytest.mark.parametrize("keepdims", [0, 1])
    @pytest.mark.parametrize("axes", [[0], [1, 2], [-1], []])
    def test_log_sum_equals_log_of_sum(self, positive_data, keepdims, axes):
        x = make_input(positive_data.shape)
        attrs = {"keepdims": keepdims, **({"axes": axes} if axes else {})}
        (log_sum,) = reduce_log_sum(make_node("ReduceLogSum", [x], **attrs))
        (total,) = reduce_sum(make_node("ReduceSum", [x], **attrs))
        np.testing.assert_allclose(
            _evaluate({"X": x}, log_sum, {"X": positive_data}),
            np.log(_evaluate({"X": x}, total, {"X": positive_data})),
            rtol=1e-6,
        )

    @pytest.mark.parametrize("axes", [[0], [1, 2], []])
    def test_sum_square_equals_sum_of_products(self, positive_data, axes):
        x = make_input(positive_data.shape)
        attrs = {"axes": axes} if axes else {}
        (out,) = reduce_sum_square(make_node("ReduceSumSquare", [x], **attrs))
        expected = np.sum(positive_data * positive_data, axis=tuple(axes) or None, keepdims=True)
        np.testing.assert_allclose(
            _evaluate({"X": x}, out, {"X": positive_data}), expected, rtol=1e-5
        )

    @pytest.mark.parametrize("axes", [[0], [1, 2], []])
    def test_log_sum_exp_equals_decomposition(self, positive_data, axes):
        x = make_input(positive_data.shape)
        attrs = {"axes": axes, "keepdims": 0} if axes else {"keepdims": 0}
        (out,) = reduce_log_sum_exp(make_node("ReduceLogSumExp", [x], **attrs))
        expected = np.log(np.sum(np.exp(positive_data), axis=tuple(axes) or None))
        np.testing.assert_allclose(
            _evaluate({"X": x}, out, {"X": positive_data}), expected, rtol=1e-5
        )

    def test_log_sum_exp_does_not_shift_by_maximum(self):
        x = make_input((2,))
        (out,) = reduce_log_sum_exp(make_node("ReduceLogSumExp", [x]))
        result = _evaluate({"X": x}, out, {"X": np.array([100.0, 100.0], dtype=np.float32)})
        assert np.isinf(result).all()

    def test_later_era_noop_identity_values(self, positive_data):
        x = make_input(positive_data.shape)
        node = make_node("ReduceMean", [x], opset=18, noop_with_empty_axes=1)
        (out,) = reduce_mean(node, supported_types=SUPPORTED_TYPES_V2, axes_from_attribute=False)
        assert out is x
        np.testing.assert_array_equal(_evaluate({"X": x}, out, {"X": positive_data}), positive_data)


def _numpy_l2(x, axis):
    squares = np.sum(x.astype(np.float64) ** 2, axis=axis, keepdims=True)
    return np.sqrt(squares).astype(x.dtype)


def _numpy_mean(x, axis):
    if np.issubdtype(x.dtype, np.integer):
        return np.sum(x, axis=axis, keepdims=True, dtype=x.dtype) // x.shape[axis]
    return np.mean(x, axis=axis, keepdims=True).astype(x.dtype)


NUMPY_REDUCTIONS = [
    (reduce_sum, lambda x, axis: np.sum(x, axis=axis, keepdims=True, dtype=x.dtype)),
    (reduce_mean, _numpy_mean),
    (reduce_min, lambda x, axis: np.min(x, axis=axis, keepdims=True)),
    (reduce_max, lambda x, axis: np.max(x, axis=axis, keepdims=True)),
    (reduce_prod, lambda x, axis: np.prod(x, axis=axis, keepdims=True, dtype=x.dtype)),
    (reduce_l1, lambda x, axis: np.sum(np.abs(x), axis=axis, keepdims=True, dtype=x.dtype)),
    (reduce_l2, _numpy_l2),
    (reduce_sum_square, lambda x, axis: np.sum(x * x, axis=axis, keepdims=True, dtype=x.dtype)),
]


class TestSupportedTypes:
    """Test lowered reductions evaluate for every supported element type."""

    @pytest.mark.parametrize(
        "element_type", sorted(SUPPORTED_TYPES_V1, key=lambda t: t.value)
    )
    @pytest.mark.parametrize(("translate", "reference"), NUMPY_REDUCTIONS)
    def test_matches_numpy(self, translate, reference, element_type, rng):
        data = rng.integers(0, 4, size=(2, 3, 4)).astype(element_type.to_numpy())
        x = make_input(data.shape, element_type)
        (out,) = translate(make_node("Reduce", [x], axes=[1]))
        result = _evaluate({"X": x}, out, {"X": data})
        expected = reference(data, 1)
        assert result.dtype == expected.dtype
        rtol = 1e-2 if element_type is ElementType.F16 else 1e-6
        np.testing.assert_allclose(result, expected, rtol=rtol)

    @pytest.mark.parametrize("element_type", [ElementType.U32, ElementType.U64])
    def test_unsigned_sum_keeps_type(self, element_type):
        data = np.array([[1, 2, 3], [4, 5, 6]], dtype=element_type.to_numpy())
        x = make_input(data.shape, element_type)
        (out,) = reduce_sum(make_node("ReduceSum", [x], axes=[1], keepdims=0))
        result = _evaluate({"X": x}, out, {"X": data})
        assert result.dtype == data.dtype
        np.testing.assert_array_equal(result, np.array([6, 15], dtype=data.dtype))
