"""Tests for the OnnxLower facade and stage-to-stage integration.

Test Coverage:
- TestOnnxLowerInitialization: converter options
- TestConvertAPI: full convert() pipeline against onnxruntime
- TestPipelineErrorPropagation: errors surfacing from each stage
"""

import numpy as np
import onnx
import pytest

from onnxlower import OnnxLower, evaluate
from onnxlower.frontend import LoweringError, NoTranslatorFoundError
from tests.test_units.test_onnxlower.fixtures.helpers import run_onnxruntime
from tests.test_units.test_onnxlower.fixtures.synthetic_models import SyntheticONNXModels


class TestOnnxLowerInitialization:
    """Test OnnxLower converter options."""

    def test_initialization_default(self):
        converter = OnnxLower()
        assert converter.verbose is False
        assert converter.target_opset is None
        assert converter.infer_shapes is True
        assert converter.check_model is True

    def test_initialization_with_options(self):
        converter = OnnxLower(verbose=True, target_opset=18, infer_shapes=False)
        assert converter.verbose is True
        assert converter.target_opset == 18
        assert converter.infer_shapes is False


class TestConvertAPI:
    """Test the convert() pipeline end to end."""

    def test_convert_identity(self, identity_model):
        lowered = OnnxLower().convert(identity_model)
        assert lowered.results["Y"] is lowered.parameters["X"]

    def test_convert_folds_constant_axes(self, reduce_sum_v13_model, positive_data):
        lowered = OnnxLower().convert(reduce_sum_v13_model)
        expected = run_onnxruntime(onnx.load(reduce_sum_v13_model), {"X": positive_data})["Y"]
        result = evaluate(lowered, {"X": positive_data})["Y"].numpy()
        np.testing.assert_allclose(result, expected, rtol=1e-5)

    def test_convert_with_target_opset(self, reduce_mean_v11_model, positive_data):
        lowered = OnnxLower(target_opset=18).convert(reduce_mean_v11_model)
        expected = run_onnxruntime(onnx.load(reduce_mean_v11_model), {"X": positive_data})["Y"]
        result = evaluate(lowered, {"X": positive_data})["Y"].numpy()
        np.testing.assert_allclose(result, expected, rtol=1e-5)

    def test_lower_in_memory_model(self, positive_data):
        model = SyntheticONNXModels.create_reduce_model("ReduceProd", opset=18, axes=[1])
        lowered = OnnxLower().lower(model)
        expected = run_onnxruntime(model, {"X": positive_data})["Y"]
        result = evaluate(lowered, {"X": positive_data})["Y"].numpy()
        np.testing.assert_allclose(result, expected, rtol=1e-5)

    def test_convert_unknown_rank_without_checker(self, tmp_path, positive_data):
        model = SyntheticONNXModels.create_reduce_model("ReduceL1", opset=11, input_shape=None)
        path = tmp_path / "unknown_rank.onnx"
        onnx.save(model, str(path))
        lowered = OnnxLower(check_model=False).convert(str(path))
        assert "ShapeOf" in lowered.count_operations()
        expected = run_onnxruntime(model, {"X": positive_data})["Y"]
        result = evaluate(lowered, {"X": positive_data})["Y"].numpy()
        np.testing.assert_allclose(result, expected, rtol=1e-5)

    def test_verbose_prints_summary(self, reduce_sum_v13_model, capsys):
        OnnxLower(verbose=True).convert(reduce_sum_v13_model)
        output = capsys.readouterr().out
        assert "Lowered 1 nodes at opset 13" in output
        assert "ReduceSum: 1" in output
        assert "Constant: 1" in output

    def test_quiet_by_default(self, identity_model, capsys):
        OnnxLower().convert(identity_model)
        assert capsys.readouterr().out == ""

    def test_preprocess_returns_model(self, reduce_sum_v13_model):
        model = OnnxLower().preprocess(reduce_sum_v13_model)
        assert isinstance(model, onnx.ModelProto)
        assert [node.op_type for node in model.graph.node] == ["ReduceSum"]


class TestPipelineErrorPropagation:
    """Test error handling across stages."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            OnnxLower().convert(str(tmp_path / "missing.onnx"))

    def test_lowering_error_is_value_error(self, tmp_path):
        model = SyntheticONNXModels.create_custom_domain_model()
        path = tmp_path / "custom.onnx"
        onnx.save(model, str(path))
        with pytest.raises(NoTranslatorFoundError) as error:
            OnnxLower(check_model=False, infer_shapes=False).convert(str(path))
        assert isinstance(error.value, LoweringError)
        assert isinstance(error.value, ValueError)
