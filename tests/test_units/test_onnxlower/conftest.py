"""Shared pytest configuration and fixtures for onnxlower unit tests.

This module provides:
- Model fixtures (saved synthetic ONNX models)
- Random input data
"""

import numpy as np
import onnx
import pytest

from tests.test_units.test_onnxlower.fixtures.synthetic_models import SyntheticONNXModels


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def positive_data(rng):
    """Positive float32 data so every log-based reduction is defined."""
    return rng.uniform(0.5, 2.0, size=(2, 3, 4)).astype(np.float32)


@pytest.fixture
def identity_model(tmp_path):
    """Create and save Identity ONNX model."""
    model = SyntheticONNXModels.create_identity_model()
    path = tmp_path / "identity.onnx"
    onnx.save(model, str(path))
    return str(path)


@pytest.fixture
def reduce_sum_v13_model(tmp_path):
    """Create and save ReduceSum (opset 13) with axes from a Constant node."""
    model = SyntheticONNXModels.create_reduce_model(
        "ReduceSum", opset=13, axes=[1], keepdims=0, axes_source="constant"
    )
    path = tmp_path / "reduce_sum_v13.onnx"
    onnx.save(model, str(path))
    return str(path)


@pytest.fixture
def reduce_mean_v11_model(tmp_path):
    """Create and save ReduceMean (opset 11) with axes attribute."""
    model = SyntheticONNXModels.create_reduce_model("ReduceMean", opset=11, axes=[0, 2])
    path = tmp_path / "reduce_mean_v11.onnx"
    onnx.save(model, str(path))
    return str(path)
