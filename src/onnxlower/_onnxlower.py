__docformat__ = "restructuredtext"
__all__ = ["OnnxLower"]

import onnx

from onnxlower.ir import Model


class OnnxLower:
    def __init__(
        self,
        verbose: bool = False,
        target_opset: int | None = None,
        infer_shapes: bool = True,
        check_model: bool = True,
    ):
        self.verbose = verbose
        self.target_opset = target_opset
        self.infer_shapes = infer_shapes
        self.check_model = check_model

    def convert(self, onnx_path: str) -> Model:
        """Lower an ONNX model file into the target IR.

        :param onnx_path: Path to input ONNX model
        :return: Lowered model
        """
        # Stage 1: Normalize ONNX model
        model = self.preprocess(onnx_path)

        # Stage 2 and 3: Build structural IR, then lower it
        return self.lower(model)

    def lower(self, model: onnx.ModelProto) -> Model:
        """Lower an already loaded ONNX model.

        :param model: ONNX model (normalized or not)
        :return: Lowered model
        """
        from onnxlower.build import build_model_ir
        from onnxlower.frontend import import_model

        model_ir = build_model_ir(model)
        lowered = import_model(model_ir)

        if self.verbose:
            print(f"Lowered {len(model_ir.layers)} nodes at opset {model_ir.opset_version}")
            for op_type, count in sorted(lowered.count_operations().items()):
                print(f"  {op_type}: {count}")

        return lowered

    def preprocess(self, onnx_path: str) -> onnx.ModelProto:
        """Load and preprocess ONNX model.

        Preprocessing steps:
        1. Load model from file
        2. Validate with ONNX checker (if enabled)
        3. Convert to target opset version (if set)
        4. Run shape inference (if enabled)
        5. Fold Constant nodes into initializers
        6. Clear node docstrings

        :param onnx_path: Path to ONNX model
        :return: Preprocessed model
        """
        from onnxlower.normalize import load_and_preprocess_onnx_model

        return load_and_preprocess_onnx_model(
            onnx_path,
            target_opset=self.target_opset,
            infer_shapes=self.infer_shapes,
            check_model=self.check_model,
        )
