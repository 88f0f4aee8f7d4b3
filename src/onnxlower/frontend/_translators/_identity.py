"""Translator for the ONNX Identity operator."""

__docformat__ = "restructuredtext"
__all__ = ["identity", "register_identity_translators"]

from onnxlower.frontend._translators._registry import register_translator
from onnxlower.frontend.node import Node
from onnxlower.ir import Value


def identity(node: Node) -> list[Value]:
    """Pass the input through without creating an operation."""
    return [node.inputs[0]]


def register_identity_translators() -> None:
    register_translator("Identity", identity, since_version=1)
