"""Operator translators.

Translator registry and operator-specific translators.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "TRANSLATORS",
    "RegistryEntry",
    "Translator",
    "ensure_translators_registered",
    "get_translator",
    "has_translator",
    "lookup_translator",
    "register_identity_translators",
    "register_reduce_translators",
    "register_translator",
]

import threading

from onnxlower.frontend._translators._identity import register_identity_translators
from onnxlower.frontend._translators._reduce import register_reduce_translators
from onnxlower.frontend._translators._registry import (
    TRANSLATORS,
    RegistryEntry,
    Translator,
    get_translator,
    has_translator,
    register_translator,
)

_REGISTRATION_LOCK = threading.Lock()
_registered = False


def ensure_translators_registered() -> None:
    """Register all built-in translators exactly once per process.

    Lookups after the first call only read the registry.
    """
    global _registered
    if _registered:
        return
    with _REGISTRATION_LOCK:
        if not _registered:
            register_identity_translators()
            register_reduce_translators()
            _registered = True


def lookup_translator(op_type: str, version: int, node_description: str = "") -> Translator:
    """Get the built-in translator for an operator at an opset version.

    :param op_type: ONNX operator type
    :param version: Opset version
    :param node_description: Source node description for diagnostics
    :return: Translator function
    :raises NoTranslatorFoundError: If no translator covers the version
    """
    ensure_translators_registered()
    return get_translator(op_type, version, node_description)
