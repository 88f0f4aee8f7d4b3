"""Translator registry.

Maps (ONNX operator type, opset version) to a translator. Each operator may
have several entries covering disjoint opset ranges.
"""

__docformat__ = "restructuredtext"
__all__ = [
    "TRANSLATORS",
    "RegistryEntry",
    "Translator",
    "get_translator",
    "has_translator",
    "register_translator",
]

from collections.abc import Callable
from dataclasses import dataclass

from onnxlower.frontend.errors import NoTranslatorFoundError
from onnxlower.frontend.node import Node
from onnxlower.ir import Value

# Translator type: takes a Node view, returns the values bound to its outputs
Translator = Callable[[Node], list[Value]]


@dataclass(frozen=True)
class RegistryEntry:
    """Translator for an inclusive opset range.

    :param op_type: ONNX operator type
    :param since_version: First opset version covered
    :param until_version: Last opset version covered (None = open-ended)
    :param translator: Translator function
    """

    op_type: str
    since_version: int
    until_version: int | None
    translator: Translator

    def covers(self, version: int) -> bool:
        if version < self.since_version:
            return False
        return self.until_version is None or version <= self.until_version

    def overlaps(self, other: "RegistryEntry") -> bool:
        self_end = self.until_version if self.until_version is not None else float("inf")
        other_end = other.until_version if other.until_version is not None else float("inf")
        return self.since_version <= other_end and other.since_version <= self_end


# Global translator registry
TRANSLATORS: dict[str, list[RegistryEntry]] = {}


def register_translator(
    op_type: str,
    translator: Translator,
    since_version: int = 1,
    until_version: int | None = None,
) -> None:
    """Register a translator for an opset range.

    :param op_type: ONNX operator type (e.g., "ReduceSum")
    :param translator: Translator function
    :param since_version: First opset version covered
    :param until_version: Last opset version covered (None = open-ended)
    :raises ValueError: If the range is empty or overlaps an existing entry
    """
    if until_version is not None and until_version < since_version:
        raise ValueError(
            f"Empty opset range [{since_version}, {until_version}] for {op_type}"
        )
    entry = RegistryEntry(op_type, since_version, until_version, translator)
    entries = TRANSLATORS.setdefault(op_type, [])
    for existing in entries:
        if existing.overlaps(entry):
            raise ValueError(
                f"Opset range [{since_version}, {until_version}] for {op_type} overlaps "
                f"[{existing.since_version}, {existing.until_version}]"
            )
    entries.append(entry)
    entries.sort(key=lambda e: e.since_version)


def _find_entry(op_type: str, version: int) -> RegistryEntry | None:
    for entry in TRANSLATORS.get(op_type, ()):
        if entry.covers(version):
            return entry
    return None


def has_translator(op_type: str, version: int) -> bool:
    """Check whether a translator covers the operator at this opset version."""
    return _find_entry(op_type, version) is not None


def get_translator(op_type: str, version: int, node_description: str = "") -> Translator:
    """Get the translator covering the operator at this opset version.

    :param op_type: ONNX operator type
    :param version: Opset version
    :param node_description: Source node description for diagnostics
    :return: Translator function
    :raises NoTranslatorFoundError: If no entry covers the version
    """
    entry = _find_entry(op_type, version)
    if entry is None:
        raise NoTranslatorFoundError(
            f"No translator for {op_type} at opset {version}",
            node_description or f"<Node({op_type})>",
        )
    return entry.translator
