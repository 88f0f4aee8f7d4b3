"""Target IR model container."""

__docformat__ = "restructuredtext"
__all__ = ["Model"]

from dataclasses import dataclass

from onnxlower.ir.types import Operation, Value


@dataclass(frozen=True)
class Model:
    """Lowered model formed from named parameters and results.

    :param name: Model name
    :param parameters: Graph inputs by name (Parameter outputs)
    :param results: Graph outputs by name
    """

    name: str
    parameters: dict[str, Value]
    results: dict[str, Value]

    @property
    def operations(self) -> list[Operation]:
        """All operations reachable from the results, in topological order.

        :return: Operations with every producer before its consumers
        """
        ordered: list[Operation] = []
        visited: set[int] = set()
        stack: list[tuple[Operation, bool]] = [
            (value.producer, False) for value in reversed(list(self.results.values()))
        ]
        while stack:
            operation, expanded = stack.pop()
            if expanded:
                ordered.append(operation)
                continue
            if id(operation) in visited:
                continue
            visited.add(id(operation))
            stack.append((operation, True))
            for inp in reversed(operation.inputs):
                if id(inp.producer) not in visited:
                    stack.append((inp.producer, False))
        return ordered

    def count_operations(self) -> dict[str, int]:
        """Count reachable operations by type.

        :return: Mapping from operation type to count
        """
        counts: dict[str, int] = {}
        for operation in self.operations:
            counts[operation.op_type] = counts.get(operation.op_type, 0) + 1
        return counts
