"""Composable processing helpers.

Small function combinators for building reusable reconciliation workflows::

    prepare = pipeline(clean_observations, normalize_units)
    tables = parallel_map(prepare)([trade_df, population_df])
    result = sdmx_combine(tables, sources=["Trade", "Population"])
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

Operation = Callable[[Any], Any]


def identity(data: Any) -> Any:
    return data


def chain(*operations: Operation) -> Operation:
    """Return a function passing its input through ``operations`` left to right.

    Examples:
        >>> process = chain(clean_observations, normalize_units)
        >>> cleaned = process(raw_df)
    """

    def run(data: Any) -> Any:
        for op in operations:
            data = op(data)
        return data

    return run


class Pipeline:
    """Reusable, named sequence of operations.

    Calling a pipeline applies its operations in order. ``a | b`` builds a new
    pipeline running ``a``'s operations followed by ``b``'s.
    """

    def __init__(self, operations: Iterable[Operation] = (), name: str = "pipeline") -> None:
        self.operations: List[Operation] = list(operations)
        self.name = name
        for op in self.operations:
            if not callable(op):
                raise TypeError(f"Pipeline operation is not callable: {op!r}")

    def __call__(self, data: Any) -> Any:
        for op in self.operations:
            data = op(data)
        return data

    def __or__(self, other: Any) -> "Pipeline":
        if isinstance(other, Pipeline):
            return Pipeline(self.operations + other.operations, name=self.name)
        if callable(other):
            return Pipeline(self.operations + [other], name=self.name)
        return NotImplemented

    def __len__(self) -> int:
        return len(self.operations)

    def __repr__(self) -> str:
        names = ", ".join(getattr(op, "__name__", repr(op)) for op in self.operations)
        return f"Pipeline({self.name!r}: {names})"


def pipeline(*operations: Operation, name: str = "pipeline") -> Pipeline:
    """Build a ``Pipeline`` from operations."""
    return Pipeline(operations, name=name)


def tap(fn: Callable[[Any], Any]) -> Operation:
    """Run ``fn`` for its side effect and pass the data through unchanged.

    Examples:
        >>> debug = pipeline(clean_observations, tap(lambda df: print(len(df))))
    """

    def run(data: Any) -> Any:
        fn(data)
        return data

    return run


def branch(
    condition: Callable[[Any], bool],
    if_true: Operation,
    if_false: Operation = identity,
) -> Operation:
    """Apply ``if_true`` when ``condition(data)`` holds, else ``if_false``."""

    def run(data: Any) -> Any:
        return if_true(data) if condition(data) else if_false(data)

    return run


def parallel_map(
    fn: Operation, max_workers: Optional[int] = None
) -> Callable[[Sequence[Any]], List[Any]]:
    """Return a function applying ``fn`` to every item with a thread pool.

    Results keep the input order. Items must be independent of each other: do
    not pass the same DataFrame twice to a function that mutates it.

    Examples:
        >>> normalized = parallel_map(lambda df: normalize_units(df.copy()))(tables)
    """

    def run(items: Sequence[Any]) -> List[Any]:
        items = list(items)
        if not items:
            return []
        results: Dict[int, Any] = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_map = {executor.submit(fn, item): i for i, item in enumerate(items)}
            for future in as_completed(future_map):
                results[future_map[future]] = future.result()
        logger.debug("parallel_map processed %d items", len(items))
        return [results[i] for i in range(len(items))]

    return run


__all__ = [
    "Operation",
    "identity",
    "chain",
    "Pipeline",
    "pipeline",
    "tap",
    "branch",
    "parallel_map",
]
