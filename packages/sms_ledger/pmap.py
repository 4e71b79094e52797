"""Order-preserving bounded-concurrency map over a thread pool.

``p_map`` runs a mapper over an iterable with at most ``concurrency`` calls in
flight and returns results in input order. A mapper can return ``p_map_skip``
to omit its element; the relative order of the remaining results is kept.
With ``concurrency == 1`` the mapper runs inline on the calling thread.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


class _Skip:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "p_map_skip"


# Sentinel: mappers return this to omit the element from the output.
p_map_skip: object = _Skip()


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT | object],
    *,
    concurrency: int,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` and drop ``p_map_skip`` results.

    Mapper exceptions propagate to the caller; callers that need
    skip-on-failure semantics catch inside the mapper and return
    ``p_map_skip``.
    """

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    if concurrency == 1:
        values = [mapper(item) for item in iterable]
    else:
        # Executor.map yields in submission order regardless of completion order.
        with ThreadPoolExecutor(max_workers=concurrency) as pool:
            values = list(pool.map(mapper, iterable))

    return [v for v in values if v is not p_map_skip]  # type: ignore[misc]


__all__ = ["p_map", "p_map_skip"]
