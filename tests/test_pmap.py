from __future__ import annotations

import threading
import time

import pytest

from sms_ledger.pmap import p_map, p_map_skip


def test_results_follow_input_order_under_concurrency():
    # Earlier items sleep longer so they finish last.
    def slow_square(n: int) -> int:
        time.sleep((5 - n) * 0.01)
        return n * n

    assert p_map(range(5), slow_square, concurrency=5) == [0, 1, 4, 9, 16]


def test_skip_sentinel_drops_elements():
    def odd_only(n: int):
        return n if n % 2 else p_map_skip

    assert p_map(range(7), odd_only, concurrency=1) == [1, 3, 5]
    assert p_map(range(7), odd_only, concurrency=3) == [1, 3, 5]


def test_concurrency_one_runs_inline():
    seen: set[int] = set()

    def record(n: int) -> int:
        seen.add(threading.get_ident())
        return n

    p_map([1, 2, 3], record, concurrency=1)
    assert seen == {threading.get_ident()}


@pytest.mark.parametrize("bad", [0, -1, True, 1.5])
def test_rejects_invalid_concurrency(bad):
    with pytest.raises(ValueError):
        p_map([1], lambda n: n, concurrency=bad)


def test_mapper_errors_propagate():
    def boom(n: int) -> int:
        raise KeyError(n)

    with pytest.raises(KeyError):
        p_map([1, 2], boom, concurrency=2)
