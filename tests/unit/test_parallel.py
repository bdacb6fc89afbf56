"""
Unit tests for the worker pool helpers.
"""

import pytest

from gateway_codegen.errors import ConfigError
from gateway_codegen.module.parallel import bounded_pool_size, raise_first, run_parallel


def test_results_in_input_order():
    outcomes = run_parallel(lambda value: value * 2, [3, 1, 2], max_workers=2)
    assert outcomes == [(3, 6, None), (1, 2, None), (2, 4, None)]


def test_errors_are_returned():
    def fail_on_two(value):
        if value == 2:
            raise ConfigError("two")
        return value

    outcomes = run_parallel(fail_on_two, [1, 2, 3])
    assert [item for item, _, error in outcomes if error is not None] == [2]

    with pytest.raises(ConfigError, match="two"):
        raise_first(outcomes)


def test_empty_input():
    assert run_parallel(lambda value: value, []) == []
    assert raise_first([]) == []


def test_bounded_pool_size():
    assert bounded_pool_size(1) >= 1
    assert bounded_pool_size(4) == 4 * bounded_pool_size(1)
