# Copyright 2025 Edward Clewer
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the EWM mean recurrence and its alpha == 1 fast path."""

from __future__ import annotations

import numpy as np
import pytest

from ewm_kernel.exceptions import InvalidArgumentError
from ewm_kernel.kernels.ewm.average import _ewm_mean_recurrence, ewm_mean


def _as_list(result: np.ma.MaskedArray) -> list:
    mask = np.ma.getmaskarray(result)
    return [None if missing else float(value) for value, missing in zip(result.data, mask)]


def _assert_optional_close(result, expected, rel=1e-6):
    actual = _as_list(result)
    assert len(actual) == len(expected)
    for got, want in zip(actual, expected):
        if want is None:
            assert got is None
        else:
            assert got == pytest.approx(want, rel=rel)


def _random_sequence(rng: np.random.Generator, n: int, null_rate: float) -> list:
    values = rng.normal(loc=10.0, scale=3.0, size=n)
    nulls = rng.random(n) < null_rate
    return [None if missing else float(v) for v, missing in zip(values, nulls)]


@pytest.mark.parametrize("dtype", [np.float32, np.float64])
def test_unadjusted_without_nulls_matches_recursive_formula(dtype):
    result = ewm_mean([1.0, 2.0, 3.0], 0.5, False, 0, True, dtype=dtype)

    assert result.dtype == dtype
    _assert_optional_close(result, [1.0, 1.5, 2.25])


@pytest.mark.parametrize("dtype", [np.float32, np.float64])
def test_adjusted_without_nulls_uses_weight_sum(dtype):
    result = ewm_mean([1.0, 2.0, 3.0], 0.5, True, 0, True, dtype=dtype)

    _assert_optional_close(result, [1.0, 1.6666667, 2.42857143])


def test_ignore_na_adjusted_sequence():
    xs = [1.0, None, 2.0, 3.0, None, 4.0, 5.0, 6.0]
    result = ewm_mean(xs, 2.0 / 3.0, True, 0, True)

    expected = [
        1.0,
        1.0,
        1.75,
        2.6153846153846154,
        2.6153846153846154,
        3.55,
        4.520661157024794,
        5.5082417582417578,
    ]
    _assert_optional_close(result, expected, rel=1e-12)


def test_min_periods_with_leading_absences():
    result = ewm_mean([None, None, 5.0, 7.0], 0.5, False, 1, False)

    assert _as_list(result) == [None, None, 5.0, 6.0]


def test_min_periods_masks_until_enough_observations():
    result = ewm_mean([1.0, None, 1.0, 1.0], 0.5, False, 2, True, dtype=np.float32)

    assert _as_list(result) == [None, None, 1.0, 1.0]


def test_mean_is_held_across_trailing_absences():
    xs = [2.0, 3.0, 5.0, 7.0, None, None, None, 4.0]
    result = ewm_mean(xs, 0.5, False, 0, True, dtype=np.float32)

    _assert_optional_close(result, [2.0, 2.5, 3.75, 5.375, 5.375, 5.375, 5.375, 4.6875])


@pytest.mark.parametrize(
    "adjust, expected",
    [
        (False, [None, None, 5.0, 6.0, 6.0, 4.0, 2.5, 3.25]),
        (True, [None, None, 5.0, 6.33333333, 6.33333333, 3.85714286, 2.33333333, 3.19354839]),
    ],
)
def test_gapped_sequence_ignoring_nulls(adjust, expected):
    xs = [None, None, 5.0, 7.0, None, 2.0, 1.0, 4.0]
    result = ewm_mean(xs, 0.5, adjust, 1, True, dtype=np.float32)

    _assert_optional_close(result, expected)


def test_adjusted_sequence_with_leading_null():
    xs = [None, 1.0, 5.0, 7.0, None, 2.0, 1.0, 4.0]
    result = ewm_mean(xs, 0.5, True, 1, True, dtype=np.float32)

    _assert_optional_close(
        result,
        [None, 1.0, 3.66666667, 5.57142857, 5.57142857, 3.66666667, 2.29032258, 3.15873016],
    )


@pytest.mark.parametrize(
    "adjust, ignore_na, expected",
    [
        (False, False, [1.0, 1.0, 1.25]),
        (False, True, [1.0, 1.0, 1.5]),
        (True, False, [1.0, 1.0, 1.4]),
        (True, True, [1.0, 1.0, 5.0 / 3.0]),
    ],
)
def test_absences_advance_decay_unless_ignored(adjust, ignore_na, expected):
    result = ewm_mean([1.0, None, 2.0], 0.5, adjust, 0, ignore_na)

    _assert_optional_close(result, expected, rel=1e-12)


@pytest.mark.parametrize("adjust", [False, True])
def test_ignore_na_has_no_effect_without_absences(adjust):
    rng = np.random.default_rng(7)
    xs = _random_sequence(rng, 50, null_rate=0.0)

    kept = ewm_mean(xs, 0.3, adjust, 0, False)
    ignored = ewm_mean(xs, 0.3, adjust, 0, True)

    np.testing.assert_array_equal(kept.data, ignored.data)
    np.testing.assert_array_equal(np.ma.getmaskarray(kept), np.ma.getmaskarray(ignored))


@pytest.mark.parametrize("alpha", [0.1, 0.5, 1.0])
@pytest.mark.parametrize("ignore_na", [False, True])
def test_output_length_matches_input(alpha, ignore_na):
    rng = np.random.default_rng(11)
    for n in (0, 1, 17):
        xs = _random_sequence(rng, n, null_rate=0.3)
        assert len(ewm_mean(xs, alpha, True, 2, ignore_na)) == n


@pytest.mark.parametrize("min_periods", [0, 1, 3, 6])
def test_masking_never_reoccurs_once_min_periods_reached(min_periods):
    xs = [None, 4.0, None, 2.0, 8.0, None, None, 1.0, None]
    result = ewm_mean(xs, 0.4, False, min_periods, False)
    mask = np.ma.getmaskarray(result)

    counts = np.cumsum([x is not None for x in xs])
    for i, count in enumerate(counts):
        if count < max(min_periods, 1):
            assert mask[i]
        else:
            assert not mask[i]


def test_min_periods_longer_than_sequence_masks_everything():
    result = ewm_mean([1.0, 2.0, 3.0], 0.5, True, 10, False)

    assert np.ma.getmaskarray(result).all()


@pytest.mark.parametrize("adjust", [False, True])
@pytest.mark.parametrize("ignore_na", [False, True])
@pytest.mark.parametrize("min_periods", [0, 2])
def test_alpha_one_fast_path_agrees_with_recurrence(adjust, ignore_na, min_periods):
    rng = np.random.default_rng(23)
    xs = _random_sequence(rng, 40, null_rate=0.25)

    fast = ewm_mean(xs, 1.0, adjust, min_periods, ignore_na)
    general = _ewm_mean_recurrence(
        xs, np.float64(1.0), adjust, min_periods, ignore_na, np.dtype(np.float64), len(xs)
    )

    fast_mask = np.ma.getmaskarray(fast)
    general_mask = np.ma.getmaskarray(general)
    for i, x in enumerate(xs):
        if x is None:
            continue
        assert fast_mask[i] == general_mask[i]
        if not fast_mask[i]:
            assert fast.data[i] == pytest.approx(general.data[i], rel=1e-12, abs=1e-12)


def test_alpha_one_forwards_absences_while_general_path_holds_mean():
    xs = [3.0, None, 4.0]

    fast = ewm_mean(xs, 1.0, True, 0, False)
    general = ewm_mean(xs, 0.999, True, 0, False)

    assert _as_list(fast) == [3.0, None, 4.0]
    assert _as_list(general)[1] == pytest.approx(3.0)


def test_leading_gap_long_enough_to_underflow_weight_seeds_first_value():
    xs = [None] * 2000 + [5.0, 7.0]
    result = ewm_mean(xs, 0.5, True, 0, False)

    tail = _as_list(result)[-2:]
    assert tail[0] == 5.0
    assert tail[1] == pytest.approx(7.0)


def test_dtype_defaults_to_input_width():
    xs = np.ma.MaskedArray(
        np.array([1.0, 0.0, 3.0], dtype=np.float32),
        mask=[False, True, False],
    )
    result = ewm_mean(xs, 0.5, False, 0, True)

    assert result.dtype == np.float32
    _assert_optional_close(result, [1.0, 1.0, 2.0])


def test_nan_is_a_present_value():
    result = ewm_mean([1.0, float("nan"), 3.0], 0.5, False, 0, True)

    assert not np.ma.getmaskarray(result).any()
    assert np.isnan(result.data[1])


def test_unsized_iterable_with_declared_length():
    xs = (x for x in [1.0, None, 3.0])
    result = ewm_mean(xs, 0.5, False, 0, True, length=3)

    _assert_optional_close(result, [1.0, 1.0, 2.0])


def test_unsized_iterable_without_length_is_materialised():
    result = ewm_mean(iter([1.0, 2.0]), 0.5, False, 0, True)

    _assert_optional_close(result, [1.0, 1.5])


@pytest.mark.parametrize("length", [2, 4])
def test_declared_length_mismatch_is_rejected(length):
    xs = (x for x in [1.0, 2.0, 3.0])
    with pytest.raises(InvalidArgumentError):
        ewm_mean(xs, 0.5, False, 0, True, length=length)


@pytest.mark.parametrize("alpha", [0.0, -0.5, 1.5, float("nan"), float("inf"), True, "0.5"])
def test_out_of_domain_alpha_is_rejected(alpha):
    with pytest.raises(InvalidArgumentError):
        ewm_mean([1.0], alpha, True, 0, False)


def test_invalid_alpha_is_a_value_error():
    with pytest.raises(ValueError):
        ewm_mean([1.0], 2.0, True, 0, False)


@pytest.mark.parametrize("min_periods", [-1, 1.5, True])
def test_invalid_min_periods_is_rejected(min_periods):
    with pytest.raises(InvalidArgumentError):
        ewm_mean([1.0], 0.5, True, min_periods, False)


def test_non_float_dtype_is_rejected():
    with pytest.raises(InvalidArgumentError):
        ewm_mean([1.0], 0.5, True, 0, False, dtype=np.int64)
