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

"""Exponentially weighted moving average over optionally-missing observations.

The recurrence keeps a running mean together with the weight the next present
observation will receive. Absent observations either advance the decay of that
weight (``ignore_na=False``) or leave it untouched (``ignore_na=True``).
``adjust`` selects the normalisation: a weight sum starting at zero gives the
bias-corrected mean over the finite history, a weight sum starting at one
collapses to ``alpha * x_t + (1 - alpha) * mean_{t-1}`` when there are no gaps.

All arithmetic runs in the numpy scalar type of the working dtype, so the same
code serves every float width.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sized
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import numpy as np

from ewm_kernel.exceptions import InvalidArgumentError

__all__ = ["ewm_mean"]

logger = logging.getLogger(__name__)


@dataclass
class _RecurrenceState:
    """Decay state threaded through a single pass."""

    current_weight: np.floating
    current_complement: np.floating
    weight_sum: np.floating
    current_mean: Optional[np.floating] = None
    non_null_count: int = 0


def _resolve_dtype(xs: object, dtype) -> np.dtype:
    if dtype is None:
        dtype = getattr(xs, "dtype", None)
        try:
            is_float = dtype is not None and np.dtype(dtype).kind == "f"
        except TypeError:
            is_float = False
        if not is_float:
            dtype = np.float64
    try:
        resolved = np.dtype(dtype)
    except TypeError as exc:
        raise InvalidArgumentError(f"unsupported dtype {dtype!r}") from exc
    if resolved.kind != "f":
        raise InvalidArgumentError(f"dtype must be a floating point type, got {resolved}")
    return resolved


def _validate_alpha(alpha: float, dtype: np.dtype) -> np.floating:
    if isinstance(alpha, bool) or not isinstance(alpha, (int, float, np.integer, np.floating)):
        raise InvalidArgumentError(f"'alpha' must be numeric, got {type(alpha).__name__}")
    if not math.isfinite(float(alpha)):
        raise InvalidArgumentError(f"'alpha' must be finite, got {alpha}")
    cast = dtype.type(alpha)
    if not (0 < cast <= 1):
        raise InvalidArgumentError(f"'alpha' must be in (0, 1], got {alpha}")
    return cast


def _validate_min_periods(min_periods: int) -> int:
    if isinstance(min_periods, bool) or not isinstance(min_periods, (int, np.integer)):
        raise InvalidArgumentError(
            f"'min_periods' must be an integer, got {type(min_periods).__name__}"
        )
    if min_periods < 0:
        raise InvalidArgumentError(f"'min_periods' must be non-negative, got {min_periods}")
    return int(min_periods)


def _iter_optional(xs: Iterable) -> Iterator[Optional[float]]:
    """Yield observations with masked entries mapped to ``None``."""
    if isinstance(xs, np.ma.MaskedArray):
        mask = np.ma.getmaskarray(xs)
        for value, missing in zip(xs.data, mask):
            yield None if missing else value
        return
    for value in xs:
        yield None if value is None or value is np.ma.masked else value


def _new_buffers(length: int, dtype: np.dtype) -> tuple[np.ndarray, np.ndarray]:
    return np.zeros(length, dtype=dtype), np.ones(length, dtype=bool)


def _check_length(index: int, length: int) -> None:
    if index >= length:
        raise InvalidArgumentError(f"input yielded more than the declared {length} observations")


def _finish(values: np.ndarray, mask: np.ndarray, seen: int) -> np.ma.MaskedArray:
    if seen != len(values):
        raise InvalidArgumentError(
            f"input yielded {seen} observations, expected {len(values)}"
        )
    return np.ma.MaskedArray(values, mask=mask)


def ewm_mean(
    xs: Iterable[Optional[float]],
    alpha: float,
    adjust: bool,
    min_periods: int,
    ignore_na: bool,
    *,
    dtype=None,
    length: Optional[int] = None,
) -> np.ma.MaskedArray:
    """Return the EWMA of ``xs`` as a masked array of the same length.

    Args:
        xs: Observations; ``None`` or masked entries are absent. NaN is a
            present value.
        alpha: Decay parameter in (0, 1].
        adjust: Use the growing weight-sum denominator when True.
        min_periods: Present observations required before emitting a value.
        ignore_na: When True absent observations do not advance the decay.
        dtype: Working float width. Defaults to the input's floating dtype,
            otherwise float64.
        length: Exact number of observations when ``xs`` is not sized.

    Returns:
        A ``numpy.ma.MaskedArray`` whose masked entries are absent outputs.

    Raises:
        InvalidArgumentError: when a parameter is outside its domain or the
            input does not yield ``length`` observations.
    """
    work_dtype = _resolve_dtype(xs, dtype)
    alpha_t = _validate_alpha(alpha, work_dtype)
    min_periods = _validate_min_periods(min_periods)

    if length is None:
        if not isinstance(xs, Sized):
            xs = list(xs)
        length = len(xs)
    elif isinstance(length, bool) or not isinstance(length, (int, np.integer)) or length < 0:
        raise InvalidArgumentError(f"'length' must be a non-negative integer, got {length!r}")

    if alpha_t == 1:
        logger.debug("alpha equals one; forwarding observations", extra={"length": length})
        return _ewm_mean_alpha_equals_one(xs, min_periods, work_dtype, int(length))
    return _ewm_mean_recurrence(
        xs, alpha_t, bool(adjust), min_periods, bool(ignore_na), work_dtype, int(length)
    )


def _ewm_mean_recurrence(
    xs: Iterable[Optional[float]],
    alpha: np.floating,
    adjust: bool,
    min_periods: int,
    ignore_na: bool,
    dtype: np.dtype,
    length: int,
) -> np.ma.MaskedArray:
    one = dtype.type(1)
    one_sub_alpha = one - alpha
    state = _RecurrenceState(
        current_weight=alpha,
        current_complement=one_sub_alpha,
        weight_sum=dtype.type(0) if adjust else one,
    )
    values, mask = _new_buffers(length, dtype)

    seen = 0
    for i, opt_x in enumerate(_iter_optional(xs)):
        _check_length(i, length)
        if opt_x is not None:
            x = dtype.type(opt_x)
            state.non_null_count += 1
            state.weight_sum = state.current_complement * state.weight_sum + state.current_weight
            if state.current_mean is None:
                # The first mean is the observation itself; skipping the
                # division keeps it exact when leading gaps underflow the weight.
                new_mean = x
            else:
                prev_mean = state.current_mean
                new_mean = prev_mean + (x - prev_mean) * state.current_weight / state.weight_sum
            state.current_weight = alpha
            state.current_complement = one_sub_alpha
            state.current_mean = new_mean
        elif not ignore_na:
            state.current_weight = state.current_weight * alpha
            state.current_complement = one - state.current_weight

        if state.non_null_count >= min_periods and state.current_mean is not None:
            values[i] = state.current_mean
            mask[i] = False
        seen = i + 1

    return _finish(values, mask, seen)


def _ewm_mean_alpha_equals_one(
    xs: Iterable[Optional[float]],
    min_periods: int,
    dtype: np.dtype,
    length: int,
) -> np.ma.MaskedArray:
    """Forward observations unchanged once ``min_periods`` have been seen.

    With ``alpha == 1`` every mean equals the latest present value, so the
    weight arithmetic is skipped. Absent observations stay absent here.
    """
    values, mask = _new_buffers(length, dtype)
    non_null_count = 0

    seen = 0
    for i, opt_x in enumerate(_iter_optional(xs)):
        _check_length(i, length)
        if opt_x is not None:
            non_null_count += 1
            if non_null_count >= min_periods:
                values[i] = opt_x
                mask[i] = False
        seen = i + 1

    return _finish(values, mask, seen)
