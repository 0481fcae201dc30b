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

"""Adapters between column containers and the EWM kernel.

Arrow nulls and pandas missing markers become absent observations; results
are wrapped back into the caller's container with the same float width.
"""

from __future__ import annotations

import logging
from typing import Union

import numpy as np
import pandas as pd
import pyarrow as pa

from ewm_kernel.exceptions import ColumnError
from ewm_kernel.kernels.ewm.options import EWMOptions

__all__ = ["ewm_mean_arrow", "ewm_mean_series"]

logger = logging.getLogger(__name__)

_KEPT_ARROW_TYPES = (pa.float32(), pa.float64())


def _arrow_float_type(arrow_type: pa.DataType) -> pa.DataType:
    if arrow_type in _KEPT_ARROW_TYPES:
        return arrow_type
    if pa.types.is_integer(arrow_type) or pa.types.is_floating(arrow_type):
        return pa.float64()
    raise ColumnError(f"EWM mean requires a numeric column, got {arrow_type}")


def ewm_mean_arrow(array: Union[pa.Array, pa.ChunkedArray], options: EWMOptions) -> pa.Array:
    """Return the EWM mean of an arrow column as a nullable float array."""
    if isinstance(array, pa.ChunkedArray):
        array = array.combine_chunks()
    if not isinstance(array, pa.Array):
        raise ColumnError(f"expected a pyarrow Array, got {type(array).__name__}")

    float_type = _arrow_float_type(array.type)
    if array.type != float_type:
        logger.debug(
            "casting column for ewm mean",
            extra={"from_type": str(array.type), "to_type": str(float_type)},
        )
        array = array.cast(float_type)

    mask = array.is_null().to_numpy(zero_copy_only=False)
    values = array.to_numpy(zero_copy_only=False)
    result = options.apply(np.ma.MaskedArray(values, mask=mask))
    return pa.array(result.data, mask=np.ma.getmaskarray(result), type=float_type)


def ewm_mean_series(series: pd.Series, options: EWMOptions) -> pd.Series:
    """Return the EWM mean of a pandas series; absent outputs become NaN."""
    if not (pd.api.types.is_numeric_dtype(series.dtype) and not pd.api.types.is_bool_dtype(series.dtype)):
        raise ColumnError(f"EWM mean requires a numeric series, got {series.dtype}")

    dtype = np.float32 if series.dtype == np.float32 else np.float64
    mask = series.isna().to_numpy()
    values = series.to_numpy(dtype=dtype, na_value=np.nan)
    result = options.apply(np.ma.MaskedArray(values, mask=mask))
    return pd.Series(result.filled(np.nan), index=series.index, name=series.name, dtype=dtype)
