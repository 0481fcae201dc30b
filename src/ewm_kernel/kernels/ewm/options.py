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

"""Decay parameterisation and option bundle for the EWM kernels."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

import numpy as np

from ewm_kernel.exceptions import InvalidArgumentError
from ewm_kernel.kernels.ewm.average import ewm_mean

__all__ = ["EWMOptions", "resolve_alpha"]


def _require_number(value, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"'{name}' must be numeric, not bool")
    if not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidArgumentError(f"'{name}' must be numeric, got {type(value).__name__}")
    if not math.isfinite(value):
        raise InvalidArgumentError(f"'{name}' must be finite, got {value}")
    return float(value)


def resolve_alpha(
    *,
    com: Optional[float] = None,
    span: Optional[float] = None,
    half_life: Optional[float] = None,
    alpha: Optional[float] = None,
) -> float:
    """Convert exactly one decay specification into a smoothing factor.

    - ``com``: ``alpha = 1 / (1 + com)``, ``com >= 0``
    - ``span``: ``alpha = 2 / (span + 1)``, ``span >= 1``
    - ``half_life``: ``alpha = 1 - exp(-ln(2) / half_life)``, ``half_life > 0``
    - ``alpha``: used as is, ``0 < alpha <= 1``
    """
    given = {
        name: value
        for name, value in (("com", com), ("span", span), ("half_life", half_life), ("alpha", alpha))
        if value is not None
    }
    if not given:
        raise InvalidArgumentError("one of 'com', 'span', 'half_life' or 'alpha' is required")
    if len(given) > 1:
        raise InvalidArgumentError(
            f"only one of 'com', 'span', 'half_life' or 'alpha' may be set, got {sorted(given)}"
        )

    name, raw = next(iter(given.items()))
    value = _require_number(raw, name)

    if name == "com":
        if value < 0:
            raise InvalidArgumentError(f"'com' must be >= 0, got {value}")
        return 1.0 / (1.0 + value)
    if name == "span":
        if value < 1:
            raise InvalidArgumentError(f"'span' must be >= 1, got {value}")
        return 2.0 / (value + 1.0)
    if name == "half_life":
        if value <= 0:
            raise InvalidArgumentError(f"'half_life' must be > 0, got {value}")
        return 1.0 - math.exp(-math.log(2.0) / value)
    if not 0 < value <= 1:
        raise InvalidArgumentError(f"'alpha' must be in (0, 1], got {value}")
    return value


@dataclass(kw_only=True)
class EWMOptions:
    alpha: float
    adjust: bool = True
    min_periods: int = 1
    ignore_na: bool = False

    def __post_init__(self):
        # --- alpha ---
        self.alpha = resolve_alpha(alpha=self.alpha)

        # --- flags ---
        if not isinstance(self.adjust, bool):
            raise InvalidArgumentError(f"'adjust' must be a bool, got {type(self.adjust).__name__}")
        if not isinstance(self.ignore_na, bool):
            raise InvalidArgumentError(
                f"'ignore_na' must be a bool, got {type(self.ignore_na).__name__}"
            )

        # --- min_periods ---
        if isinstance(self.min_periods, bool):
            raise InvalidArgumentError("'min_periods' must be an integer count, not bool")
        if isinstance(self.min_periods, float):
            if not self.min_periods.is_integer():
                raise InvalidArgumentError(f"'min_periods' must be an integer, got {self.min_periods}")
            self.min_periods = int(self.min_periods)
        if not isinstance(self.min_periods, int):
            raise InvalidArgumentError(
                f"'min_periods' must be an int, got {type(self.min_periods).__name__}"
            )
        if self.min_periods < 0:
            raise InvalidArgumentError(f"'min_periods' must be non-negative, got {self.min_periods}")

    @classmethod
    def from_decay(
        cls,
        *,
        com: Optional[float] = None,
        span: Optional[float] = None,
        half_life: Optional[float] = None,
        alpha: Optional[float] = None,
        adjust: bool = True,
        min_periods: int = 1,
        ignore_na: bool = False,
    ) -> "EWMOptions":
        """Build options from any one of the supported decay specifications."""
        return cls(
            alpha=resolve_alpha(com=com, span=span, half_life=half_life, alpha=alpha),
            adjust=adjust,
            min_periods=min_periods,
            ignore_na=ignore_na,
        )

    def apply(self, xs: Iterable[Optional[float]], *, dtype=None, length: Optional[int] = None) -> np.ma.MaskedArray:
        return ewm_mean(
            xs,
            self.alpha,
            self.adjust,
            self.min_periods,
            self.ignore_na,
            dtype=dtype,
            length=length,
        )

    def as_dict(self) -> dict:
        return asdict(self)
