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

"""Top-level exports for the ewm_kernel package."""

from ewm_kernel.exceptions import ConfigError, EwmKernelError, InvalidArgumentError
from ewm_kernel.kernels.ewm import EWMOptions, ewm_mean, resolve_alpha

__all__ = [
    "ConfigError",
    "EWMOptions",
    "EwmKernelError",
    "InvalidArgumentError",
    "ewm_mean",
    "ewm_mean_arrow",
    "ewm_mean_series",
    "resolve_alpha",
    "run_ewm_job",
]


def __getattr__(name):
    """Lazily import the column and workflow layers when first accessed."""
    if name in ("ewm_mean_arrow", "ewm_mean_series"):
        from ewm_kernel.columns import ewm_mean_arrow, ewm_mean_series
        globals().update(ewm_mean_arrow=ewm_mean_arrow, ewm_mean_series=ewm_mean_series)
        return globals()[name]

    if name == "run_ewm_job":
        from ewm_kernel.workflow import run_ewm_job
        globals()["run_ewm_job"] = run_ewm_job
        return run_ewm_job

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
