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

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ewm_kernel.kernels.ewm.options import EWMOptions


@dataclass(kw_only=True)
class EWMColumnConfig:
    """One output column: the EWM mean of ``source`` under ``options``."""
    name: str
    source: str
    options: EWMOptions
    enabled: bool = True

    def to_summary(self) -> dict:
        return {
            "name": self.name,
            "source": self.source,
            "enabled": self.enabled,
            "params": self.options.as_dict(),
        }


@dataclass(kw_only=True)
class JobConfigData:
    """
    Validated EWM job configuration.
    Created by JobConfigParser and consumed by the job workflow.
    """
    schema_version: str
    input_path: Path
    output_base_path: Path
    columns: List[EWMColumnConfig] = field(default_factory=list)

    @property
    def enabled_columns(self) -> List[EWMColumnConfig]:
        return [column for column in self.columns if column.enabled]
