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

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from ewm_kernel.config_parsers.job.config_dataclass import EWMColumnConfig, JobConfigData
from ewm_kernel.config_parsers.utils.utils import validate_path
from ewm_kernel.config_validation import validate_job_config
from ewm_kernel.exceptions import ConfigError, InvalidArgumentError
from ewm_kernel.kernels.ewm.options import EWMOptions


class JobConfigParser:
    """
    Parses and validates the EWM job YAML configuration file.

    Produces a JobConfigData whose column entries carry ready-to-apply
    EWMOptions.
    """

    def __init__(self, job_config_path: Path):
        self.job_config_path = Path(job_config_path)

        if not self.job_config_path.exists():
            raise ConfigError(f"job config not found: {job_config_path}")

    # ------------------------------------------------------------------
    def load(self) -> JobConfigData:
        """Load and validate the job YAML into config dataclasses."""

        # --- Parse YAML ---
        try:
            with self.job_config_path.open("r", encoding="utf-8") as f:
                raw: Dict[str, Any] = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing YAML at {self.job_config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError("Invalid job config: root must be a mapping (YAML dict)")

        try:
            validated = validate_job_config(raw)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        # Relative paths are anchored at the config file's directory
        base_dir = self.job_config_path.resolve().parent
        input_path = validate_path(
            base_dir / validated["input_path"].expanduser(),
            must_exist=True,
            expect_dir=False,
            label="input_path",
        )
        output_base_path = validate_path(
            base_dir / validated["output_base_path"].expanduser(),
            must_exist=False,
            expect_dir=True,
            create_if_missing=True,
            label="output_base_path",
        )

        columns: List[EWMColumnConfig] = []
        seen_names: set[str] = set()

        # --- Build column dataclasses ---
        for entry in validated["columns"]:
            name = entry["name"]
            if name in seen_names:
                raise ConfigError(f"Duplicate output column name detected: '{name}'")
            seen_names.add(name)

            try:
                options = EWMOptions.from_decay(**entry["params"])
            except InvalidArgumentError as e:
                raise ConfigError(f"Invalid params for column '{name}': {e}") from e

            columns.append(
                EWMColumnConfig(
                    name=name,
                    source=entry["source"],
                    options=options,
                    enabled=entry["enabled"],
                )
            )

        return JobConfigData(
            schema_version=validated["schema_version"],
            input_path=input_path,
            output_base_path=output_base_path,
            columns=columns,
        )
