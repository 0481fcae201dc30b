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

"""Shared pytest fixtures for the ewm_kernel test suite."""

from __future__ import annotations

import textwrap
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest


@pytest.fixture
def parquet_factory(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes column data to a parquet file under tmp_path."""

    def _write(
        columns: Mapping[str, Sequence],
        *,
        name: str = "input.parquet",
        types: Mapping[str, pa.DataType] | None = None,
    ) -> Path:
        types = types or {}
        arrays = {
            column: pa.array(list(values), type=types.get(column))
            for column, values in columns.items()
        }
        path = tmp_path / name
        pq.write_table(pa.table(arrays), path)
        return path

    return _write


@pytest.fixture
def job_config_factory(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes a job YAML config next to the test data."""

    def _write(yaml_text: str, *, name: str = "job.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(yaml_text), encoding="utf-8")
        return path

    return _write
