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

"""Tests for the structured logging helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ewm_kernel.logging_utils import (
    StructuredFormatter,
    generate_run_id,
    reset_run_context,
    run_context,
    set_run_context,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="ewm_kernel.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="computed %s",
        args=("column",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_injects_run_context():
    formatter = StructuredFormatter()
    token = set_run_context(run_id="run-1")
    try:
        with run_context(column="mid_fast"):
            payload = json.loads(formatter.format(_record(output_path=Path("/tmp/x"))))
        outside = json.loads(formatter.format(_record()))
    finally:
        reset_run_context(token)

    assert payload["message"] == "computed column"
    assert payload["run_id"] == "run-1"
    assert payload["column"] == "mid_fast"
    assert payload["extra"] == {"output_path": "/tmp/x"}
    assert outside["column"] is None


def test_generate_run_id_is_unique():
    assert generate_run_id() != generate_run_id()
