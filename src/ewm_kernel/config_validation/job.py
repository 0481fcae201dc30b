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

from ewm_kernel.config_validation.schema_registry import validate_schema_version
from ewm_kernel.exceptions import ConfigError

DECAY_KEYS = ("alpha", "com", "span", "half_life")
FLAG_KEYS = ("adjust", "ignore_na")


def _validate_params(idx: int, params: dict) -> dict:
    allowed = set(DECAY_KEYS) | set(FLAG_KEYS) | {"min_periods"}
    extra = sorted(set(params.keys()) - allowed)
    if extra:
        raise ValueError(
            f"Invalid job configuration: column #{idx} params have unexpected keys {extra}"
        )

    decay = [key for key in DECAY_KEYS if params.get(key) is not None]
    if len(decay) != 1:
        raise ValueError(
            f"Invalid job configuration: column #{idx} params must set exactly one of "
            f"{list(DECAY_KEYS)}, got {decay}"
        )

    for key in FLAG_KEYS:
        if key in params and not isinstance(params[key], bool):
            raise ValueError(
                f"Invalid job configuration: column #{idx} '{key}' must be a boolean"
            )

    if "min_periods" in params:
        min_periods = params["min_periods"]
        if isinstance(min_periods, bool) or not isinstance(min_periods, int):
            raise ValueError(
                f"Invalid job configuration: column #{idx} 'min_periods' must be an integer"
            )
        if min_periods < 0:
            raise ValueError(
                f"Invalid job configuration: column #{idx} 'min_periods' must be non-negative"
            )

    return dict(params)


def validate_job_config(raw: dict) -> dict:
    """Validate a raw EWM job configuration mapping."""
    if not isinstance(raw, dict):
        raise ValueError("Invalid job configuration: root must be a mapping")

    try:
        schema_spec = validate_schema_version("job", raw.get("schema_version"))
    except ConfigError as exc:
        raise ValueError(str(exc)) from exc

    working = dict(raw)
    if schema_spec.migration is not None:
        migrated = schema_spec.migration(working)
        working = dict(migrated)

    working["schema_version"] = schema_spec.canonical

    allowed_root = {"schema_version", "input_path", "output_base_path", "columns"}
    extra_root = sorted(set(working.keys()) - allowed_root)
    if extra_root:
        raise ValueError(f"Invalid job configuration: unexpected keys {extra_root}")

    missing_root = sorted((allowed_root - {"schema_version"}) - set(working.keys()))
    if missing_root:
        raise ValueError(f"Invalid job configuration: missing keys {missing_root}")

    def _to_path(key: str) -> Path:
        value = working[key]
        if not isinstance(value, (str, Path)) or not str(value).strip():
            raise ValueError(f"Invalid job configuration: '{key}' must be a path string")
        return Path(value)

    input_path = _to_path("input_path")
    output_base_path = _to_path("output_base_path")

    columns = working["columns"]
    if not isinstance(columns, list) or not columns:
        raise ValueError("Invalid job configuration: 'columns' must be a non-empty list")

    normalized = []
    for idx, entry in enumerate(columns, start=1):
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid job configuration: column #{idx} must be a mapping")

        allowed_entry = {"name", "source", "enabled", "params"}
        extra_entry = sorted(set(entry.keys()) - allowed_entry)
        if extra_entry:
            raise ValueError(
                f"Invalid job configuration: column #{idx} has unexpected keys {extra_entry}"
            )

        missing = {"name", "source", "params"} - set(entry.keys())
        if missing:
            raise ValueError(
                f"Invalid job configuration: column #{idx} missing keys {sorted(missing)}"
            )

        for key in ("name", "source"):
            if not isinstance(entry[key], str) or not entry[key].strip():
                raise ValueError(
                    f"Invalid job configuration: column #{idx} '{key}' must be a non-empty string"
                )

        enabled = entry.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError(
                f"Invalid job configuration: column #{idx} 'enabled' must be a boolean"
            )

        params = entry["params"]
        if not isinstance(params, dict):
            raise ValueError(
                f"Invalid job configuration: column #{idx} 'params' must be a mapping"
            )

        normalized.append(
            {
                "name": entry["name"].strip(),
                "source": entry["source"].strip(),
                "enabled": enabled,
                "params": _validate_params(idx, params),
            }
        )

    schema_version = working.get("schema_version")
    if not isinstance(schema_version, str):
        raise ValueError("Invalid job configuration: 'schema_version' must be a string")

    return {
        "schema_version": schema_version,
        "input_path": input_path,
        "output_base_path": output_base_path,
        "columns": normalized,
    }
