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

import hashlib
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

import pyarrow as pa
import pyarrow.parquet as pq

from ewm_kernel.columns import ewm_mean_arrow
from ewm_kernel.config_parsers.job.config_dataclass import JobConfigData
from ewm_kernel.config_parsers.job.config_parser import JobConfigParser
from ewm_kernel.exceptions import ColumnError, ConfigError
from ewm_kernel.logging_utils import configure_logging, generate_run_id, get_git_hash, run_context

logger = logging.getLogger(__name__)

__all__ = [
    "run_ewm_job",
    "load_config",
]

OUTPUT_FILENAME = "ewm.parquet"


def load_config(config_path: Path | str) -> JobConfigData:
    """Parse an EWM job configuration file."""
    return JobConfigParser(Path(config_path)).load()


def setup_logging(run_id: str, log_dir: Path | None, level: str | int):
    configure_logging(run_id=run_id, log_dir=log_dir, level=level)
    return logging.getLogger(__name__)


def _snapshot_config(source: Path, dest_dir: Path) -> Dict[str, object]:
    dest_dir.mkdir(parents=True, exist_ok=True)
    text = source.read_text(encoding="utf-8")
    dest_path = dest_dir / source.name
    shutil.copy2(source, dest_path)
    return {
        "source_path": str(source.resolve()),
        "copied_path": str(dest_path.resolve()),
        "sha256": hashlib.sha256(text.encode("utf-8")).hexdigest(),
    }


def _write_manifest(run_root: Path, manifest: Dict[str, object]) -> Path:
    manifest_path = run_root / "manifest.json"
    manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
    return manifest_path


def compute_columns(table: pa.Table, config: JobConfigData) -> tuple[pa.Table, List[Dict[str, object]]]:
    """Append one EWM mean column per enabled config entry."""
    summaries: List[Dict[str, object]] = []
    for column_cfg in config.columns:
        if not column_cfg.enabled:
            logger.info("column disabled via config", extra={"output_column": column_cfg.name})
            continue
        if column_cfg.source not in table.column_names:
            raise ColumnError(
                f"source column '{column_cfg.source}' for '{column_cfg.name}' not found; "
                f"available: {table.column_names}"
            )
        if column_cfg.name in table.column_names:
            raise ColumnError(f"output column '{column_cfg.name}' already exists in the input")

        with run_context(column=column_cfg.name):
            result = ewm_mean_arrow(table.column(column_cfg.source), column_cfg.options)
            summary = column_cfg.to_summary()
            summary["null_count"] = result.null_count
            logger.info(
                "computed ewm mean column",
                extra={
                    "source_column": column_cfg.source,
                    "params": summary["params"],
                    "null_count": result.null_count,
                },
            )

        table = table.append_column(column_cfg.name, result)
        summaries.append(summary)
    return table, summaries


def run_ewm_job(
    config_path: Path | str,
    *,
    log_level: str | int = "INFO",
    run_id: str | None = None,
    output_root: Path | str | None = None,
) -> Dict[str, object]:
    """
    Execute an EWM job using the provided configuration path.

    Returns metadata about the run, including the manifest contents.
    """
    run_identifier = run_id or generate_run_id()
    initial_logger = setup_logging(run_identifier, None, log_level)

    try:
        config = load_config(config_path)
    except ConfigError:
        initial_logger.exception(
            "failed to load job configuration",
            extra={"config_path": str(Path(config_path).resolve())},
        )
        raise

    base_output_root = Path(output_root).expanduser() if output_root else config.output_base_path
    run_root = base_output_root / run_identifier
    log_dir = run_root / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(run_identifier, log_dir, log_level)
    manifest: Dict[str, object] = {
        "run_id": run_identifier,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "code_ref": get_git_hash(),
        "schema_version": config.schema_version,
        "input_path": str(config.input_path),
        "log_path": str((log_dir / f"{run_identifier}.log").resolve()),
        "config": _snapshot_config(Path(config_path), run_root / "configs"),
        "status": "pending",
    }

    output_path = run_root / OUTPUT_FILENAME
    try:
        table = pq.read_table(config.input_path)
        logger.info(
            "loaded input table",
            extra={"input_path": str(config.input_path), "rows": table.num_rows},
        )
        table, summaries = compute_columns(table, config)
        pq.write_table(table, output_path)
    except Exception:
        manifest["status"] = "failed"
        _write_manifest(run_root, manifest)
        logger.exception("ewm job failed")
        raise

    manifest.update(
        {
            "status": "completed",
            "rows": table.num_rows,
            "columns": summaries,
            "output_path": str(output_path.resolve()),
        }
    )
    manifest_path = _write_manifest(run_root, manifest)
    logger.info("run complete", extra={"output_path": str(output_path)})

    return {
        "run_id": run_identifier,
        "run_root": run_root,
        "output_path": output_path,
        "manifest": manifest,
        "manifest_path": manifest_path,
    }
