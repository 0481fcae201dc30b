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

import argparse
import logging
import sys
from pathlib import Path

from ewm_kernel.workflow import run_ewm_job

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Append exponentially weighted moving average columns to a parquet file."
    )
    parser.add_argument(
        "--config",
        required=True,
        type=Path,
        help="Path to the EWM job YAML configuration file.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level for the run (default: INFO).",
    )
    parser.add_argument(
        "--run-id",
        default=None,
        help="Optional run identifier; generated when omitted.",
    )
    parser.add_argument(
        "--output-root",
        type=Path,
        default=None,
        help="Optional override for the output root directory.",
    )
    return parser.parse_args(argv)


def _setup_logging(level: str) -> None:
    resolved = getattr(logging, level.upper(), None)
    if not isinstance(resolved, int):
        logger.warning("invalid log level supplied; defaulting to INFO", extra={"log_level": level})
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.log_level)

    try:
        result = run_ewm_job(
            config_path=args.config,
            log_level=args.log_level,
            run_id=args.run_id,
            output_root=args.output_root,
        )
    except Exception:
        logger.exception("ewm job failed", extra={"config": str(args.config)})
        return 1

    logger.info(
        "run complete",
        extra={
            "run_id": result["run_id"],
            "output_path": str(result["output_path"]),
            "manifest_path": str(result["manifest_path"]),
        },
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
