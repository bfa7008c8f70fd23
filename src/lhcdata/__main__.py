"""
CLI entry point for lhcdata.

    python -m lhcdata                           # built-in ATLAS + CMS 7 TeV config
    python -m lhcdata --config lhc7tev          # config/reformat/lhc7tev.json
    python -m lhcdata --config my.json --output out.h5
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from lhcdata.pipeline.config import (
    default_config,
    list_available_configs,
    load_reformat_config,
)
from lhcdata.pipeline.runner import run_reformat
from lhcdata.utils.exceptions import LhcDataError
from lhcdata.utils.logging import setup_logging


logger = logging.getLogger("lhcdata")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lhcdata",
        description="Reformat LHC inclusive-jet HEPData tables into one file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m lhcdata
  python -m lhcdata --config lhc7tev --data-dir /data/hepdata
  python -m lhcdata --config my.json --out-of-range clamp
        """,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config name (in <config-dir>/reformat/) or path to JSON (default: built-in)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory containing reformat/ configs (default: config/)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Output HDF5 path")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Base directory for relative input paths",
    )
    parser.add_argument(
        "--out-of-range",
        choices=["clamp", "reject"],
        default=None,
        help="Policy for points outside the stat histogram (default: from config)",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar per dataset",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: from config)")
    parser.add_argument(
        "--list-configs",
        action="store_true",
        help="List the configs found in <config-dir>/reformat/ and exit",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    if args.list_configs:
        for name in list_available_configs(args.config_dir):
            print(name)
        return 0

    try:
        if args.config:
            config = load_reformat_config(args.config, args.config_dir)
        else:
            config = default_config()

        updates = {}
        if args.output is not None:
            updates["output_path"] = args.output
        if args.data_dir is not None:
            updates["data_dir"] = args.data_dir
        if args.out_of_range is not None:
            updates["out_of_range"] = args.out_of_range
        if args.progress:
            updates["show_progress"] = True
        if args.log_level is not None:
            updates["log_level"] = args.log_level
        config = config.with_overrides(updates)

        setup_logging(level=config.log_level)
        result = run_reformat(config)
    except (LhcDataError, FileNotFoundError, FileExistsError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for name, count in result.summary().items():
        logger.info(f"{name}: {count} objects")
    return 0


if __name__ == "__main__":
    sys.exit(main())
