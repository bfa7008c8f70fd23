"""
Pipeline orchestration module for lhcdata.

Provides:
    - Configuration records and loading
    - The reformat runner and its result types
"""

from lhcdata.pipeline.config import (
    DatasetConfig,
    ReformatConfig,
    default_config,
    load_reformat_config,
    list_available_configs,
)
from lhcdata.pipeline.runner import (
    ReformatResult,
    reformat_dataset,
    run_reformat,
)

__all__ = [
    # Configuration
    "DatasetConfig",
    "ReformatConfig",
    "default_config",
    "load_reformat_config",
    "list_available_configs",
    # Runner
    "ReformatResult",
    "reformat_dataset",
    "run_reformat",
]
