"""
Pipeline runner for lhcdata.

Loads each configured dataset in order, transforms its tables into one
shared output accumulator, and writes the output file once at the end.
Any error aborts the run before the output file is touched.
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

import lhcdata
from lhcdata.io.hdf5_store import create_output_hdf5, write_output
from lhcdata.io.loader import load_dataset
from lhcdata.model import OutputDataset
from lhcdata.pipeline.config import DatasetConfig, ReformatConfig
from lhcdata.transform import DatasetResult, transform_dataset
from lhcdata.utils.hashing import hash_config, hash_file
from lhcdata.utils.validation import validate_input_path


logger = logging.getLogger(__name__)


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class ReformatResult:
    """Result of a full reformatting run."""

    output_path: Path
    config_hash: str
    datasets: List[DatasetResult] = field(default_factory=list)
    objects_written: int = 0

    @property
    def series_written(self) -> List[str]:
        return [name for d in self.datasets for name in d.series_written]

    @property
    def systematics_written(self) -> List[str]:
        return [name for d in self.datasets for name in d.systematics_written]

    def summary(self) -> Dict[str, int]:
        """Counts per dataset name."""
        return {
            d.name: len(d.series_written) + len(d.histograms_written) + len(d.systematics_written)
            for d in self.datasets
        }


# =============================================================================
# Runner
# =============================================================================

def reformat_dataset(
    dataset_config: DatasetConfig,
    input_path: Path,
    output: OutputDataset,
    config: ReformatConfig,
) -> DatasetResult:
    """
    Load one dataset and transform it into the output accumulator.

    Args:
        dataset_config: Record for the dataset
        input_path: Resolved, validated input file
        output: Destination accumulator
        config: Run configuration (out-of-range policy, optional outputs)

    Returns:
        DatasetResult
    """
    dataset = load_dataset(
        input_path,
        dataset_config.name,
        n_tables=dataset_config.n_tables,
        table_key_template=dataset_config.table_key_template,
    )

    progress = None
    if config.show_progress:
        progress = partial(tqdm, desc=dataset_config.name, unit="table")

    return transform_dataset(
        dataset,
        dataset_config.scheme,
        output,
        dataset_config.systematics_folder,
        n_tables=dataset_config.n_tables,
        stat_key=dataset_config.stat_histogram_key,
        out_of_range=config.out_of_range,
        include_syst_only=config.write_syst_only,
        include_stat_histogram=config.write_stat_histogram,
        folder_attrs={
            "dataset": dataset_config.name,
            "input_path": str(input_path),
            "input_hash": hash_file(str(input_path)),
        },
        progress=progress,
    )


def run_reformat(
    config: ReformatConfig,
    output_path: Optional[Path] = None,
) -> ReformatResult:
    """
    Reformat every configured dataset into one output file.

    Args:
        config: Run configuration
        output_path: Override for config.output_path

    Returns:
        ReformatResult

    Raises:
        ConfigurationError: If an input path is unsupported
        FileNotFoundError: If an input is missing
        FileExistsError: If the output exists and overwrite is False
        LhcDataError: Any load, naming, lookup or collision error
    """
    output_path = Path(output_path or config.output_path)
    config_hash = hash_config(config.hash_payload())

    logger.info(f"Starting reformat: {len(config.datasets)} datasets -> {output_path}")

    # Fail before any work if an input is missing
    input_paths = [
        validate_input_path(config.resolve_input(d)) for d in config.datasets
    ]

    if output_path.exists() and not config.overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output = OutputDataset()
    result = ReformatResult(output_path=output_path, config_hash=config_hash)

    for dataset_config, input_path in zip(config.datasets, input_paths):
        result.datasets.append(
            reformat_dataset(dataset_config, input_path, output, config)
        )

    with create_output_hdf5(output_path, overwrite=config.overwrite) as root:
        result.objects_written = write_output(
            root,
            output,
            attrs={
                "lhcdata_version": lhcdata.__version__,
                "config_hash": config_hash,
                "datasets": ",".join(d.name for d in config.datasets),
            },
        )

    logger.info(f"Reformat complete: {result.objects_written} objects in {output_path}")
    return result
