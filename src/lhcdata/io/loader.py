"""
Input dataset loading, dispatched on file suffix.
"""

import logging
from pathlib import Path
from typing import Union

from lhcdata.io.hdf5_store import read_dataset_hdf5
from lhcdata.io.root_source import read_dataset_root
from lhcdata.model import Dataset
from lhcdata.utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


def load_dataset(
    path: Union[str, Path],
    name: str,
    n_tables: int = 12,
    table_key_template: str = "Table {number}",
) -> Dataset:
    """
    Load an input dataset from an HDF5 mirror (.h5/.hdf5) or a ROOT export.

    Args:
        path: Input file
        name: Dataset name (for messages)
        n_tables: Number of tables to look for
        table_key_template: Name of a table directory, formatted with number

    Returns:
        Dataset

    Raises:
        ConfigurationError: If the suffix is not supported
        FileNotFoundError: If the file does not exist
        DataLoadError: If the file cannot be read
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in (".h5", ".hdf5"):
        return read_dataset_hdf5(path, name, n_tables, table_key_template)
    if suffix == ".root":
        return read_dataset_root(path, name, n_tables, table_key_template)

    raise ConfigurationError(f"Unsupported input file type '{path.suffix}': {path}")
