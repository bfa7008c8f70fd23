"""
HEPData ROOT export reading via uproot.

uproot is imported when a .root input is actually loaded, so HDF5-only runs
do not pay its import cost.
"""

import logging
from pathlib import Path
from typing import Union

from lhcdata.model import (
    HISTOGRAM_CLASSES,
    POINT_SERIES_CLASS,
    Dataset,
    Distribution,
    PointSeries,
    Table,
)
from lhcdata.utils.exceptions import DataLoadError


logger = logging.getLogger(__name__)


def _point_series_from_root(key: str, obj) -> PointSeries:
    return PointSeries(
        name=key,
        x=obj.member("fX"),
        y=obj.member("fY"),
        exl=obj.member("fEXlow"),
        exh=obj.member("fEXhigh"),
        eyl=obj.member("fEYlow"),
        eyh=obj.member("fEYhigh"),
    )


def _distribution_from_root(key: str, obj, class_name: str) -> Distribution:
    return Distribution(
        name=key,
        edges=obj.axis().edges(),
        values=obj.values(),
        errors=obj.errors(),
        class_name=class_name,
    )


def read_table_directory(directory, number: int, key: str) -> Table:
    """
    Read the recognised objects of one ROOT table directory.

    Args:
        directory: uproot ReadOnlyDirectory
        number: 1-based table number
        key: Directory name

    Returns:
        Table
    """
    table = Table(number=number, key=key)
    classnames = directory.classnames(recursive=False, cycle=False)
    for obj_key, class_name in classnames.items():
        if class_name == POINT_SERIES_CLASS:
            table.series[obj_key] = _point_series_from_root(obj_key, directory[obj_key])
        elif class_name in HISTOGRAM_CLASSES:
            table.histograms[obj_key] = _distribution_from_root(
                obj_key, directory[obj_key], class_name
            )
        else:
            logger.debug(f"Skipping '{key}/{obj_key}' of class {class_name}")
    return table


def read_dataset_root(
    root_path: Union[str, Path],
    name: str,
    n_tables: int,
    table_key_template: str = "Table {number}",
) -> Dataset:
    """
    Load tables 1..n_tables of a HEPData ROOT export.

    Args:
        root_path: Path to the .root file
        name: Dataset name (for messages)
        n_tables: Number of tables to look for
        table_key_template: Directory name of a table, formatted with number

    Returns:
        Dataset

    Raises:
        FileNotFoundError: If root_path does not exist
        DataLoadError: If uproot is missing or the file cannot be read
    """
    root_path = Path(root_path)
    if not root_path.exists():
        raise FileNotFoundError(f"ROOT file not found: {root_path}")

    try:
        import uproot
    except ImportError as e:
        raise DataLoadError(
            f"Reading {root_path} requires uproot. Install with: pip install uproot",
            file_path=str(root_path),
            original_error=e,
        ) from e

    logger.info(f"Loading ROOT dataset '{name}': {root_path}")

    dataset = Dataset(name=name, source_path=str(root_path))
    try:
        with uproot.open(root_path) as f:
            directories = set(f.keys(recursive=False, cycle=False))
            for number in range(1, n_tables + 1):
                key = table_key_template.format(number=number)
                if key not in directories:
                    logger.debug(f"Table '{key}' not present in {root_path}")
                    continue
                dataset.tables[number] = read_table_directory(f[key], number, key)
    except (OSError, ValueError) as e:
        raise DataLoadError(
            f"Cannot read ROOT file: {root_path}: {e}",
            file_path=str(root_path),
            original_error=e,
        ) from e

    logger.info(f"Loaded {len(dataset.tables)} tables from {root_path.name}")
    return dataset
