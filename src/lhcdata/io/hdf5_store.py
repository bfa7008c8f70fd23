"""
HDF5 container operations for lhcdata.

Both the input table mirrors and the consolidated output use the same
object layout:

    <object>/            group, attrs["class"] = type tag
        x, y, exl, exh, eyl, eyh     for TGraphAsymmErrors
        edges, values, errors        for TH1F / TH1D
    <folder>/            group, attrs["class"] = "TDirectory"

Datasets are written without time tracking and objects in sorted order, so
equal inputs give equal file contents.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import h5py
import numpy as np

from lhcdata.model import (
    FOLDER_CLASS,
    HISTOGRAM_CLASSES,
    POINT_SERIES_CLASS,
    Dataset,
    Distribution,
    OutputDataset,
    PointSeries,
    Table,
)
from lhcdata.utils.exceptions import DataLoadError, ValidationError


logger = logging.getLogger(__name__)


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


# =============================================================================
# File handles
# =============================================================================

def create_output_hdf5(
    hdf5_path: Union[str, Path],
    overwrite: bool = False,
) -> h5py.File:
    """
    Create a new HDF5 output file.

    Args:
        hdf5_path: Path for the HDF5 file (should end with .h5)
        overwrite: If True, replace an existing file

    Returns:
        Open h5py.File handle (caller must close or use with statement)

    Raises:
        FileExistsError: If file exists and overwrite=False
        OSError: If the file is locked by another process
    """
    hdf5_path = Path(hdf5_path)

    if hdf5_path.suffix.lower() not in (".h5", ".hdf5"):
        logger.warning(f"HDF5 file has non-standard extension: {hdf5_path.suffix}")

    if hdf5_path.exists() and not overwrite:
        raise FileExistsError(f"HDF5 file already exists: {hdf5_path}")

    logger.info(f"Creating HDF5 output: {hdf5_path}")

    if overwrite and hdf5_path.exists():
        hdf5_path.unlink()

    hdf5_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        return h5py.File(str(hdf5_path), mode="w")
    except OSError as e:
        if "already open" in str(e).lower() or "locked" in str(e).lower():
            raise OSError(
                f"File is already open for writing: {hdf5_path}. "
                "Close the file in other processes before writing."
            ) from e
        raise


def open_dataset_hdf5(hdf5_path: Union[str, Path], mode: str = "r") -> h5py.File:
    """
    Open an existing HDF5 container.

    Args:
        hdf5_path: Path to HDF5 file
        mode: Open mode ("r" for read, "r+" for read/write)

    Returns:
        Open h5py.File handle

    Raises:
        FileNotFoundError: If file does not exist
        DataLoadError: If the file cannot be opened as HDF5
    """
    hdf5_path = Path(hdf5_path)

    if not hdf5_path.exists():
        raise FileNotFoundError(f"HDF5 file not found: {hdf5_path}")

    try:
        return h5py.File(str(hdf5_path), mode=mode)
    except OSError as e:
        raise DataLoadError(
            f"Cannot read HDF5 file: {hdf5_path}. "
            "The file may be corrupted or incomplete.",
            file_path=str(hdf5_path),
            original_error=e,
        ) from e


# =============================================================================
# Object-level write
# =============================================================================

def _write_arrays(group: h5py.Group, arrays: Dict[str, np.ndarray]) -> None:
    for key, value in arrays.items():
        group.create_dataset(key, data=value, dtype=np.float64, track_times=False)


def write_point_series(parent: h5py.Group, series: PointSeries) -> h5py.Group:
    """
    Write a point series as a group under parent.

    Args:
        parent: Destination group (file root or folder)
        series: Series to write

    Returns:
        The created group
    """
    group = parent.create_group(series.name)
    group.attrs["class"] = series.class_name
    group.attrs["n_points"] = series.n_points
    _write_arrays(group, series.arrays())
    return group


def write_distribution(parent: h5py.Group, hist: Distribution) -> h5py.Group:
    """
    Write a 1-D histogram as a group under parent.

    Args:
        parent: Destination group (file root or folder)
        hist: Histogram to write

    Returns:
        The created group
    """
    group = parent.create_group(hist.name)
    group.attrs["class"] = hist.class_name
    group.attrs["n_bins"] = hist.n_bins
    _write_arrays(group, hist.arrays())
    return group


def write_object(parent: h5py.Group, obj) -> h5py.Group:
    """Write a PointSeries or Distribution under parent."""
    if isinstance(obj, PointSeries):
        return write_point_series(parent, obj)
    if isinstance(obj, Distribution):
        return write_distribution(parent, obj)
    raise TypeError(f"Cannot write object of type {type(obj).__name__}")


def write_folder(
    parent: h5py.Group,
    name: str,
    attrs: Optional[Dict[str, Any]] = None,
) -> h5py.Group:
    """Create a folder group under parent."""
    group = parent.create_group(name)
    group.attrs["class"] = FOLDER_CLASS
    for key, value in (attrs or {}).items():
        group.attrs[key] = value
    return group


def write_output(
    root: h5py.File,
    output: OutputDataset,
    attrs: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Persist an output accumulator into an open HDF5 file.

    Args:
        root: Open, writable h5py.File handle
        output: Accumulated output objects
        attrs: Root attributes (version, config hash, ...)

    Returns:
        Number of objects written
    """
    for key, value in (attrs or {}).items():
        root.attrs[key] = value

    for folder in sorted(output.folders):
        write_folder(root, folder, output.folder_attrs.get(folder))

    count = 0
    for path, obj in output.iter_paths():
        folder, _, _ = path.rpartition("/")
        parent = root[folder] if folder else root
        write_object(parent, obj)
        count += 1

    logger.info(f"Wrote {count} objects in {len(output.folders)} folders to {root.filename}")
    return count


# =============================================================================
# Object-level read
# =============================================================================

def read_object(group: h5py.Group, name: Optional[str] = None):
    """
    Read one object group.

    Args:
        group: Object group with a "class" attribute
        name: Object name (default: last component of the group path)

    Returns:
        PointSeries or Distribution

    Raises:
        ValidationError: If the class is unknown or arrays are missing
    """
    class_name = _decode(group.attrs.get("class"))
    name = name or group.name.rsplit("/", 1)[-1]

    try:
        if class_name == POINT_SERIES_CLASS:
            return PointSeries(
                name=name,
                class_name=class_name,
                **{key: group[key][()] for key in PointSeries.ARRAY_FIELDS},
            )
        if class_name in HISTOGRAM_CLASSES:
            return Distribution(
                name=name,
                edges=group["edges"][()],
                values=group["values"][()],
                errors=group["errors"][()],
                class_name=class_name,
            )
    except KeyError as e:
        raise ValidationError(
            f"Object '{group.name}' of class {class_name} is missing data: {e}",
            entity=group.name,
        ) from e

    raise ValidationError(
        f"Object '{group.name}' has unsupported class {class_name!r}",
        entity=group.name,
        field="class",
    )


def read_table_group(group: h5py.Group, number: int) -> Table:
    """
    Read the recognised objects of one table directory.

    Objects of other classes are skipped.
    """
    table = Table(number=number, key=group.name.lstrip("/"))
    for key, child in group.items():
        if not isinstance(child, h5py.Group):
            logger.debug(f"Skipping non-group entry '{child.name}'")
            continue
        class_name = _decode(child.attrs.get("class"))
        if class_name == POINT_SERIES_CLASS:
            table.series[key] = read_object(child, key)
        elif class_name in HISTOGRAM_CLASSES:
            table.histograms[key] = read_object(child, key)
        else:
            logger.debug(f"Skipping '{child.name}' of class {class_name!r}")
    return table


def read_dataset_hdf5(
    hdf5_path: Union[str, Path],
    name: str,
    n_tables: int,
    table_key_template: str = "Table {number}",
) -> Dataset:
    """
    Load tables 1..n_tables of an HDF5 table mirror.

    Tables that are absent are left out; the transform reports them as
    missing when it reaches them.

    Args:
        hdf5_path: Path to the input file
        name: Dataset name (for messages)
        n_tables: Number of tables to look for
        table_key_template: Group name of a table, formatted with number

    Returns:
        Dataset
    """
    hdf5_path = Path(hdf5_path)
    logger.info(f"Loading HDF5 dataset '{name}': {hdf5_path}")

    dataset = Dataset(name=name, source_path=str(hdf5_path))
    with open_dataset_hdf5(hdf5_path) as root:
        for number in range(1, n_tables + 1):
            key = table_key_template.format(number=number)
            if key not in root:
                logger.debug(f"Table '{key}' not present in {hdf5_path}")
                continue
            dataset.tables[number] = read_table_group(root[key], number)

    logger.info(f"Loaded {len(dataset.tables)} tables from {hdf5_path.name}")
    return dataset


def read_output_hdf5(hdf5_path: Union[str, Path]) -> OutputDataset:
    """
    Read a reformatted output file back into an OutputDataset.

    Args:
        hdf5_path: Path to an output file written by write_output

    Returns:
        OutputDataset with the same objects and folders
    """
    output = OutputDataset()
    with open_dataset_hdf5(hdf5_path) as root:
        for key, child in root.items():
            class_name = _decode(child.attrs.get("class"))
            if class_name == FOLDER_CLASS:
                attrs = {k: _decode(v) for k, v in child.attrs.items() if k != "class"}
                output.create_folder(key, attrs=attrs)
                for sub_key, sub in child.items():
                    output.add_to_folder(key, read_object(sub, sub_key))
            else:
                output.add(read_object(child, key))
    return output
