"""
I/O module for lhcdata.

Handles:
    - HDF5 container read/write (input table mirrors and output)
    - HEPData ROOT export reading via uproot (optional)
    - Suffix-based input dispatch
"""

from lhcdata.io.hdf5_store import (
    create_output_hdf5,
    open_dataset_hdf5,
    write_point_series,
    write_distribution,
    write_folder,
    write_output,
    read_object,
    read_dataset_hdf5,
    read_output_hdf5,
)
from lhcdata.io.loader import load_dataset
from lhcdata.io.root_source import read_dataset_root

__all__ = [
    # HDF5 store operations
    "create_output_hdf5",
    "open_dataset_hdf5",
    "write_point_series",
    "write_distribution",
    "write_folder",
    "write_output",
    "read_object",
    "read_dataset_hdf5",
    "read_output_hdf5",
    # Input loading
    "load_dataset",
    "read_dataset_root",
]
