"""
Input validation utilities for the lhcdata reformatter.
"""

import re
from pathlib import Path
from typing import Optional, Union

from lhcdata.utils.exceptions import ConfigurationError, NamingViolationError


SUPPORTED_INPUT_SUFFIXES = (".h5", ".hdf5", ".root")

# Object names become HDF5 link names: no path separators, no dots-only names
OBJECT_NAME_PATTERN = re.compile(r'^(?!\.+$)[^/\x00]+$')


def validate_input_path(
    path: Union[str, Path],
    base_dir: Optional[Path] = None,
) -> Path:
    """
    Resolve and validate an input dataset path.

    Args:
        path: Path to the dataset file (absolute, or relative to base_dir)
        base_dir: Directory relative paths are resolved against
            (default: current working directory)

    Returns:
        Resolved Path object

    Raises:
        ConfigurationError: If the extension is not a supported container
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.is_absolute() and base_dir is not None:
        path = Path(base_dir) / path

    if path.suffix.lower() not in SUPPORTED_INPUT_SUFFIXES:
        raise ConfigurationError(
            f"Unsupported input file type '{path.suffix}' for {path}. "
            f"Expected one of: {', '.join(SUPPORTED_INPUT_SUFFIXES)}"
        )

    if not path.exists():
        raise FileNotFoundError(f"Input dataset not found: {path}")

    return path


def validate_object_name(name: str, folder: Optional[str] = None) -> str:
    """
    Check that a derived name can be stored as an object name.

    Args:
        name: Output object name
        folder: Folder the object goes into (for the error message)

    Returns:
        The unchanged name

    Raises:
        NamingViolationError: If name is empty or contains a path separator
    """
    if not OBJECT_NAME_PATTERN.match(name or ""):
        where = f" in folder '{folder}'" if folder else ""
        raise NamingViolationError(
            f"Invalid output object name '{name}'{where}: "
            "names must be non-empty and must not contain '/'",
            key=name,
        )
    return name
