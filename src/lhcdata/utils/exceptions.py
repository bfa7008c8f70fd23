"""
Exception hierarchy for the lhcdata reformatter.

All custom exceptions inherit from LhcDataError. Every one of them is
fatal for a run: the runner does not retry or write partial output.
"""

from typing import Optional, Sequence


class LhcDataError(Exception):
    """
    Base exception for all lhcdata errors.

    All custom exceptions MUST inherit from this class.
    """
    pass


class ConfigurationError(LhcDataError):
    """
    Invalid configuration or parameters.

    Raised when:
    - Config file not found or not valid JSON
    - Title template or key pattern cannot be used
    - Table index outside the range covered by the title templates
    - Input path has an unsupported extension
    """
    pass


class DataLoadError(LhcDataError):
    """
    Error loading an input dataset file.

    Raised when:
    - The HDF5/ROOT file cannot be opened or is corrupt
    - An object in the file cannot be decoded
    - uproot is not installed for a .root input
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.file_path = file_path
        self.original_error = original_error


class MissingInputError(LhcDataError):
    """
    Expected input object not found.

    Raised when:
    - A table directory is missing from the dataset
    - The statistical-error lookup histogram is missing from a table
    """

    def __init__(
        self,
        message: str,
        missing_input: Optional[str] = None,
        dataset: Optional[str] = None,
    ):
        super().__init__(message)
        self.missing_input = missing_input
        self.dataset = dataset


class NamingViolationError(LhcDataError):
    """
    An object key does not follow the dataset naming schema.

    Raised instead of reading characters past the end of a name.
    """

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        pattern: Optional[str] = None,
    ):
        super().__init__(message)
        self.key = key
        self.pattern = pattern


class OutOfRangeLookupError(LhcDataError):
    """
    Point x-coordinate lies outside the lookup histogram's domain.

    Raised only under the "reject" out-of-range policy.
    """

    def __init__(
        self,
        message: str,
        distribution: Optional[str] = None,
        x_values: Optional[Sequence[float]] = None,
    ):
        super().__init__(message)
        self.distribution = distribution
        self.x_values = list(x_values) if x_values is not None else []


class OutputCollisionError(LhcDataError):
    """
    Two objects would be written under the same output name.
    """

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        folder: Optional[str] = None,
    ):
        super().__init__(message)
        self.name = name
        self.folder = folder


class UnknownFolderError(LhcDataError):
    """
    Histogram added to an output folder that was never created.
    """

    def __init__(self, message: str, folder: Optional[str] = None):
        super().__init__(message)
        self.folder = folder


class ValidationError(LhcDataError):
    """
    Data validation failed.

    Raised when:
    - Point-series arrays have different lengths
    - Histogram edges are not strictly increasing or do not match the bins
    - Two points of a series fall into the same histogram bin
    """

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.entity = entity
        self.field = field
