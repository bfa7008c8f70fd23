"""
In-memory data model for measurement tables.

Objects read from a container are materialized into these types, transformed
into new objects (never mutated in place), and collected in an OutputDataset
that is persisted once at the end of a run.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Literal, Optional, Tuple

import numpy as np

from lhcdata.utils.exceptions import (
    MissingInputError,
    OutOfRangeLookupError,
    OutputCollisionError,
    UnknownFolderError,
    ValidationError,
)
from lhcdata.utils.logging import LoggerMixin
from lhcdata.utils.validation import validate_object_name


logger = logging.getLogger(__name__)


# =============================================================================
# Type tags
# =============================================================================

POINT_SERIES_CLASS = "TGraphAsymmErrors"
HISTOGRAM_CLASSES = ("TH1F", "TH1D")
FOLDER_CLASS = "TDirectory"

OutOfRangePolicy = Literal["clamp", "reject"]


def _as_float_array(values) -> np.ndarray:
    return np.array(values, dtype=np.float64, copy=True).reshape(-1)


# =============================================================================
# Point series
# =============================================================================

@dataclass(eq=False)
class PointSeries:
    """
    Ordered points with asymmetric x and y uncertainties.

    Attributes:
        name: Object name
        x, y: Central values
        exl, exh: Lower/upper x uncertainty
        eyl, eyh: Lower/upper y uncertainty
        class_name: Type tag written to the container
    """

    name: str
    x: np.ndarray
    y: np.ndarray
    exl: np.ndarray
    exh: np.ndarray
    eyl: np.ndarray
    eyh: np.ndarray
    class_name: str = POINT_SERIES_CLASS

    ARRAY_FIELDS = ("x", "y", "exl", "exh", "eyl", "eyh")

    def __post_init__(self):
        for name in self.ARRAY_FIELDS:
            setattr(self, name, _as_float_array(getattr(self, name)))

        n = len(self.x)
        for name in self.ARRAY_FIELDS[1:]:
            if len(getattr(self, name)) != n:
                raise ValidationError(
                    f"Point series '{self.name}': '{name}' has "
                    f"{len(getattr(self, name))} entries, expected {n}",
                    entity=self.name,
                    field=name,
                )

    @property
    def n_points(self) -> int:
        return len(self.x)

    def arrays(self) -> Dict[str, np.ndarray]:
        """Return the point arrays keyed by field name."""
        return {name: getattr(self, name) for name in self.ARRAY_FIELDS}

    def renamed(self, name: str) -> "PointSeries":
        """Deep copy of this series under a new name."""
        return PointSeries(name=name, class_name=self.class_name, **self.arrays())

    def with_errors(
        self,
        name: str,
        exl: np.ndarray,
        exh: np.ndarray,
        eyl: np.ndarray,
        eyh: np.ndarray,
    ) -> "PointSeries":
        """Copy of this series with the same points and replaced errors."""
        return PointSeries(
            name=name,
            x=self.x,
            y=self.y,
            exl=exl,
            exh=exh,
            eyl=eyl,
            eyh=eyh,
            class_name=self.class_name,
        )


# =============================================================================
# Distribution (1-D histogram)
# =============================================================================

@dataclass(eq=False)
class Distribution:
    """
    Binned 1-D histogram.

    Bins are 0-based; bin b covers [edges[b], edges[b+1]).
    Under/overflow contents are not stored.

    Attributes:
        name: Object name
        edges: Bin edges, length n_bins + 1, strictly increasing
        values: Bin contents
        errors: Bin errors
        class_name: Type tag ("TH1F" or "TH1D")
    """

    name: str
    edges: np.ndarray
    values: np.ndarray
    errors: np.ndarray
    class_name: str = "TH1D"

    def __post_init__(self):
        self.edges = _as_float_array(self.edges)
        self.values = _as_float_array(self.values)
        self.errors = _as_float_array(self.errors)

        if len(self.edges) < 2:
            raise ValidationError(
                f"Histogram '{self.name}' needs at least two bin edges",
                entity=self.name,
                field="edges",
            )
        if not np.all(np.diff(self.edges) > 0):
            raise ValidationError(
                f"Histogram '{self.name}' has non-increasing bin edges",
                entity=self.name,
                field="edges",
            )
        for name in ("values", "errors"):
            if len(getattr(self, name)) != self.n_bins:
                raise ValidationError(
                    f"Histogram '{self.name}': '{name}' has "
                    f"{len(getattr(self, name))} entries, expected {self.n_bins}",
                    entity=self.name,
                    field=name,
                )

    @property
    def n_bins(self) -> int:
        return len(self.edges) - 1

    @property
    def bin_widths(self) -> np.ndarray:
        return np.diff(self.edges)

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[:-1] + self.edges[1:])

    def arrays(self) -> Dict[str, np.ndarray]:
        return {"edges": self.edges, "values": self.values, "errors": self.errors}

    def renamed(self, name: str) -> "Distribution":
        """Deep copy of this histogram under a new name."""
        return Distribution(name=name, class_name=self.class_name, **self.arrays())

    def find_bins(
        self,
        x: np.ndarray,
        out_of_range: OutOfRangePolicy = "reject",
    ) -> np.ndarray:
        """
        Find the bin containing each x value.

        Args:
            x: Coordinates to look up
            out_of_range: "reject" raises for values outside [edges[0], edges[-1]),
                "clamp" maps them to the nearest boundary bin

        Returns:
            Array of 0-based bin indices (same length as x)

        Raises:
            OutOfRangeLookupError: If a value is outside the domain (or not
                finite) and out_of_range="reject"
        """
        x = _as_float_array(x)
        bins = np.searchsorted(self.edges, x, side="right") - 1
        outside = (bins < 0) | (bins >= self.n_bins) | ~np.isfinite(x)

        if np.any(outside):
            bad = x[outside]
            if out_of_range == "reject":
                raise OutOfRangeLookupError(
                    f"{len(bad)} value(s) outside the domain "
                    f"[{self.edges[0]}, {self.edges[-1]}) of histogram '{self.name}': "
                    f"{bad.tolist()}",
                    distribution=self.name,
                    x_values=bad.tolist(),
                )
            if out_of_range != "clamp":
                raise ValueError(f"Unknown out-of-range policy: {out_of_range}")
            logger.warning(
                f"Clamping {len(bad)} value(s) outside the domain of "
                f"'{self.name}' to the boundary bins: {bad.tolist()}"
            )
            bins = np.clip(bins, 0, self.n_bins - 1)

        return bins


# =============================================================================
# Input dataset
# =============================================================================

@dataclass
class Table:
    """
    Contents of one table directory, keyed by object key in container order.
    """

    number: int
    key: str
    series: Dict[str, PointSeries] = field(default_factory=dict)
    histograms: Dict[str, Distribution] = field(default_factory=dict)

    def histogram(self, key: str, dataset: Optional[str] = None) -> Distribution:
        """
        Get a histogram by key.

        Raises:
            MissingInputError: If the table has no histogram with this key
        """
        try:
            return self.histograms[key]
        except KeyError:
            raise MissingInputError(
                f"Histogram '{key}' not found in '{self.key}'"
                + (f" of dataset '{dataset}'" if dataset else ""),
                missing_input=f"{self.key}/{key}",
                dataset=dataset,
            ) from None


@dataclass
class Dataset:
    """
    A measurement file: tables keyed by their 1-based table number.
    """

    name: str
    source_path: str
    tables: Dict[int, Table] = field(default_factory=dict)

    def table(self, number: int) -> Table:
        """
        Get a table by its 1-based number.

        Raises:
            MissingInputError: If the table is absent
        """
        try:
            return self.tables[number]
        except KeyError:
            raise MissingInputError(
                f"Table {number} not found in dataset '{self.name}' ({self.source_path})",
                missing_input=f"table {number}",
                dataset=self.name,
            ) from None


# =============================================================================
# Output accumulator
# =============================================================================

class OutputDataset(LoggerMixin):
    """
    Accumulates objects for the output file.

    Top-level objects (point series, histograms) and folder names share one
    namespace; each folder has its own namespace. Adding a name twice raises
    OutputCollisionError instead of overwriting.
    """

    def __init__(self):
        self._objects: Dict[str, object] = {}
        self._folders: Dict[str, Dict[str, Distribution]] = {}
        self.folder_attrs: Dict[str, Dict[str, str]] = {}

    def _check_top_level(self, name: str) -> None:
        if name in self._objects or name in self._folders:
            raise OutputCollisionError(
                f"Output name '{name}' is already used at the top level",
                name=name,
            )

    def add(self, obj) -> None:
        """Add a PointSeries or Distribution at the top level."""
        validate_object_name(obj.name)
        self._check_top_level(obj.name)
        self.logger.debug(f"Adding {obj.class_name} '{obj.name}'")
        self._objects[obj.name] = obj

    def create_folder(self, folder: str, attrs: Optional[Dict[str, str]] = None) -> None:
        """
        Create a folder for histograms.

        Raises:
            OutputCollisionError: If the name is already used at the top level
        """
        validate_object_name(folder)
        self._check_top_level(folder)
        self._folders[folder] = {}
        self.folder_attrs[folder] = dict(attrs or {})

    def add_to_folder(self, folder: str, hist: Distribution) -> None:
        """
        Add a histogram to an existing folder.

        Raises:
            UnknownFolderError: If the folder has not been created
            OutputCollisionError: If the folder already holds this name
        """
        if folder not in self._folders:
            raise UnknownFolderError(
                f"Output folder '{folder}' has not been created", folder=folder
            )
        validate_object_name(hist.name, folder=folder)
        contents = self._folders[folder]
        if hist.name in contents:
            raise OutputCollisionError(
                f"Output name '{hist.name}' is already used in folder '{folder}'",
                name=hist.name,
                folder=folder,
            )
        self.logger.debug(f"Adding {hist.class_name} '{folder}/{hist.name}'")
        contents[hist.name] = hist

    @property
    def objects(self) -> Dict[str, object]:
        return dict(self._objects)

    @property
    def folders(self) -> Dict[str, Dict[str, Distribution]]:
        return {name: dict(contents) for name, contents in self._folders.items()}

    def __contains__(self, name: str) -> bool:
        if "/" in name:
            folder, _, obj_name = name.partition("/")
            return obj_name in self._folders.get(folder, {})
        return name in self._objects or name in self._folders

    def __len__(self) -> int:
        return len(self._objects) + sum(len(c) for c in self._folders.values())

    def iter_paths(self) -> Iterator[Tuple[str, object]]:
        """Yield (path, object) for every stored object, sorted by path."""
        items: List[Tuple[str, object]] = list(self._objects.items())
        for folder, contents in self._folders.items():
            items.extend((f"{folder}/{name}", obj) for name, obj in contents.items())
        return iter(sorted(items, key=lambda item: item[0]))
