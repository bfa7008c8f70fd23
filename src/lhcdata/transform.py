"""
Table transform: renaming and uncertainty derivation.

For each table the combined stat+syst point series are renamed, a stat-only
copy is derived from the table's statistical-error histogram, and every
systematic histogram is renamed into the dataset's systematics folder.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from lhcdata.model import (
    Dataset,
    Distribution,
    OutOfRangePolicy,
    OutputDataset,
    PointSeries,
    Table,
)
from lhcdata.naming import NamingScheme
from lhcdata.utils.exceptions import ValidationError


logger = logging.getLogger(__name__)


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class TableOutput:
    """Objects derived from one table, in emission order."""

    number: int
    title: str
    series: List[PointSeries] = field(default_factory=list)
    histograms: List[Distribution] = field(default_factory=list)
    systematics: List[Distribution] = field(default_factory=list)


@dataclass
class DatasetResult:
    """Summary of one transformed dataset."""

    name: str
    source_path: str
    systematics_folder: str
    tables_processed: int = 0
    series_written: List[str] = field(default_factory=list)
    histograms_written: List[str] = field(default_factory=list)
    systematics_written: List[str] = field(default_factory=list)


# =============================================================================
# Uncertainty derivation
# =============================================================================

def stat_only_series(
    series: PointSeries,
    stat: Distribution,
    name: str,
    out_of_range: OutOfRangePolicy = "reject",
) -> PointSeries:
    """
    Derive the stat-only variant of a point series.

    x errors become half the width of the bin containing the point, y errors
    become that bin's error (symmetric). Points and their count are unchanged.

    Args:
        series: Combined-uncertainty point series
        stat: Histogram holding the statistical errors
        name: Name of the new series
        out_of_range: Policy for points outside the histogram domain

    Returns:
        New PointSeries
    """
    bins = stat.find_bins(series.x, out_of_range=out_of_range)
    ex = 0.5 * stat.bin_widths[bins]
    ey = stat.errors[bins]
    return series.with_errors(name, exl=ex, exh=ex, eyl=ey, eyh=ey)


def syst_only_series(
    series: PointSeries,
    stat_series: PointSeries,
    name: str,
) -> PointSeries:
    """
    Derive the syst-only variant from the combined and stat-only series.

    y errors are the quadrature difference of total and statistical errors,
    floored at zero; x errors are taken from the stat-only series.
    """
    eyl = np.sqrt(np.clip(series.eyl ** 2 - stat_series.eyl ** 2, 0.0, None))
    eyh = np.sqrt(np.clip(series.eyh ** 2 - stat_series.eyh ** 2, 0.0, None))
    return series.with_errors(
        name,
        exl=stat_series.exl,
        exh=stat_series.exh,
        eyl=eyl,
        eyh=eyh,
    )


def stat_only_histogram(
    series: PointSeries,
    stat: Distribution,
    name: str,
    out_of_range: OutOfRangePolicy = "reject",
) -> Distribution:
    """
    Fill the series' central values into the stat histogram's binning.

    Bins without a point are left at zero content and zero error.

    Raises:
        ValidationError: If two points fall into the same bin
    """
    bins = stat.find_bins(series.x, out_of_range=out_of_range)
    unique, counts = np.unique(bins, return_counts=True)
    if np.any(counts > 1):
        raise ValidationError(
            f"Point series '{series.name}' has several points in bin(s) "
            f"{unique[counts > 1].tolist()} of '{stat.name}'",
            entity=series.name,
            field="x",
        )

    values = np.zeros(stat.n_bins)
    errors = np.zeros(stat.n_bins)
    values[bins] = series.y
    errors[bins] = stat.errors[bins]
    return Distribution(
        name=name,
        edges=stat.edges,
        values=values,
        errors=errors,
        class_name="TH1D",
    )


# =============================================================================
# Table / dataset transform
# =============================================================================

def transform_table(
    table: Table,
    title: str,
    scheme: NamingScheme,
    stat_key: str,
    out_of_range: OutOfRangePolicy = "reject",
    include_syst_only: bool = False,
    include_stat_histogram: bool = False,
    dataset_name: Optional[str] = None,
) -> TableOutput:
    """
    Transform the contents of one table.

    Args:
        table: Input table
        title: Title computed for this table
        scheme: Naming scheme of the dataset
        stat_key: Key of the statistical-error histogram in the table
        out_of_range: Policy for points outside the stat histogram's domain
        include_syst_only: Also derive "{title}_{index}_syst" series
        include_stat_histogram: Also derive "{title}_{index}_hstat" histograms
        dataset_name: Used in error messages

    Returns:
        TableOutput with renamed and derived objects

    Raises:
        MissingInputError: If the stat histogram is absent
        NamingViolationError: If a key does not follow the scheme
        OutOfRangeLookupError: If a lookup fails under "reject"
    """
    stat = table.histogram(stat_key, dataset=dataset_name)
    output = TableOutput(number=table.number, title=title)

    for key, series in table.series.items():
        index = scheme.parse_series_key(key)

        combined = series.renamed(scheme.series_name(title, index))
        stat_series = stat_only_series(
            series, stat, scheme.stat_series_name(title, index), out_of_range
        )
        output.series.extend([combined, stat_series])

        if include_syst_only:
            output.series.append(
                syst_only_series(series, stat_series, scheme.syst_series_name(title, index))
            )
        if include_stat_histogram:
            output.histograms.append(
                stat_only_histogram(
                    series, stat, scheme.stat_histogram_name(title, index), out_of_range
                )
            )

    for key, hist in table.histograms.items():
        index, source = scheme.parse_systematic_key(key)
        output.systematics.append(hist.renamed(scheme.systematic_name(title, index, source)))

    logger.debug(
        f"{table.key} -> '{title}': {len(output.series)} series, "
        f"{len(output.histograms)} histograms, {len(output.systematics)} systematics"
    )
    return output


def transform_dataset(
    dataset: Dataset,
    scheme: NamingScheme,
    output: OutputDataset,
    systematics_folder: str,
    *,
    n_tables: int = 12,
    stat_key: str = "Hist1D_y1_e1",
    out_of_range: OutOfRangePolicy = "reject",
    include_syst_only: bool = False,
    include_stat_histogram: bool = False,
    folder_attrs: Optional[dict] = None,
    progress=None,
) -> DatasetResult:
    """
    Transform tables 1..n_tables of a dataset into an output accumulator.

    The systematics folder is created once before any table is processed.

    Args:
        dataset: Input dataset
        scheme: Naming scheme of the dataset
        output: Destination accumulator
        systematics_folder: Folder for renamed systematic histograms
        n_tables: Number of tables to process
        stat_key: Key of the statistical-error histogram in each table
        out_of_range: Policy for points outside the stat histogram's domain
        include_syst_only: Also derive syst-only series
        include_stat_histogram: Also derive stat-only histograms
        folder_attrs: Attributes stored on the systematics folder
        progress: Optional callable wrapping the table index iterable (e.g. tqdm)

    Returns:
        DatasetResult listing every name written

    Raises:
        MissingInputError: If a table or its stat histogram is absent
        OutputCollisionError: If a derived name is already in the output
    """
    output.create_folder(systematics_folder, attrs=folder_attrs)
    result = DatasetResult(
        name=dataset.name,
        source_path=dataset.source_path,
        systematics_folder=systematics_folder,
    )

    indices = range(n_tables)
    if progress is not None:
        indices = progress(indices)

    for i in indices:
        title = scheme.title(i)
        table = dataset.table(i + 1)
        table_output = transform_table(
            table,
            title,
            scheme,
            stat_key,
            out_of_range=out_of_range,
            include_syst_only=include_syst_only,
            include_stat_histogram=include_stat_histogram,
            dataset_name=dataset.name,
        )

        for series in table_output.series:
            output.add(series)
            result.series_written.append(series.name)
        for hist in table_output.histograms:
            output.add(hist)
            result.histograms_written.append(hist.name)
        for hist in table_output.systematics:
            output.add_to_folder(systematics_folder, hist)
            result.systematics_written.append(f"{systematics_folder}/{hist.name}")

        result.tables_processed += 1

    logger.info(
        f"Dataset '{dataset.name}': {result.tables_processed} tables, "
        f"{len(result.series_written)} series, "
        f"{len(result.systematics_written)} systematics"
    )
    return result
