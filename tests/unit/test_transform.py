"""
Unit tests for the table transform.
"""

import numpy as np
import pytest

from lhcdata.model import Dataset, OutputDataset, PointSeries
from lhcdata.transform import (
    stat_only_histogram,
    stat_only_series,
    syst_only_series,
    transform_dataset,
    transform_table,
)
from lhcdata.utils.exceptions import (
    MissingInputError,
    NamingViolationError,
    OutOfRangeLookupError,
    OutputCollisionError,
    ValidationError,
)
from tests.fixtures.synthetic_tables import (
    CENTERS,
    CENTRAL,
    HALF_WIDTHS,
    STAT_FRACTION,
    TOTAL_HIGH_FRACTION,
    TOTAL_LOW_FRACTION,
    make_series,
    make_stat_histogram,
    make_table,
)


STAT_KEY = "Hist1D_y1_e1"


class TestStatOnlySeries:
    """Tests for stat_only_series()."""

    def test_point_at_bin_center_gets_bin_values(self):
        series = make_series()
        stat = make_stat_histogram()

        gs = stat_only_series(series, stat, "g_stat")

        np.testing.assert_array_equal(gs.exl, HALF_WIDTHS)
        np.testing.assert_array_equal(gs.exh, HALF_WIDTHS)
        np.testing.assert_array_equal(gs.eyl, stat.errors)
        np.testing.assert_array_equal(gs.eyh, stat.errors)

    def test_points_unchanged(self):
        series = make_series()
        gs = stat_only_series(series, make_stat_histogram(), "g_stat")

        assert gs.name == "g_stat"
        assert gs.n_points == series.n_points
        np.testing.assert_array_equal(gs.x, series.x)
        np.testing.assert_array_equal(gs.y, series.y)

    def test_source_series_not_mutated(self):
        series = make_series()
        stat_only_series(series, make_stat_histogram(), "g_stat")

        assert series.name == "Graph1D_y1"
        np.testing.assert_array_equal(series.eyl, TOTAL_LOW_FRACTION * CENTRAL)

    def test_off_center_point_uses_containing_bin(self):
        series = PointSeries("g", x=[151.0], y=[1.0], exl=[0], exh=[0], eyl=[0], eyh=[0])
        stat = make_stat_histogram()

        gs = stat_only_series(series, stat, "g_stat")

        assert gs.exl[0] == 25.0
        assert gs.eyl[0] == stat.errors[1]

    def test_out_of_range_rejected_by_default(self):
        series = PointSeries("g", x=[600.0], y=[1.0], exl=[0], exh=[0], eyl=[0], eyh=[0])
        with pytest.raises(OutOfRangeLookupError):
            stat_only_series(series, make_stat_histogram(), "g_stat")

    def test_out_of_range_clamped_on_request(self):
        series = PointSeries("g", x=[600.0], y=[1.0], exl=[0], exh=[0], eyl=[0], eyh=[0])
        stat = make_stat_histogram()

        gs = stat_only_series(series, stat, "g_stat", out_of_range="clamp")

        assert gs.exl[0] == 100.0
        assert gs.eyl[0] == stat.errors[-1]

    def test_underflow_clamped_to_first_bin(self):
        series = PointSeries("g", x=[50.0], y=[1.0], exl=[0], exh=[0], eyl=[0], eyh=[0])
        stat = make_stat_histogram()

        gs = stat_only_series(series, stat, "g_stat", out_of_range="clamp")

        # width and error both from the first in-range bin, never the underflow bin
        assert gs.exl[0] == 25.0
        assert gs.eyh[0] == stat.errors[0]
        assert gs.eyh[0] > 0.0


class TestSystOnlySeries:
    """Tests for syst_only_series()."""

    def test_quadrature_difference(self):
        series = make_series()
        gs = stat_only_series(series, make_stat_histogram(), "g_stat")

        syst = syst_only_series(series, gs, "g_syst")

        expected_low = np.sqrt(TOTAL_LOW_FRACTION ** 2 - STAT_FRACTION ** 2) * CENTRAL
        expected_high = np.sqrt(TOTAL_HIGH_FRACTION ** 2 - STAT_FRACTION ** 2) * CENTRAL
        np.testing.assert_allclose(syst.eyl, expected_low)
        np.testing.assert_allclose(syst.eyh, expected_high)
        np.testing.assert_array_equal(syst.exl, HALF_WIDTHS)

    def test_stat_larger_than_total_floors_at_zero(self):
        series = PointSeries("g", x=[125.0], y=[1.0], exl=[0], exh=[0], eyl=[0.1], eyh=[0.1])
        stat = PointSeries("s", x=[125.0], y=[1.0], exl=[0], exh=[0], eyl=[0.2], eyh=[0.2])

        syst = syst_only_series(series, stat, "g_syst")

        assert syst.eyl[0] == 0.0


class TestStatOnlyHistogram:
    """Tests for stat_only_histogram()."""

    def test_fills_central_values(self):
        stat = make_stat_histogram()
        hist = stat_only_histogram(make_series(), stat, "h")

        np.testing.assert_array_equal(hist.edges, stat.edges)
        np.testing.assert_array_equal(hist.values, CENTRAL)
        np.testing.assert_array_equal(hist.errors, stat.errors)
        assert hist.class_name == "TH1D"

    def test_two_points_in_one_bin_raises(self):
        series = PointSeries(
            "g", x=[110.0, 120.0], y=[1, 2], exl=[0, 0], exh=[0, 0], eyl=[0, 0], eyh=[0, 0]
        )
        with pytest.raises(ValidationError, match="several points"):
            stat_only_histogram(series, make_stat_histogram(), "h")


class TestTransformTable:
    """Tests for transform_table()."""

    def test_concrete_names(self, atlas_scheme):
        table = make_table(1, indices=("1",))
        title = atlas_scheme.title(0)

        out = transform_table(table, title, atlas_scheme, STAT_KEY)

        assert [g.name for g in out.series] == [
            "atlas07_r04_y00-05_1",
            "atlas07_r04_y00-05_1_stat",
        ]
        assert [h.name for h in out.systematics] == [
            "r04_y00-05_1_sys",
            "r04_y00-05_1_sys_1",
            "r04_y00-05_1_sys_2plus",
            "r04_y00-05_1_sys_2minus",
        ]

    def test_combined_series_keeps_errors(self, atlas_scheme):
        table = make_table(1)
        out = transform_table(table, atlas_scheme.title(0), atlas_scheme, STAT_KEY)

        combined = out.series[0]
        np.testing.assert_array_equal(combined.eyl, table.series["Graph1D_y1"].eyl)
        np.testing.assert_array_equal(combined.exl, HALF_WIDTHS)

    def test_one_pair_per_series_index(self, atlas_scheme):
        table = make_table(2, indices=("1", "2", "3"))
        out = transform_table(table, atlas_scheme.title(1), atlas_scheme, STAT_KEY)

        names = [g.name for g in out.series]
        for k in ("1", "2", "3"):
            assert names.count(f"atlas07_r04_y05-10_{k}") == 1
            assert names.count(f"atlas07_r04_y05-10_{k}_stat") == 1

    def test_optional_outputs(self, atlas_scheme):
        out = transform_table(
            make_table(1),
            atlas_scheme.title(0),
            atlas_scheme,
            STAT_KEY,
            include_syst_only=True,
            include_stat_histogram=True,
        )

        assert [g.name for g in out.series][-1] == "atlas07_r04_y00-05_1_syst"
        assert [h.name for h in out.histograms] == ["atlas07_r04_y00-05_1_hstat"]

    def test_missing_stat_histogram_raises(self, atlas_scheme):
        table = make_table(1, include_stat=False)
        with pytest.raises(MissingInputError):
            transform_table(table, atlas_scheme.title(0), atlas_scheme, STAT_KEY)

    def test_malformed_series_key_raises(self, atlas_scheme):
        table = make_table(1)
        table.series["Graph1D"] = make_series("Graph1D")
        with pytest.raises(NamingViolationError) as exc_info:
            transform_table(table, atlas_scheme.title(0), atlas_scheme, STAT_KEY)
        assert exc_info.value.key == "Graph1D"

    def test_input_table_untouched(self, atlas_scheme):
        table = make_table(1)
        transform_table(table, atlas_scheme.title(0), atlas_scheme, STAT_KEY)

        assert list(table.series) == ["Graph1D_y1"]
        assert table.series["Graph1D_y1"].name == "Graph1D_y1"
        assert table.histograms[STAT_KEY].name == STAT_KEY


class TestTransformDataset:
    """Tests for transform_dataset()."""

    def _dataset(self, n_tables=12, indices=("1",)):
        dataset = Dataset(name="atlas07", source_path="atlas07.h5")
        for number in range(1, n_tables + 1):
            dataset.tables[number] = make_table(number, indices)
        return dataset

    def test_all_tables_processed(self, atlas_scheme):
        output = OutputDataset()
        result = transform_dataset(self._dataset(), atlas_scheme, output, "atlas07_sys")

        assert result.tables_processed == 12
        assert len(result.series_written) == 24
        assert len(result.systematics_written) == 48
        assert "atlas07_r06_y25-30_1_stat" in output
        assert "atlas07_sys/r06_y25-30_1_sys_2minus" in output

    def test_stat_errors_scale_with_table(self, atlas_scheme):
        output = OutputDataset()
        transform_dataset(self._dataset(), atlas_scheme, output, "atlas07_sys")

        gs = output.objects["atlas07_r04_y10-15_1_stat"]
        np.testing.assert_allclose(gs.eyl, STAT_FRACTION * CENTRAL * 3)
        np.testing.assert_array_equal(gs.x, CENTERS)

    def test_missing_table_aborts(self, atlas_scheme):
        dataset = self._dataset()
        del dataset.tables[7]
        with pytest.raises(MissingInputError, match="Table 7"):
            transform_dataset(dataset, atlas_scheme, OutputDataset(), "atlas07_sys")

    def test_same_dataset_twice_collides(self, atlas_scheme):
        output = OutputDataset()
        transform_dataset(self._dataset(), atlas_scheme, output, "atlas07_sys")
        with pytest.raises(OutputCollisionError):
            transform_dataset(self._dataset(), atlas_scheme, output, "atlas07_sys_2")

    def test_progress_wrapper_is_used(self, atlas_scheme):
        seen = []

        def progress(iterable):
            for i in iterable:
                seen.append(i)
                yield i

        transform_dataset(
            self._dataset(n_tables=2), atlas_scheme, OutputDataset(), "sys",
            n_tables=2, progress=progress,
        )
        assert seen == [0, 1]
