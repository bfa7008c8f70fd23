"""
Pytest configuration and shared fixtures for lhcdata tests.

This module provides:
    - Naming schemes and dataset records for an ATLAS-like and a CMS-like dataset
    - Synthetic HDF5 table mirrors written to a temporary directory
"""

import pytest
import tempfile
from pathlib import Path

from lhcdata.naming import NamingScheme
from lhcdata.pipeline.config import DatasetConfig, ReformatConfig
from tests.fixtures.synthetic_tables import write_table_mirror


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def atlas_scheme():
    return NamingScheme(
        title_template_low="atlas07_r04_y{start:02d}-{end:02d}",
        title_template_high="atlas07_r06_y{start:02d}-{end:02d}",
        title_suffix_offset=8,
    )


@pytest.fixture
def cms_scheme():
    return NamingScheme(
        title_template_low="cms07_r05_y{start:02d}-{end:02d}",
        title_template_high="cms07_r07_y{start:02d}-{end:02d}",
        title_suffix_offset=6,
    )


@pytest.fixture
def mirror_dir(temp_dir):
    """Directory with atlas/ and cms/ HDF5 table mirrors."""
    (temp_dir / "atlas").mkdir()
    (temp_dir / "cms").mkdir()
    write_table_mirror(temp_dir / "atlas" / "atlas07.h5", indices=("1", "2"))
    write_table_mirror(temp_dir / "cms" / "cms07.h5", indices=("1",))
    return temp_dir


@pytest.fixture
def reformat_config(mirror_dir):
    """Run configuration over the synthetic ATLAS and CMS mirrors."""
    return ReformatConfig(
        output_path=mirror_dir / "lhcdata.h5",
        data_dir=mirror_dir,
        datasets=[
            DatasetConfig(
                name="atlas07",
                input_path="atlas/atlas07.h5",
                title_template_low="atlas07_r04_y{start:02d}-{end:02d}",
                title_template_high="atlas07_r06_y{start:02d}-{end:02d}",
                systematics_folder="atlas07_sys",
                title_suffix_offset=8,
            ),
            DatasetConfig(
                name="cms07",
                input_path="cms/cms07.h5",
                title_template_low="cms07_r05_y{start:02d}-{end:02d}",
                title_template_high="cms07_r07_y{start:02d}-{end:02d}",
                systematics_folder="cms07_sys",
                title_suffix_offset=6,
            ),
        ],
    )
