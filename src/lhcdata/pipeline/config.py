"""
Configuration loading and validation for lhcdata.

Uses Pydantic for schema validation. One DatasetConfig record per input
dataset; a ReformatConfig holds the list of records plus run options.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from lhcdata.naming import (
    DEFAULT_SERIES_PATTERN,
    DEFAULT_SYSTEMATIC_PATTERN,
    NamingScheme,
    check_title_template,
    compile_key_pattern,
)
from lhcdata.utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Configuration Models
# =============================================================================

class DatasetConfig(BaseModel):
    """Configuration for one input dataset."""

    name: str
    input_path: Path
    title_template_low: str
    title_template_high: str
    systematics_folder: str
    title_suffix_offset: int = Field(ge=0)
    description: Optional[str] = None
    table_key_template: str = "Table {number}"
    n_tables: int = Field(default=12, gt=0)
    tables_per_template: int = Field(default=6, gt=0)
    range_width: int = Field(default=5, gt=0)
    stat_histogram_key: str = "Hist1D_y1_e1"
    series_pattern: str = DEFAULT_SERIES_PATTERN
    systematic_pattern: str = DEFAULT_SYSTEMATIC_PATTERN

    @field_validator("title_template_low", "title_template_high")
    @classmethod
    def check_template(cls, v):
        """Templates must format with {start} and {end}."""
        return check_title_template(v)

    @field_validator("series_pattern")
    @classmethod
    def check_series_pattern(cls, v):
        compile_key_pattern(v)
        return v

    @field_validator("systematic_pattern")
    @classmethod
    def check_systematic_pattern(cls, v):
        compile_key_pattern(v, with_source=True)
        return v

    @field_validator("table_key_template")
    @classmethod
    def check_table_key_template(cls, v):
        try:
            v.format(number=1)
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(f"Invalid table_key_template {v!r}: {e!r}")
        return v

    @model_validator(mode="after")
    def check_table_count(self):
        """Every table must be covered by one of the two title templates."""
        if self.n_tables > 2 * self.tables_per_template:
            raise ConfigurationError(
                f"Dataset '{self.name}': n_tables={self.n_tables} exceeds the "
                f"{2 * self.tables_per_template} tables covered by the title templates"
            )
        return self

    @property
    def scheme(self) -> NamingScheme:
        """Naming scheme built from this record."""
        return NamingScheme(
            title_template_low=self.title_template_low,
            title_template_high=self.title_template_high,
            title_suffix_offset=self.title_suffix_offset,
            tables_per_template=self.tables_per_template,
            range_width=self.range_width,
            series_pattern=self.series_pattern,
            systematic_pattern=self.systematic_pattern,
        )


class ReformatConfig(BaseModel):
    """Run configuration: output options and dataset records."""

    version: str = "0.1.0"
    output_path: Path = Path("lhcdata.h5")
    data_dir: Optional[Path] = None
    out_of_range: Literal["clamp", "reject"] = "reject"
    overwrite: bool = True
    write_syst_only: bool = False
    write_stat_histogram: bool = False
    show_progress: bool = False
    log_level: str = "INFO"
    datasets: List[DatasetConfig] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v):
        """Level must be one of the standard logging level names."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level '{v}', expected one of {list(LOG_LEVELS)}"
            )
        return level

    @model_validator(mode="after")
    def check_unique_names(self):
        """Dataset names and systematics folders must be unique."""
        for attr in ("name", "systematics_folder"):
            values = [getattr(d, attr) for d in self.datasets]
            duplicates = sorted({v for v in values if values.count(v) > 1})
            if duplicates:
                raise ConfigurationError(f"Duplicate dataset {attr}(s): {duplicates}")
        return self

    def resolve_input(self, dataset: DatasetConfig) -> Path:
        """Input path of a dataset, resolved against data_dir if relative."""
        if dataset.input_path.is_absolute() or self.data_dir is None:
            return dataset.input_path
        return self.data_dir / dataset.input_path

    def with_overrides(self, updates: Dict[str, Any]) -> "ReformatConfig":
        """
        Return a copy with run options replaced and re-validated.

        Raises:
            ConfigurationError: If an override is not a valid value
        """
        try:
            return ReformatConfig.model_validate({**self.model_dump(), **updates})
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid override {sorted(updates)}: {e}")

    def hash_payload(self) -> Dict[str, Any]:
        """JSON-compatible view used for the configuration hash."""
        return self.model_dump(
            mode="json",
            exclude={"output_path", "overwrite", "show_progress", "log_level"},
        )


# =============================================================================
# Built-in defaults
# =============================================================================

# ATLAS 7 TeV, R=0.4 and R=0.6, 4.5/fb
# https://www.hepdata.net/download/submission/ins1325553/1/root
ATLAS_7TEV = {
    "name": "atlas07",
    "description": "ATLAS 7 TeV inclusive jets, R=0.4 and R=0.6, 4.5/fb",
    "input_path": "atlas/HEPData-ins1325553-v1-root.root",
    "title_template_low": "atlas07_r04_y{start:02d}-{end:02d}",
    "title_template_high": "atlas07_r06_y{start:02d}-{end:02d}",
    "systematics_folder": "atlas07_sys",
    "title_suffix_offset": 8,
}

# CMS 7 TeV, R=0.5 and R=0.7, 5.0/fb
# https://www.hepdata.net/download/submission/ins1298810/1/root
CMS_7TEV = {
    "name": "cms07",
    "description": "CMS 7 TeV inclusive jets, R=0.5 and R=0.7, 5.0/fb",
    "input_path": "cms/HEPData-ins1298810-v1-root.root",
    "title_template_low": "cms07_r05_y{start:02d}-{end:02d}",
    "title_template_high": "cms07_r07_y{start:02d}-{end:02d}",
    "systematics_folder": "cms07_sys",
    "title_suffix_offset": 6,
}


def default_config() -> ReformatConfig:
    """
    Built-in configuration: ATLAS and CMS 7 TeV inclusive jet tables.

    Returns:
        ReformatConfig writing lhcdata.h5
    """
    return ReformatConfig(datasets=[DatasetConfig(**ATLAS_7TEV), DatasetConfig(**CMS_7TEV)])


# =============================================================================
# Configuration Loading Functions
# =============================================================================

def load_json_config(path: Path) -> Dict[str, Any]:
    """
    Load a JSON configuration file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dictionary

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")


def load_reformat_config(
    name_or_path: str,
    config_dir: Optional[Path] = None,
) -> ReformatConfig:
    """
    Load a reformat configuration by name or path.

    Args:
        name_or_path: Config name (looks in config/reformat/) or direct path
        config_dir: Optional config directory (default: config/)

    Returns:
        Validated ReformatConfig

    Raises:
        ConfigurationError: If config not found or invalid
    """
    if config_dir is None:
        config_dir = Path("config")

    # Check if it's a direct path
    path = Path(name_or_path)
    if not path.exists():
        # Try as a name in config/reformat/
        path = Path(config_dir) / "reformat" / f"{name_or_path}.json"

    data = load_json_config(path)

    try:
        config = ReformatConfig(**data)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid reformat config in {path}: {e}")

    logger.info(f"Loaded reformat config {path}: {len(config.datasets)} datasets")
    return config


def list_available_configs(config_dir: Optional[Path] = None) -> List[str]:
    """
    List available reformat configurations.

    Args:
        config_dir: Directory containing config/reformat/

    Returns:
        Sorted list of config names
    """
    if config_dir is None:
        config_dir = Path("config")

    reformat_dir = Path(config_dir) / "reformat"
    if not reformat_dir.exists():
        return []

    return sorted(f.stem for f in reformat_dir.glob("*.json"))
