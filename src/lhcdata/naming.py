"""
Naming conventions for input keys and output objects.

Input keys are parsed with regular expressions instead of fixed character
offsets, so a key that does not follow the HEPData convention fails with a
NamingViolationError naming the key.

Output names:
    {title}_{index}                combined stat+syst point series
    {title}_{index}_stat           stat-only point series
    {title}_{index}_syst           syst-only point series
    {title}_{index}_hstat          stat-only histogram
    {stem}_{index}_sys[_{source}]  systematic histogram, stem = title[offset:]
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Pattern, Tuple

from lhcdata.utils.exceptions import ConfigurationError, NamingViolationError


DEFAULT_SERIES_PATTERN = r"^Graph1D_y(?P<index>\w)$"
DEFAULT_SYSTEMATIC_PATTERN = r"^Hist1D_y(?P<index>\w)(?:_e(?P<source>.+))?$"


def compile_key_pattern(pattern: str, with_source: bool = False) -> Pattern[str]:
    """
    Compile a key pattern and check its named groups.

    Args:
        pattern: Regular expression with an 'index' group
        with_source: Also allow an optional 'source' group

    Raises:
        ConfigurationError: If the pattern is invalid or lacks the groups
    """
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid key pattern {pattern!r}: {e}")

    if "index" not in compiled.groupindex:
        raise ConfigurationError(f"Key pattern {pattern!r} has no 'index' group")
    extra = set(compiled.groupindex) - ({"index", "source"} if with_source else {"index"})
    if extra:
        raise ConfigurationError(
            f"Key pattern {pattern!r} has unexpected groups: {sorted(extra)}"
        )
    return compiled


def check_title_template(template: str) -> str:
    """
    Check that a title template formats with integer start/end.

    Raises:
        ConfigurationError: If formatting fails
    """
    try:
        title = template.format(start=0, end=5)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid title template {template!r}: expected only {{start}} "
            f"and {{end}} fields ({e!r})"
        )
    if not title or "/" in title:
        raise ConfigurationError(f"Title template {template!r} gives an unusable name")
    return template


@dataclass(frozen=True)
class NamingScheme:
    """
    Title and key conventions for one dataset family.

    Attributes:
        title_template_low: Template for tables 0..tables_per_template-1
        title_template_high: Template for the following tables
        title_suffix_offset: Characters dropped from the title to form the
            systematic stem (length of the dataset prefix)
        tables_per_template: Tables covered by each template
        range_width: Width of the (start, end) range per table
        series_pattern: Regex for point-series keys
        systematic_pattern: Regex for systematic histogram keys
    """

    title_template_low: str
    title_template_high: str
    title_suffix_offset: int
    tables_per_template: int = 6
    range_width: int = 5
    series_pattern: str = DEFAULT_SERIES_PATTERN
    systematic_pattern: str = DEFAULT_SYSTEMATIC_PATTERN
    _series_re: Pattern[str] = field(init=False, repr=False, compare=False)
    _systematic_re: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        check_title_template(self.title_template_low)
        check_title_template(self.title_template_high)
        if self.title_suffix_offset < 0:
            raise ConfigurationError("title_suffix_offset must be >= 0")
        if self.tables_per_template <= 0 or self.range_width <= 0:
            raise ConfigurationError("tables_per_template and range_width must be > 0")
        object.__setattr__(self, "_series_re", compile_key_pattern(self.series_pattern))
        object.__setattr__(
            self, "_systematic_re",
            compile_key_pattern(self.systematic_pattern, with_source=True),
        )

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    def title_range(self, i: int) -> Tuple[int, int]:
        """Return the (start, end) range for 0-based table index i."""
        if i < 0 or i >= 2 * self.tables_per_template:
            raise ConfigurationError(
                f"Table index {i} outside the range covered by the title "
                f"templates (0..{2 * self.tables_per_template - 1})"
            )
        j = i if i < self.tables_per_template else i - self.tables_per_template
        return self.range_width * j, self.range_width * (j + 1)

    def title(self, i: int) -> str:
        """
        Human-readable title for 0-based table index i.

        Example:
            >>> scheme = NamingScheme("atlas07_r04_y{start:02d}-{end:02d}",
            ...                       "atlas07_r06_y{start:02d}-{end:02d}", 8)
            >>> scheme.title(0), scheme.title(7)
            ('atlas07_r04_y00-05', 'atlas07_r06_y05-10')
        """
        start, end = self.title_range(i)
        template = self.title_template_low if i < self.tables_per_template else self.title_template_high
        return template.format(start=start, end=end)

    def systematic_stem(self, title: str) -> str:
        """Title with its dataset prefix (title_suffix_offset characters) removed."""
        stem = title[self.title_suffix_offset:]
        if not stem:
            raise NamingViolationError(
                f"title_suffix_offset {self.title_suffix_offset} leaves nothing "
                f"of title '{title}'",
                key=title,
            )
        return stem

    # -------------------------------------------------------------------------
    # Input keys
    # -------------------------------------------------------------------------

    def parse_series_key(self, key: str) -> str:
        """
        Extract the variant index from a point-series key.

        Raises:
            NamingViolationError: If the key does not match series_pattern
        """
        match = self._series_re.match(key)
        if match is None:
            raise NamingViolationError(
                f"Point-series key '{key}' does not match {self.series_pattern!r}",
                key=key,
                pattern=self.series_pattern,
            )
        return match.group("index")

    def parse_systematic_key(self, key: str) -> Tuple[str, Optional[str]]:
        """
        Extract (index, source) from a systematic histogram key.

        source is None for keys without a source suffix.

        Raises:
            NamingViolationError: If the key does not match systematic_pattern
        """
        match = self._systematic_re.match(key)
        if match is None:
            raise NamingViolationError(
                f"Histogram key '{key}' does not match {self.systematic_pattern!r}",
                key=key,
                pattern=self.systematic_pattern,
            )
        return match.group("index"), match.groupdict().get("source")

    # -------------------------------------------------------------------------
    # Output names
    # -------------------------------------------------------------------------

    @staticmethod
    def series_name(title: str, index: str) -> str:
        return f"{title}_{index}"

    @staticmethod
    def stat_series_name(title: str, index: str) -> str:
        return f"{title}_{index}_stat"

    @staticmethod
    def syst_series_name(title: str, index: str) -> str:
        return f"{title}_{index}_syst"

    @staticmethod
    def stat_histogram_name(title: str, index: str) -> str:
        return f"{title}_{index}_hstat"

    def systematic_name(self, title: str, index: str, source: Optional[str] = None) -> str:
        """
        Output name of a systematic histogram.

        Example:
            >>> scheme.systematic_name("atlas07_r04_y00-05", "1")
            'r04_y00-05_1_sys'
            >>> scheme.systematic_name("atlas07_r04_y00-05", "1", "1plus")
            'r04_y00-05_1_sys_1plus'
        """
        stem = self.systematic_stem(title)
        if source is None:
            return f"{stem}_{index}_sys"
        return f"{stem}_{index}_sys_{source}"
