"""
lhcdata: LHC inclusive-jet table reformatter

Reads HEPData measurement tables (ATLAS and CMS), renames point series and
histograms to a common convention, derives stat-only uncertainty series and
writes everything into one consolidated output file.

Architecture:
    - model      : Point series, histograms, tables, output accumulator
    - naming     : Title generation and structured key parsing
    - transform  : Table transform (renaming, stat/syst uncertainty derivation)
    - io/        : HDF5 container read/write, ROOT input via uproot
    - pipeline/  : Configuration and orchestration
    - utils/     : Shared utilities (logging, exceptions, validation, hashing)
"""

__version__ = "0.1.0"

# Users should import from submodules directly:
#   from lhcdata.pipeline import run_reformat, default_config
#   from lhcdata.transform import transform_table
