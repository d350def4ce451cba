"""
twinprot
--------
Top-level package for the twin proteomics (DIA / SRM) analysis project.

Sub-packages
------------
core
    Loading, normalization, summarization, reshaping, joining and
    statistical testing of the ``twin_dia`` / ``twin_srm`` tables.

Modules
-------
config
    Column names, default paths and analysis defaults.
"""

from . import config, core

__all__ = ["config", "core"]
