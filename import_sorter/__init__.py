"""Top-level package for import-sorter.

This package exposes the core API for sorting and grouping JavaScript and
TypeScript import statements.
"""

from import_sorter.config import Configuration
from import_sorter.config import GroupRule
from import_sorter.config import config_for_file
from import_sorter.config import merge_config
from import_sorter.config import resolve
from import_sorter.core import format_source
from import_sorter.core import iter_source_files
from import_sorter.core import process_file
from import_sorter.errors import ConfigInvalidError
from import_sorter.errors import HardConflictError
from import_sorter.errors import ImportSorterError
from import_sorter.errors import ParseUnsupportedError


__all__ = [
    "Configuration",
    "GroupRule",
    "merge_config",
    "resolve",
    "config_for_file",
    "format_source",
    "process_file",
    "iter_source_files",
    "ImportSorterError",
    "ConfigInvalidError",
    "ParseUnsupportedError",
    "HardConflictError",
]
