#!/usr/bin/env python3
"""Core utilities for import-sorter. This module
provides the single formatting entry point, :func:`format_source`, and the
file-level helpers used by the command line: resolving the layered
configuration for a file, processing it in place and discovering source
files under a directory.
"""
from __future__ import annotations
from fnmatch import fnmatch
import logging
from pathlib import Path
from typing import Iterable
from typing import Iterator
from typing import Optional
from typing import Union

from import_sorter.config import EOL_SEQUENCES
from import_sorter.config import Configuration
from import_sorter.config import config_for_file
from import_sorter.config import detect_eol
from import_sorter.config import merge_config
from import_sorter.emitter import render_region
from import_sorter.emitter import splice
from import_sorter.errors import ParseUnsupportedError
from import_sorter.extract import extract_imports
from import_sorter.parser import JS_EXTENSIONS
from import_sorter.parser import TS_EXTENSIONS
from import_sorter.parser import dialect_for
from import_sorter.parser import parse
from import_sorter.project import ProjectOptions
from import_sorter.project import find_tsconfig
from import_sorter.project import load_tsconfig
from import_sorter.sorter import group_imports
from import_sorter.style_rules import LinterExceptions
from import_sorter.style_rules import eslint_overrides
from import_sorter.style_rules import find_suppressions
from import_sorter.style_rules import line_of
from import_sorter.style_rules import load_eslint_rules

LOG = logging.getLogger(__name__)

SOURCE_EXTENSIONS = TS_EXTENSIONS | JS_EXTENSIONS


def _format(file_name: str, source: str, config: Configuration, project: Optional[ProjectOptions],
            exceptions: Optional[LinterExceptions]) -> Optional[str]:
    dialect = dialect_for(file_name)
    if dialect is None:
        LOG.debug(f"[{file_name}] unsupported file type")
        return None
    if config.eol == 'auto':
        config = merge_config(config, Configuration(eol=detect_eol(source)))
    eol = EOL_SEQUENCES[config.eol]

    try:
        tree = parse(source, dialect)
        statements, region = extract_imports(tree, config.file_comment_gap)
        if region is None:
            LOG.debug(f"[{file_name}] no imports")
            return None
        suppressed = find_suppressions(tree.comments, source)
        if exceptions is not None:
            suppressed = suppressed.union(exceptions)
        if suppressed.covers(line_of(source, region.start), line_of(source, region.end)):
            LOG.debug(f"[{file_name}] import sorting is suppressed")
            return None
        groups = group_imports(statements, config, project)
        text = render_region(groups, config, eol)
    except ParseUnsupportedError as exc:
        LOG.debug(f"[{file_name}] skipped: {exc}")
        return None
    return splice(source, region, text)


def format_source(file_name: str, source: str, config: Configuration,
                  project: Optional[ProjectOptions] = None,
                  exceptions: Optional[LinterExceptions] = None) -> Optional[str]:
    """Sort the imports of ``source``.

    Args:
        file_name: Name of the file; its extension selects the dialect.
        source: Full text of the file.
        config: A fully resolved configuration (see ``config.resolve``).
        project: Options from tsconfig.json, used to recognize path aliases.
        exceptions: Line ranges the caller wants left untouched, in addition
            to those suppressed by comments in the file.
    Returns:
        The new text, or None if nothing changes or the file is skipped.
    Raises:
        HardConflictError: If duplicate imports cannot be merged.
    """
    result = _format(file_name, source, config, project, exceptions)
    if result is None or result == source:
        return None
    again = _format(file_name, result, config, project, exceptions)
    if again is not None and again != result:
        LOG.warning(f"[{file_name}] import order is not stable, leaving file unchanged")
        return None
    return result


def resolve_file_config(file_path: Union[str, Path], explicit: Optional[Configuration] = None) -> Configuration:
    """Layer nested config files, ``explicit`` and ESLint settings for ``file_path``."""
    config = config_for_file(file_path, extra=[explicit] if explicit is not None else [])
    rules = load_eslint_rules(file_path)
    if rules:
        config = merge_config(config, eslint_overrides(rules, config.ignore_eslint_rules))
    return config


def process_file(file_path: Union[str, Path], config: Optional[Configuration] = None, apply: bool = False) -> bool:
    """Sort imports of a single file.

    Args:
        file_path: File to process.
        config: Extra configuration layer applied over discovered config files.
        apply: If True, write the result back to the file.
    Returns:
        True if the imports were (or would be) changed.
    """
    path_obj = Path(file_path)
    with open(path_obj, 'r', encoding='utf-8', newline='') as f:
        source = f.read()

    file_config = resolve_file_config(path_obj, config)
    tsconfig = find_tsconfig(path_obj)
    project = load_tsconfig(tsconfig) if tsconfig is not None else None

    result = format_source(str(path_obj), source, file_config, project)
    if result is None:
        return False
    if apply:
        with open(path_obj, 'w', encoding='utf-8', newline='') as f:
            f.write(result)
    return True


def iter_source_files(root: Union[str, Path], ignore: Optional[Iterable[str]] = None) -> Iterator[Path]:
    """Yield JS/TS files under the given root directory, excluding specified patterns."""
    ignore_set = set(ignore or [])
    root_path = Path(root)
    for path in sorted(root_path.rglob('*')):
        if path.suffix.lower() not in SOURCE_EXTENSIONS or not path.is_file():
            continue
        relative = path.relative_to(root_path)
        if 'node_modules' in relative.parts:
            continue
        if any(fnmatch(relative.as_posix(), pattern) for pattern in ignore_set):
            continue
        yield path
