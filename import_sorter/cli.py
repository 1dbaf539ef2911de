#!/usr/bin/env python3
"""Command-line interface for import-sorter using Click."""

from importlib import metadata
import logging
from pathlib import Path
import sys
from typing import List
from typing import Optional
from typing import Tuple

import click
from import_sorter import core
from import_sorter.config import CONFIG_FILE
from import_sorter.config import Configuration
from import_sorter.config import config_for_file
from import_sorter.config import file_config
from import_sorter.config import resolve
from import_sorter.errors import ConfigInvalidError
from import_sorter.errors import HardConflictError
from import_sorter.errors import ImportSorterError


try:
    VERSION = f"import-sorter {metadata.version('import-sorter')}"
except metadata.PackageNotFoundError:
    VERSION = "import-sorter"


def _collect_files(paths: Tuple[str, ...], explicit: Optional[Configuration]) -> List[Path]:
    extra = [explicit] if explicit is not None else []
    files: List[Path] = []
    for path in map(Path, paths):
        if path.is_file():
            files.append(path)
        else:
            exclude = config_for_file(path / CONFIG_FILE, extra=extra).exclude
            files.extend(core.iter_source_files(path, exclude))
    return files


def _handle_files(paths: Tuple[str, ...], config_path: Optional[str], apply_changes: bool) -> int:
    """Process source files and report or fix import order.

    Args:
        paths: Files or directories to process.
        config_path: Optional config file applied over discovered configs.
        apply_changes: If True, apply fixes in place.
    Returns:
        0 if no changes, 1 if changes required, 2 if error occurred.
    """
    try:
        explicit = file_config(config_path, strict=True) if config_path else None
        if explicit is not None:
            resolve([explicit])
        file_paths = _collect_files(paths, explicit)
    except ConfigInvalidError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 2

    exit_code = 0
    changed = 0

    for file_path in file_paths:
        try:
            modified = core.process_file(file_path, explicit, apply=apply_changes)
        except HardConflictError as exc:
            logging.error("[%s] CONFLICT: %s", file_path, exc)
            exit_code = max(exit_code, 2)
            continue
        except (ImportSorterError, OSError, UnicodeDecodeError) as exc:
            logging.error("[%s] ERROR: %s", file_path, exc)
            exit_code = max(exit_code, 2)
            continue

        if modified:
            msg = "file updated." if apply_changes else "imports would be reordered."
            logging.info("[%s] %s", file_path, msg)
            changed += 1
            exit_code = max(exit_code, 1)
        else:
            logging.debug("[%s] unchanged.", file_path)

    if changed:
        logging.info("Total files %s: %d", "updated" if apply_changes else "to update", changed)

    return exit_code


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Increase verbosity.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.version_option(version=VERSION, prog_name="import-sorter CLI")
def cli(verbose: bool, quiet: bool) -> None:
    """Sort and group JavaScript/TypeScript imports."""
    # Configure logging only once
    if not logging.getLogger().handlers:
        if quiet:
            logging.basicConfig(level=logging.ERROR, format="%(message)s")
        else:
            logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


@cli.command(help="Report files whose imports are out of order without modifying them.")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, file_okay=True, dir_okay=True))
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help=f"Config file applied over discovered {CONFIG_FILE} files.")
def check(paths: Tuple[str, ...], config_path: Optional[str]) -> None:
    exit_code = _handle_files(paths, config_path, apply_changes=False)
    sys.exit(exit_code)


@cli.command(help="Sort imports in place.")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, file_okay=True, dir_okay=True))
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help=f"Config file applied over discovered {CONFIG_FILE} files.")
def fix(paths: Tuple[str, ...], config_path: Optional[str]) -> None:
    exit_code = _handle_files(paths, config_path, apply_changes=True)
    sys.exit(exit_code)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    cli()
