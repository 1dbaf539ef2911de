"""Project options read from ``tsconfig.json`` or ``jsconfig.json``.

Only what the classifier needs is kept: the ``paths`` alias table, the
``baseUrl`` and the module resolution mode.
"""
from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
import logging
from pathlib import Path
from typing import Dict
from typing import Optional
from typing import Set
from typing import Tuple
from typing import Union

from import_sorter.config import load_jsonc
from import_sorter.errors import ConfigInvalidError

LOG = logging.getLogger(__name__)

PROJECT_FILES = ('tsconfig.json', 'jsconfig.json')


@dataclass(frozen=True)
class ProjectOptions:
    paths: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    base_url: Optional[str] = None
    module_resolution: Optional[str] = None

    def is_alias(self, specifier: str) -> bool:
        """Return True if ``specifier`` is covered by a ``paths`` pattern."""
        for pattern in self.paths:
            prefix, star, suffix = pattern.partition('*')
            if not star:
                if specifier == pattern:
                    return True
            elif specifier.startswith(prefix) and specifier.endswith(suffix) \
                    and len(specifier) >= len(prefix) + len(suffix):
                return True
        return False


def _compiler_options(path: Path, seen: Set[Path]) -> Dict:
    if path in seen:
        raise ConfigInvalidError(f"{path}: circular 'extends'")
    seen.add(path)
    data = load_jsonc(path)
    if not isinstance(data, Mapping):
        raise ConfigInvalidError(f"{path}: expected an object")
    options: Dict = {}
    extends = data.get('extends')
    if isinstance(extends, str) and extends.startswith('.'):
        parent = (path.parent / extends).resolve()
        if parent.suffix != '.json':
            parent = parent.with_name(parent.name + '.json')
        if parent.is_file():
            options.update(_compiler_options(parent, seen))
        else:
            LOG.debug(f"{path}: extended config {extends!r} not found")
    compiler_options = data.get('compilerOptions') or {}
    if isinstance(compiler_options, Mapping):
        options.update(compiler_options)
    return options


def load_tsconfig(path: Union[str, Path]) -> ProjectOptions:
    """Load project options from ``path``, following relative ``extends``."""
    options = _compiler_options(Path(path).resolve(), set())
    paths = options.get('paths') or {}
    if not isinstance(paths, Mapping):
        raise ConfigInvalidError(f"{path}: 'paths' must be an object")
    resolution = options.get('moduleResolution')
    return ProjectOptions(
        paths={k: tuple(v) if isinstance(v, list) else (v,) for k, v in paths.items()},
        base_url=options.get('baseUrl'),
        module_resolution=resolution.lower() if isinstance(resolution, str) else None,
    )


def find_tsconfig(file_path: Union[str, Path]) -> Optional[Path]:
    """Return the nearest tsconfig.json (or jsconfig.json) above ``file_path``."""
    directory = Path(file_path).resolve().parent
    for current in (directory, *directory.parents):
        for name in PROJECT_FILES:
            candidate = current / name
            if candidate.is_file():
                return candidate
    return None
