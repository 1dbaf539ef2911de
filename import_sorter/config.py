"""Configuration model for import-sorter.

A :class:`Configuration` is an immutable set of sorting rules where every
field may be left unset (``None``). Layers are combined with
:func:`merge_config`, which is right-biased per field: a field set in the
more specific layer wins, otherwise the inherited value is kept. Group lists
are replaced wholesale unless the overriding layer sets ``extend_groups``, in
which case its groups are appended to the inherited ones. :func:`resolve`
folds a sequence of layers over :data:`DEFAULT_CONFIG`, so the result is
always fully populated.

Layers are usually read from ``import-sorter.json`` files or from the
``importSorter`` key of ``package.json``; keys in those files are camelCase.
"""
from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import fields
import logging
from pathlib import Path
from typing import Any
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

import json5
from import_sorter.errors import ConfigInvalidError
from import_sorter.rules import build_groups

LOG = logging.getLogger(__name__)

CONFIG_FILE = 'import-sorter.json'
PACKAGE_JSON = 'package.json'
PACKAGE_JSON_KEY = 'importSorter'

EOL_SEQUENCES = {'LF': '\n', 'CRLF': '\r\n'}


@dataclass(frozen=True)
class GroupRule:
    """A group definition as written in a config file."""

    name: str
    patterns: Tuple[str, ...]
    position: Optional[int] = None


@dataclass(frozen=True)
class Configuration:
    groups: Optional[Tuple[GroupRule, ...]] = None
    extend_groups: Optional[bool] = None
    sort_by: Optional[str] = None
    case_sensitive: Optional[bool] = None
    sort_names: Optional[bool] = None
    type_only_last: Optional[bool] = None
    empty_lines_between_groups: Optional[int] = None
    merge_duplicates: Optional[bool] = None
    quote_mark: Optional[str] = None
    semicolon: Optional[str] = None
    bracket_spacing: Optional[bool] = None
    trailing_comma: Optional[str] = None
    max_line_length: Optional[int] = None
    tab_size: Optional[int] = None
    eol: Optional[str] = None
    file_comment_gap: Optional[int] = None
    ignore_eslint_rules: Optional[Tuple[str, ...]] = None
    exclude: Optional[Tuple[str, ...]] = None


# Groups are matched in declaration order and emitted in position order, so
# the catch-all can sit in the middle of the output while being tried last.
DEFAULT_GROUPS = (
    GroupRule('builtin', ('builtin',), 0),
    GroupRule('alias', ('alias',), 2),
    GroupRule('relative', ('relative',), 3),
    GroupRule('external', ('*',), 1),
)

DEFAULT_CONFIG = Configuration(
    groups=DEFAULT_GROUPS,
    extend_groups=False,
    sort_by='specifier',
    case_sensitive=True,
    sort_names=True,
    type_only_last=True,
    empty_lines_between_groups=1,
    merge_duplicates=True,
    quote_mark='single',
    semicolon='always',
    bracket_spacing=False,
    trailing_comma='multiline',
    max_line_length=80,
    tab_size=2,
    eol='auto',
    file_comment_gap=1,
    ignore_eslint_rules=(),
    exclude=('node_modules/**',),
)


def _choice(*choices: str) -> Callable[[str, Any], str]:
    def convert(key: str, value: Any) -> str:
        if value not in choices:
            raise ConfigInvalidError(f"{key}: expected one of {', '.join(choices)}, got {value!r}")
        return value
    return convert


def _boolean(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigInvalidError(f"{key}: expected a boolean, got {value!r}")
    return value


def _integer(minimum: int) -> Callable[[str, Any], int]:
    def convert(key: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ConfigInvalidError(f"{key}: expected an integer >= {minimum}, got {value!r}")
        return value
    return convert


def _strings(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigInvalidError(f"{key}: expected a string or a list of strings, got {value!r}")


def _eol(key: str, value: Any) -> str:
    if isinstance(value, str):
        normalized = value.lower() if value.lower() == 'auto' else value.upper()
        if normalized in ('LF', 'CRLF', 'auto'):
            return normalized
    raise ConfigInvalidError(f"{key}: expected LF, CRLF or auto, got {value!r}")


_GROUP_KEYS = {'name', 'pattern', 'position'}


def _group_rule(index: int, item: Any, strict: bool) -> GroupRule:
    if isinstance(item, str):
        return GroupRule(item, (item,))
    if not isinstance(item, Mapping):
        raise ConfigInvalidError(f"groups[{index}]: expected an object or a string, got {item!r}")
    unknown = set(item) - _GROUP_KEYS
    if strict and unknown:
        raise ConfigInvalidError(f"groups[{index}]: unknown field(s) {', '.join(sorted(unknown))}")
    if 'pattern' not in item:
        raise ConfigInvalidError(f"groups[{index}]: missing 'pattern'")
    patterns = _strings(f"groups[{index}].pattern", item['pattern'])
    name = item.get('name', f"group{index}")
    if not isinstance(name, str):
        raise ConfigInvalidError(f"groups[{index}].name: expected a string, got {name!r}")
    position = item.get('position')
    if position is not None:
        position = _integer(0)(f"groups[{index}].position", position)
    return GroupRule(name, patterns, position)


def _groups(key: str, value: Any, strict: bool = False) -> Tuple[GroupRule, ...]:
    if not isinstance(value, list):
        raise ConfigInvalidError(f"{key}: expected a list, got {value!r}")
    return tuple(_group_rule(i, item, strict) for i, item in enumerate(value))


# file key -> (Configuration field, converter)
_FIELDS: Dict[str, Tuple[str, Callable[[str, Any], Any]]] = {
    'groups': ('groups', _groups),
    'extendGroups': ('extend_groups', _boolean),
    'sortBy': ('sort_by', _choice('specifier', 'name')),
    'caseSensitive': ('case_sensitive', _boolean),
    'sortNames': ('sort_names', _boolean),
    'typeOnlyLast': ('type_only_last', _boolean),
    'emptyLinesBetweenGroups': ('empty_lines_between_groups', _integer(0)),
    'mergeDuplicates': ('merge_duplicates', _boolean),
    'quoteMark': ('quote_mark', _choice('single', 'double', 'preserve')),
    'semicolon': ('semicolon', _choice('always', 'never', 'preserve')),
    'bracketSpacing': ('bracket_spacing', _boolean),
    'trailingComma': ('trailing_comma', _choice('none', 'multiline')),
    'maxLineLength': ('max_line_length', _integer(0)),
    'tabSize': ('tab_size', _integer(1)),
    'eol': ('eol', _eol),
    'fileCommentGap': ('file_comment_gap', _integer(1)),
    'ignoreESLintRules': ('ignore_eslint_rules', _strings),
    'exclude': ('exclude', _strings),
}


def config_from_dict(data: Mapping, strict: bool = False) -> Configuration:
    """Build a partial configuration from a mapping of file keys.

    Unknown keys are ignored unless ``strict`` is set.

    Raises:
        ConfigInvalidError: If a value has the wrong type, or a key is
            unknown in strict mode.
    """
    if not isinstance(data, Mapping):
        raise ConfigInvalidError(f"expected an object, got {data!r}")
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in _FIELDS:
            if strict:
                raise ConfigInvalidError(f"unknown field {key!r}")
            LOG.debug(f"Ignoring unknown config field {key!r}")
            continue
        if value is None:
            continue
        attr, convert = _FIELDS[key]
        if attr == 'groups':
            values[attr] = _groups(key, value, strict)
        else:
            values[attr] = convert(key, value)
    return Configuration(**values)


def _merge_groups(base: Configuration, override: Configuration) -> Tuple[Optional[Tuple[GroupRule, ...]], Optional[bool]]:
    if override.groups is None:
        return base.groups, base.extend_groups
    if override.extend_groups:
        return (base.groups or ()) + override.groups, base.extend_groups
    return override.groups, override.extend_groups


def merge_config(base: Union[Configuration, Mapping], override: Union[Configuration, Mapping],
                 strict: bool = False) -> Configuration:
    """Merge ``override`` on top of ``base``.

    Args:
        base: The inherited layer.
        override: The more specific layer; a mapping is parsed with
            :func:`config_from_dict` first.
        strict: Reject unknown keys when parsing mappings.
    Returns:
        A new configuration; neither argument is modified.
    """
    if isinstance(base, Mapping):
        base = config_from_dict(base, strict=strict)
    if isinstance(override, Mapping):
        override = config_from_dict(override, strict=strict)
    values: Dict[str, Any] = {}
    for f in fields(Configuration):
        if f.name in ('groups', 'extend_groups'):
            continue
        value = getattr(override, f.name)
        values[f.name] = getattr(base, f.name) if value is None else value
    values['groups'], values['extend_groups'] = _merge_groups(base, override)
    return Configuration(**values)


def resolve(layers: Iterable[Union[Configuration, Mapping]], strict: bool = False) -> Configuration:
    """Fold ``layers`` (least specific first) over the default configuration.

    Raises:
        ConfigInvalidError: If a layer is malformed or the resulting groups
            are invalid (bad pattern, duplicate position).
    """
    config = DEFAULT_CONFIG
    for layer in layers:
        config = merge_config(config, layer, strict=strict)
    build_groups(config.groups)
    return config


def load_jsonc(path: Union[str, Path]) -> Any:
    """Load a JSON file that may contain comments and trailing commas."""
    path = Path(path)
    try:
        return json5.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise ConfigInvalidError(f"{path}: {exc}") from exc


def file_config(path: Union[str, Path], strict: bool = False) -> Optional[Configuration]:
    """Load one config layer from ``import-sorter.json`` or ``package.json``.

    Returns None if ``package.json`` has no ``importSorter`` entry.
    """
    path = Path(path)
    data = load_jsonc(path)
    if path.name == PACKAGE_JSON:
        if not isinstance(data, Mapping) or data.get(PACKAGE_JSON_KEY) is None:
            return None
        data = data[PACKAGE_JSON_KEY]
    try:
        return config_from_dict(data, strict=strict)
    except ConfigInvalidError as exc:
        raise ConfigInvalidError(f"{path}: {exc}") from exc


def find_config_files(file_path: Union[str, Path], root: Optional[Union[str, Path]] = None) -> List[Path]:
    """Return config files that apply to ``file_path``, nearest first."""
    directory = Path(file_path).resolve().parent
    stop = Path(root).resolve() if root is not None else None
    found: List[Path] = []
    for current in (directory, *directory.parents):
        # import-sorter.json wins over package.json in the same directory
        for name in (CONFIG_FILE, PACKAGE_JSON):
            candidate = current / name
            if candidate.is_file():
                found.append(candidate)
        if current == stop:
            break
    return found


def config_for_file(file_path: Union[str, Path], root: Optional[Union[str, Path]] = None,
                    extra: Iterable[Configuration] = ()) -> Configuration:
    """Resolve the configuration for ``file_path`` from nested config files.

    Outer directories are applied first so that nearer config files win;
    ``extra`` layers are applied last.
    """
    layers: List[Configuration] = []
    for path in reversed(find_config_files(file_path, root)):
        layer = file_config(path)
        if layer is not None:
            LOG.debug(f"Using config layer {path}")
            layers.append(layer)
    layers.extend(extra)
    return resolve(layers)


def detect_eol(source: str) -> str:
    """Return 'CRLF' if most line breaks in ``source`` are CRLF, else 'LF'."""
    crlf = source.count('\r\n')
    lf = source.count('\n') - crlf
    return 'CRLF' if crlf > lf else 'LF'
