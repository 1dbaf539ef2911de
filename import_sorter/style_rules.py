"""Linter integration: ESLint-derived settings and author-suppressed regions."""
from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass
import logging
from pathlib import Path
import re
import sys
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

import yaml
from import_sorter.config import Configuration
from import_sorter.config import load_jsonc
from import_sorter.errors import ConfigInvalidError
from import_sorter.parser import Comment

LOG = logging.getLogger(__name__)

ESLINT_FILES = ('.eslintrc.yaml', '.eslintrc.yml', '.eslintrc.json', '.eslintrc')
SORT_RULES = frozenset({'sort-imports', 'import/order', 'simple-import-sort/imports'})

_DIRECTIVE_RE = re.compile(
    r'^(?://|/\*)\s*eslint-(disable-next-line|disable-line|disable|enable)(?![-\w])(.*?)(?:\*/)?$', re.DOTALL)
_DISABLE_FILE_RE = re.compile(r'(?:ts-)?import-sorter:\s*disable\b')


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigInvalidError(f"{path}: {exc}") from exc


def _load_eslintrc(path: Path) -> Any:
    if path.suffix in ('.yaml', '.yml'):
        return _load_yaml(path)
    if path.suffix == '.json':
        return load_jsonc(path)
    # legacy .eslintrc holds either JSON or YAML
    try:
        return load_jsonc(path)
    except ConfigInvalidError:
        return _load_yaml(path)


def _eslint_config(directory: Path) -> Optional[Mapping]:
    for name in ESLINT_FILES:
        candidate = directory / name
        if candidate.is_file():
            try:
                data = _load_eslintrc(candidate)
            except ConfigInvalidError as exc:
                LOG.debug(f"Ignoring {candidate}: {exc}")
                return None
            return data if isinstance(data, Mapping) else None
    package = directory / 'package.json'
    if package.is_file():
        data = load_jsonc(package)
        if isinstance(data, Mapping) and isinstance(data.get('eslintConfig'), Mapping):
            return data['eslintConfig']
    return None


def load_eslint_rules(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Collect ESLint ``rules`` that apply to ``file_path``.

    Config files are read from the file's directory upward; nearer files win,
    and the search stops after a config with ``"root": true``.
    """
    directory = Path(file_path).resolve().parent
    layers: List[Mapping] = []
    for current in (directory, *directory.parents):
        data = _eslint_config(current)
        if data is None:
            continue
        rules = data.get('rules')
        if isinstance(rules, Mapping):
            layers.append(rules)
        if data.get('root') is True:
            break
    rules: Dict[str, Any] = {}
    for layer in reversed(layers):
        rules.update(layer)
    return rules


def _rule_options(value: Any) -> Optional[list]:
    """Return the options of an enabled rule, or None if it is off."""
    if isinstance(value, list) and value:
        severity, options = value[0], list(value[1:])
    else:
        severity, options = value, []
    if severity in (0, 'off'):
        return None
    return options


def eslint_overrides(rules: Mapping, ignored: Iterable[str] = ()) -> Configuration:
    """Translate ESLint rules into a configuration layer.

    Rules listed in ``ignored`` (or all rules, if it contains '*') are skipped.
    """
    ignored = set(ignored)

    def options(name: str) -> Optional[list]:
        if '*' in ignored or name in ignored or name not in rules:
            return None
        return _rule_options(rules[name])

    values: Dict[str, Any] = {}
    opts = options('quotes')
    if opts is not None:
        mark = opts[0] if opts else 'double'
        if mark in ('single', 'double'):
            values['quote_mark'] = mark
    opts = options('semi')
    if opts is not None:
        values['semicolon'] = 'never' if opts and opts[0] == 'never' else 'always'
    opts = options('comma-dangle')
    if opts is not None:
        setting = opts[0] if opts else 'never'
        if isinstance(setting, Mapping):
            setting = setting.get('imports', 'never')
        values['trailing_comma'] = 'multiline' if setting in ('always', 'always-multiline', 'only-multiline') else 'none'
    opts = options('object-curly-spacing')
    if opts is not None:
        values['bracket_spacing'] = bool(opts) and opts[0] == 'always'
    opts = options('max-len')
    if opts is not None:
        length = opts[0] if opts else 80
        if isinstance(length, Mapping):
            length = length.get('code')
        if isinstance(length, int) and not isinstance(length, bool):
            values['max_line_length'] = length
    opts = options('indent')
    if opts and isinstance(opts[0], int) and not isinstance(opts[0], bool) and opts[0] > 0:
        values['tab_size'] = opts[0]
    opts = options('linebreak-style')
    if opts is not None:
        values['eol'] = 'CRLF' if opts and opts[0] == 'windows' else 'LF'
    opts = options('sort-imports')
    if opts and isinstance(opts[0], Mapping) and isinstance(opts[0].get('ignoreCase'), bool):
        values['case_sensitive'] = not opts[0]['ignoreCase']
    if values:
        LOG.debug(f"ESLint overrides: {values}")
    return Configuration(**values)


@dataclass(frozen=True)
class LinterExceptions:
    """Line ranges (1-based, inclusive) the sorter must not touch."""

    ranges: Tuple[Tuple[int, int], ...] = ()
    disabled: bool = False

    def covers(self, first_line: int, last_line: int) -> bool:
        return self.disabled or any(start <= last_line and first_line <= end for start, end in self.ranges)

    def union(self, other: LinterExceptions) -> LinterExceptions:
        return LinterExceptions(self.ranges + other.ranges, self.disabled or other.disabled)


def line_of(source: str, offset: int) -> int:
    return source.count('\n', 0, offset) + 1


def find_suppressions(comments: Iterable[Comment], source: str) -> LinterExceptions:
    """Find regions where import sorting was suppressed in comments.

    Recognizes ``import-sorter: disable`` for the whole file and ESLint
    disable/enable directives naming an import-ordering rule.
    """
    ranges: List[Tuple[int, int]] = []
    disabled = False
    open_since: Optional[int] = None
    for comment in comments:
        if _DISABLE_FILE_RE.search(comment.text):
            disabled = True
            continue
        match = _DIRECTIVE_RE.match(comment.text.strip())
        if match is None:
            continue
        directive, rest = match.groups()
        names = {n.strip() for n in rest.split('--', 1)[0].split(',')}
        if not names & SORT_RULES:
            continue
        first = line_of(source, comment.start)
        last = line_of(source, comment.end)
        if directive == 'disable-line':
            ranges.append((first, first))
        elif directive == 'disable-next-line':
            ranges.append((last + 1, last + 1))
        elif directive == 'disable':
            if open_since is None:
                open_since = first
        elif open_since is not None:
            ranges.append((open_since, last))
            open_since = None
    if open_since is not None:
        ranges.append((open_since, sys.maxsize))
    return LinterExceptions(tuple(ranges), disabled)
