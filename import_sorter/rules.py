"""Rules module for import-sorter.

This module classifies import statements into the configured groups and
defines the orderings used inside a group.

Group patterns are compiled into an ordered list of :class:`Matcher`
objects, each wrapping a plain predicate. A statement belongs to the first
group (in declaration order) with a matching pattern; a catch-all group is
appended when the configuration does not declare one.
"""
from __future__ import annotations
from dataclasses import dataclass
import re
from typing import TYPE_CHECKING
from typing import Callable
from typing import Iterable
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Tuple

from import_sorter.errors import ConfigInvalidError

if TYPE_CHECKING:
    from import_sorter.config import Configuration
    from import_sorter.config import GroupRule
    from import_sorter.extract import ImportStatement
    from import_sorter.parser import Binding
    from import_sorter.project import ProjectOptions

Predicate = Callable[['ImportStatement', Optional['ProjectOptions']], bool]

NODE_BUILTINS = frozenset({
    'assert', 'async_hooks', 'buffer', 'child_process', 'cluster', 'console', 'constants', 'crypto',
    'dgram', 'diagnostics_channel', 'dns', 'domain', 'events', 'fs', 'http', 'http2', 'https',
    'inspector', 'module', 'net', 'os', 'path', 'perf_hooks', 'process', 'punycode', 'querystring',
    'readline', 'repl', 'stream', 'string_decoder', 'sys', 'timers', 'tls', 'trace_events', 'tty',
    'url', 'util', 'v8', 'vm', 'wasi', 'worker_threads', 'zlib',
})

CATCH_ALL = '*'


def _is_builtin(statement: ImportStatement, project: Optional[ProjectOptions]) -> bool:
    specifier = statement.specifier
    if specifier.startswith('node:'):
        return True
    if project is not None and project.module_resolution == 'classic':
        return False
    return specifier.split('/', 1)[0] in NODE_BUILTINS


def _is_relative(statement: ImportStatement, project: Optional[ProjectOptions]) -> bool:
    specifier = statement.specifier
    return specifier in ('.', '..') or specifier.startswith(('./', '../'))


def _is_scoped(statement: ImportStatement, project: Optional[ProjectOptions]) -> bool:
    return statement.specifier.startswith('@') and '/' in statement.specifier


def _is_alias(statement: ImportStatement, project: Optional[ProjectOptions]) -> bool:
    return project is not None and project.is_alias(statement.specifier)


def _is_side_effect(statement: ImportStatement, project: Optional[ProjectOptions]) -> bool:
    return statement.side_effect


def _any(statement: ImportStatement, project: Optional[ProjectOptions]) -> bool:
    return True


def _exact(value: str) -> Predicate:
    return lambda statement, project: statement.specifier == value


def _prefix(value: str) -> Predicate:
    return lambda statement, project: statement.specifier.startswith(value)


def _regex(value: str) -> Predicate:
    try:
        expression = re.compile(value)
    except re.error as exc:
        raise ConfigInvalidError(f"invalid regex {value!r} in group pattern: {exc}") from exc
    return lambda statement, project: expression.search(statement.specifier) is not None


_KEYWORDS = {
    'builtin': _is_builtin,
    'relative': _is_relative,
    'scoped': _is_scoped,
    'alias': _is_alias,
    'side-effect': _is_side_effect,
    CATCH_ALL: _any,
}

_VALUED = {
    'exact': _exact,
    'prefix': _prefix,
    'regex': _regex,
}


class Matcher(NamedTuple):
    kind: str
    value: Optional[str]
    predicate: Predicate

    def matches(self, statement: ImportStatement, project: Optional[ProjectOptions] = None) -> bool:
        return self.predicate(statement, project)


def compile_pattern(pattern: str) -> Matcher:
    """Compile one group pattern such as ``builtin`` or ``prefix:@app/``."""
    if pattern in _KEYWORDS:
        return Matcher(pattern, None, _KEYWORDS[pattern])
    kind, sep, value = pattern.partition(':')
    if sep and value and kind in _VALUED:
        return Matcher(kind, value, _VALUED[kind](value))
    raise ConfigInvalidError(f"unknown group pattern {pattern!r}")


@dataclass(frozen=True)
class Group:
    name: str
    position: int
    matchers: Tuple[Matcher, ...]

    def matches(self, statement: ImportStatement, project: Optional[ProjectOptions] = None) -> bool:
        return any(m.matches(statement, project) for m in self.matchers)


def build_groups(rules: Iterable[GroupRule]) -> Tuple[Group, ...]:
    """Compile group rules, in matching order.

    Raises:
        ConfigInvalidError: On an unknown pattern or a duplicate position.
    """
    groups = []
    positions = {}
    for index, rule in enumerate(rules):
        position = index if rule.position is None else rule.position
        if position in positions:
            raise ConfigInvalidError(
                f"groups {positions[position]!r} and {rule.name!r} share position {position}")
        positions[position] = rule.name
        groups.append(Group(rule.name, position, tuple(compile_pattern(p) for p in rule.patterns)))
    if not any(m.kind == CATCH_ALL for g in groups for m in g.matchers):
        position = max(positions, default=-1) + 1
        groups.append(Group('other', position, (compile_pattern(CATCH_ALL),)))
    return tuple(groups)


def classify_import(statement: ImportStatement, groups: Sequence[Group],
                    project: Optional[ProjectOptions] = None) -> Group:
    """Return the first group in ``groups`` matching ``statement``."""
    for group in groups:
        if group.matches(statement, project):
            return group
    raise ConfigInvalidError('no catch-all group configured')


def _text_key(text: str, case_sensitive: bool):
    return text if case_sensitive else (text.lower(), text)


def _name_text(name: str) -> str:
    return name[1:-1] if name[:1] in ('"', "'") else name


_KIND_ORDER = {'default': 0, 'namespace': 1, 'named': 2}


def sort_bindings(bindings: Iterable[Binding], config: Configuration) -> Tuple[Binding, ...]:
    """Order bindings: default, namespace, then named bindings by imported name."""
    if not config.sort_names:
        return tuple(sorted(bindings, key=lambda b: _KIND_ORDER[b.kind]))
    case_sensitive = config.case_sensitive
    return tuple(sorted(bindings, key=lambda b: (
        _KIND_ORDER[b.kind],
        _text_key(_name_text(b.name), case_sensitive),
        _text_key(b.local, case_sensitive),
        b.type_only,
    )))


def sort_key(statement: ImportStatement, config: Configuration) -> tuple:
    """Return the within-group sort key of ``statement``.

    The original index is the last element, so equal keys keep source order.
    """
    case_sensitive = config.case_sensitive
    specifier = _text_key(statement.specifier, case_sensitive)
    if config.sort_by == 'name' and statement.bindings:
        primary = _text_key(sort_bindings(statement.bindings, config)[0].local, case_sensitive)
    else:
        primary = specifier
    type_rank = 1 if statement.type_only and config.type_only_last else 0
    return (primary, specifier, type_rank, statement.index)
