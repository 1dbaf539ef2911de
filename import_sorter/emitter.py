"""Render sorted imports back to source text."""
from __future__ import annotations
import re
from typing import List
from typing import Sequence

from import_sorter.config import Configuration
from import_sorter.errors import ParseUnsupportedError
from import_sorter.extract import ImportRegion
from import_sorter.extract import ImportStatement
from import_sorter.parser import Binding
from import_sorter.rules import sort_bindings

QUOTES = {'single': "'", 'double': '"'}

_LINE_BREAK_RE = re.compile(r'\r\n|\r|\n')


def normalize_eol(text: str, eol: str) -> str:
    return _LINE_BREAK_RE.sub(eol, text)


def requote(value: str, quote: str, target: str) -> str:
    """Quote the string body ``value`` (written between ``quote``) with ``target``."""
    if quote == target:
        return quote + value + quote
    out: List[str] = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == '\\' and i + 1 < len(value):
            escaped = value[i + 1]
            out.append(escaped if escaped == quote else char + escaped)
            i += 2
            continue
        out.append('\\' + char if char == target else char)
        i += 1
    return target + ''.join(out) + target


def _target_quote(statement: ImportStatement, config: Configuration) -> str:
    return statement.quote if config.quote_mark == 'preserve' else QUOTES[config.quote_mark]


def _semicolon(statement: ImportStatement, config: Configuration) -> str:
    if config.semicolon == 'always' or (config.semicolon == 'preserve' and statement.has_semicolon):
        return ';'
    return ''


def _is_unchanged(statement: ImportStatement, config: Configuration) -> bool:
    return (statement.raw is not None
            and sort_bindings(statement.bindings, config) == statement.bindings
            and _target_quote(statement, config) == statement.quote
            and bool(_semicolon(statement, config)) == statement.has_semicolon)


def _named(binding: Binding, quote: str) -> str:
    name = binding.name
    if name[:1] in ('"', "'"):
        name = requote(name[1:-1], name[0], quote)
    text = f"{name} as {binding.alias}" if binding.alias else name
    return 'type ' + text if binding.type_only else text


def render_import(statement: ImportStatement, config: Configuration, eol: str = '\n') -> str:
    """Render one import declaration.

    Statements with comments inside them are reproduced verbatim when nothing
    about them changes.

    Raises:
        ParseUnsupportedError: If a statement with inner comments would have
            to be rewritten.
    """
    if statement.inner_comments:
        if _is_unchanged(statement, config):
            return normalize_eol(statement.raw, eol)
        raise ParseUnsupportedError(f"cannot rewrite import of {statement.specifier!r} with comments inside")

    quote = _target_quote(statement, config)
    source = requote(statement.specifier, statement.quote, quote)
    tail = (' ' + statement.attributes if statement.attributes else '') + _semicolon(statement, config)
    keyword = 'import type' if statement.type_only else 'import'
    if statement.side_effect:
        if statement.type_only:
            return f"{keyword} {{}} from {source}{tail}"
        return f"{keyword} {source}{tail}"

    heads: List[str] = []
    named: List[str] = []
    for binding in sort_bindings(statement.bindings, config):
        if binding.kind == 'default':
            heads.append(binding.name)
        elif binding.kind == 'namespace':
            heads.append(f"* as {binding.name}")
        else:
            named.append(_named(binding, quote))

    def assemble(braces: str) -> str:
        clause = ', '.join(heads + ([braces] if braces else []))
        return f"{keyword} {clause} from {source}{tail}"

    if not named:
        return assemble('')
    space = ' ' if config.bracket_spacing else ''
    line = assemble('{' + space + ', '.join(named) + space + '}')
    if config.max_line_length and len(line) > config.max_line_length:
        indent = ' ' * config.tab_size
        comma = ',' if config.trailing_comma == 'multiline' else ''
        items = (',' + eol).join(indent + n for n in named)
        line = assemble('{' + eol + items + comma + eol + '}')
    return line


def render_region(groups: Sequence[Sequence[ImportStatement]], config: Configuration, eol: str = '\n') -> str:
    """Render grouped imports with their comments, groups separated by blank lines."""
    blocks: List[str] = []
    for group in groups:
        lines: List[str] = []
        for statement in group:
            lines.extend(normalize_eol(c, eol) for c in statement.leading_comments)
            text = render_import(statement, config, eol)
            if statement.trailing_comment:
                text += ' ' + normalize_eol(statement.trailing_comment, eol)
            lines.append(text)
        blocks.append(eol.join(lines))
    return (eol * (config.empty_lines_between_groups + 1)).join(blocks)


def splice(source: str, region: ImportRegion, text: str) -> str:
    """Replace ``region`` of ``source`` with ``text``."""
    return source[:region.start] + text + source[region.end:]
