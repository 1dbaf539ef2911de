"""Parser module for import-sorter.

This module tokenizes the head of a JavaScript or TypeScript file and returns
the statements the sorter cares about: the directive prologue and the static
``import`` declarations that follow it. Scanning stops at the first other
statement, so the body of the file is never tokenized.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import PurePath
import re
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple

from import_sorter.errors import ParseUnsupportedError

TS_EXTENSIONS = {'.ts', '.tsx', '.mts', '.cts'}
JS_EXTENSIONS = {'.js', '.jsx', '.mjs', '.cjs'}
JSX_EXTENSIONS = {'.jsx', '.tsx'}

_TOKEN_RE = re.compile(r"""
    (?P<newline>\r\n|[\n\r\u2028\u2029])
  | (?P<space>[\ \t\f\v\ufeff\xa0]+)
  | (?P<line_comment>//[^\r\n\u2028\u2029]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<string>'(?:[^'\\\r\n]|\\.)*'|"(?:[^"\\\r\n]|\\.)*")
  | (?P<bad>/\*|['"])
  | (?P<name>[A-Za-z_$\u0080-\uffff][\w$\u0080-\uffff]*)
  | (?P<punct>.)
""", re.VERBOSE | re.DOTALL)


@dataclass(frozen=True)
class Dialect:
    typescript: bool = False
    jsx: bool = False


def dialect_for(file_name: str) -> Optional[Dialect]:
    """Return the dialect implied by the file extension, or None if unsupported."""
    suffix = PurePath(file_name).suffix.lower()
    if suffix not in TS_EXTENSIONS and suffix not in JS_EXTENSIONS:
        return None
    return Dialect(typescript=suffix in TS_EXTENSIONS, jsx=suffix in JSX_EXTENSIONS)


@dataclass(frozen=True)
class Binding:
    """One name bound by an import.

    ``kind`` is 'default', 'namespace' or 'named'. For named bindings
    ``name`` is the imported name (a quoted string for string names) and
    ``alias`` the local name, if renamed.
    """

    kind: str
    name: str
    alias: Optional[str] = None
    type_only: bool = False

    @property
    def local(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class Comment:
    text: str
    start: int
    end: int

    @property
    def is_block(self) -> bool:
        return self.text.startswith('/*')


@dataclass(frozen=True)
class Node:
    """A directive or an import declaration.

    For imports, ``specifier`` is the module string without its quotes and
    ``quote`` the quote character it was written with. ``end`` includes the
    semicolon, if any.
    """

    kind: str
    start: int
    end: int
    specifier: str = ''
    quote: str = "'"
    bindings: Tuple[Binding, ...] = ()
    type_only: bool = False
    attributes: Optional[str] = None
    has_semicolon: bool = False


@dataclass(frozen=True)
class SyntaxTree:
    source: str
    dialect: Dialect
    shebang_end: int
    statements: Tuple[Node, ...]
    comments: Tuple[Comment, ...]
    code_start: Optional[int]


class Token(NamedTuple):
    kind: str
    value: str
    start: int
    end: int
    newline_before: bool


class _Scanner:
    """Lazy tokenizer with lookahead that records comments as it goes."""

    def __init__(self, source: str, pos: int) -> None:
        self._source = source
        self._pos = pos
        self._buffer: List[Token] = []
        self.comments: List[Comment] = []
        self.last_end = pos

    def _read(self) -> Token:
        newline = False
        while True:
            match = _TOKEN_RE.match(self._source, self._pos)
            if match is None:
                end = len(self._source)
                return Token('eof', '', end, end, newline)
            self._pos = match.end()
            kind = match.lastgroup
            if kind == 'newline':
                newline = True
            elif kind in ('line_comment', 'block_comment'):
                text = match.group()
                self.comments.append(Comment(text, match.start(), match.end()))
                if kind == 'block_comment' and ('\n' in text or '\r' in text):
                    newline = True
            elif kind != 'space':
                return Token(kind, match.group(), match.start(), match.end(), newline)

    def peek(self, ahead: int = 0) -> Token:
        while len(self._buffer) <= ahead:
            self._buffer.append(self._read())
        return self._buffer[ahead]

    def next(self) -> Token:
        token = self.peek()
        self._buffer.pop(0)
        self.last_end = token.end
        return token

    def expect(self, value: Optional[str] = None, kind: Optional[str] = None) -> Token:
        token = self.next()
        if token.kind == 'bad':
            raise ParseUnsupportedError(f"unterminated string or comment at offset {token.start}")
        if (value is not None and token.value != value) or (kind is not None and token.kind != kind):
            wanted = repr(value) if value is not None else kind
            raise ParseUnsupportedError(f"expected {wanted} at offset {token.start}, got {token.value!r}")
        return token


def _unquote(token: Token) -> Tuple[str, str]:
    return token.value[1:-1], token.value[0]


def _is_name(token: Token, value: Optional[str] = None) -> bool:
    return token.kind == 'name' and (value is None or token.value == value)


def _parse_named(scanner: _Scanner, dialect: Dialect) -> List[Binding]:
    bindings: List[Binding] = []
    scanner.expect('{')
    while scanner.peek().value != '}':
        token = scanner.next()
        if token.kind not in ('name', 'string'):
            raise ParseUnsupportedError(f"unexpected {token.value!r} in import list at offset {token.start}")
        type_only = False
        if dialect.typescript and _is_name(token, 'type'):
            following = scanner.peek()
            if following.value in (',', '}'):
                pass
            elif _is_name(following, 'as') and scanner.peek(2).value in (',', '}') \
                    and not _is_name(scanner.peek(1), 'as'):
                # `type as x`: the binding named 'type', renamed
                pass
            else:
                type_only = True
                token = scanner.next()
        alias = None
        if _is_name(scanner.peek(), 'as'):
            scanner.next()
            alias = scanner.expect(kind='name').value
        elif token.kind == 'string':
            raise ParseUnsupportedError(f"string import name needs an alias at offset {token.start}")
        bindings.append(Binding('named', token.value, alias, type_only))
        if scanner.peek().value != ',':
            break
        scanner.next()
    scanner.expect('}')
    return bindings


def _is_type_modifier(scanner: _Scanner) -> bool:
    following = scanner.peek(1)
    if following.value in ('{', '*'):
        return True
    if _is_name(following, 'from'):
        # `import type from 'x'` binds a default named 'type'
        return _is_name(scanner.peek(2), 'from')
    return _is_name(following)


def _parse_import(scanner: _Scanner, source: str, dialect: Dialect) -> Node:
    start = scanner.expect('import').start
    bindings: List[Binding] = []
    type_only = False
    if scanner.peek().kind != 'string':
        if dialect.typescript and _is_name(scanner.peek(), 'type') and _is_type_modifier(scanner):
            scanner.next()
            type_only = True
        if _is_name(scanner.peek()) and scanner.peek(1).value == '=':
            raise ParseUnsupportedError(f"'import = require' is not supported (offset {start})")
        clause = scanner.peek().value in ('*', '{')
        if _is_name(scanner.peek()) and not (_is_name(scanner.peek(), 'from') and scanner.peek(1).kind == 'string'):
            bindings.append(Binding('default', scanner.next().value))
            clause = scanner.peek().value == ','
            if clause:
                scanner.next()
                if scanner.peek().value not in ('*', '{'):
                    raise ParseUnsupportedError(f"unexpected {scanner.peek().value!r} at offset {scanner.peek().start}")
        elif not clause:
            token = scanner.peek()
            raise ParseUnsupportedError(f"expected an import clause at offset {token.start}, got {token.value!r}")
        if clause and scanner.peek().value == '*':
            scanner.next()
            scanner.expect('as')
            bindings.append(Binding('namespace', scanner.expect(kind='name').value))
        elif clause:
            bindings.extend(_parse_named(scanner, dialect))
        scanner.expect('from')
    specifier, quote = _unquote(scanner.expect(kind='string'))
    attributes = None
    keyword = scanner.peek()
    if (_is_name(keyword, 'with') or _is_name(keyword, 'assert')) and not keyword.newline_before \
            and scanner.peek(1).value == '{':
        scanner.next()
        scanner.expect('{')
        while scanner.peek().value != '}':
            if scanner.peek().kind in ('eof', 'bad'):
                raise ParseUnsupportedError(f"unterminated import attributes at offset {keyword.start}")
            scanner.next()
        close = scanner.expect('}')
        attributes = source[keyword.start:close.end]
    has_semicolon = scanner.peek().value == ';'
    if has_semicolon:
        scanner.next()
    else:
        following = scanner.peek()
        if following.kind != 'eof' and not following.newline_before:
            raise ParseUnsupportedError(f"unexpected {following.value!r} after import at offset {following.start}")
    return Node('import', start, scanner.last_end, specifier, quote, tuple(bindings), type_only, attributes,
                has_semicolon)


def parse(source: str, dialect: Optional[Dialect] = None) -> SyntaxTree:
    """Parse the directive prologue and leading imports of ``source``.

    Raises:
        ParseUnsupportedError: If an import declaration is malformed or uses
            a form that cannot be reordered (``import x = require(...)``).
    """
    dialect = dialect or Dialect()
    shebang_end = 0
    if source.startswith('#!'):
        shebang_end = re.match(r'[^\r\n]*', source).end()
    scanner = _Scanner(source, shebang_end)
    statements: List[Node] = []
    code_start: Optional[int] = None
    prologue = True
    while True:
        token = scanner.peek()
        if token.kind == 'eof':
            break
        if prologue and token.kind == 'string':
            following = scanner.peek(1)
            if following.value == ';' or following.kind == 'eof' or following.newline_before:
                scanner.next()
                end = scanner.next().end if following.value == ';' else token.end
                statements.append(Node('directive', token.start, end))
                continue
        prologue = False
        if _is_name(token, 'import') and scanner.peek(1).value not in ('(', '.'):
            statements.append(_parse_import(scanner, source, dialect))
            continue
        code_start = token.start
        break
    limit = code_start if code_start is not None else len(source)
    comments = tuple(c for c in scanner.comments if c.start < limit)
    return SyntaxTree(source, dialect, shebang_end, tuple(statements), comments, code_start)
