"""Extract import statements and the import region from a parsed file.

Comment ownership is decided here, once: a comment starting on the line
where an import ends is that import's trailing comment; other comments
directly above an import are its leading comments and move with it. Above the
first import, comments separated from what follows by ``file_comment_gap``
blank lines, and pragma comments, are file-level and stay where they are.
"""
from __future__ import annotations
from dataclasses import dataclass
from dataclasses import replace
import re
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from import_sorter.parser import Binding
from import_sorter.parser import Comment
from import_sorter.parser import SyntaxTree

_LINE_BREAK_RE = re.compile(r'\r\n|[\n\r\u2028\u2029]')
_PRAGMA_RE = re.compile(
    r'^///\s*<'
    r'|^/\*!'
    r'|@(?:flow|license|preserve|jsx\w*)\b'
    r'|@ts-nocheck\b'
    r'|^/\*\s*eslint-disable(?![-\w])'
    r'|import-sorter:\s*disable'
)


@dataclass(frozen=True)
class ImportStatement:
    """One import declaration with the comments attached to it.

    ``raw`` is the original statement text; it is None for statements built
    by merging several imports.
    """

    specifier: str
    bindings: Tuple[Binding, ...] = ()
    type_only: bool = False
    leading_comments: Tuple[str, ...] = ()
    trailing_comment: Optional[str] = None
    start: int = 0
    end: int = 0
    raw: Optional[str] = None
    quote: str = "'"
    attributes: Optional[str] = None
    has_semicolon: bool = True
    inner_comments: bool = False
    index: int = 0

    @property
    def side_effect(self) -> bool:
        return not self.bindings


@dataclass(frozen=True)
class ImportRegion:
    start: int
    end: int


def line_breaks(text: str) -> int:
    return len(_LINE_BREAK_RE.findall(text))


def is_pragma(comment: Comment) -> bool:
    return bool(_PRAGMA_RE.search(comment.text))


def _blank_lines(text: str) -> int:
    return max(0, line_breaks(text) - 1)


def _comment_lines(source: str, comments: Sequence[Comment]) -> Tuple[str, ...]:
    lines: List[str] = []
    previous: Optional[Comment] = None
    for comment in comments:
        if previous is not None and not line_breaks(source[previous.end:comment.start]):
            lines[-1] += source[previous.end:comment.start] + comment.text
        else:
            lines.append(comment.text)
        previous = comment
    return tuple(lines)


def _split_file_comments(source: str, comments: Sequence[Comment], first_start: int,
                         gap: int) -> Tuple[List[Comment], List[Comment]]:
    """Split comments above the first import into (file-level, attached)."""
    following = first_start
    for i in range(len(comments) - 1, -1, -1):
        comment = comments[i]
        if is_pragma(comment) or _blank_lines(source[comment.end:following]) >= gap:
            return list(comments[:i + 1]), list(comments[i + 1:])
        following = comment.start
    return [], list(comments)


def extract_imports(tree: SyntaxTree, file_comment_gap: int = 1) -> Tuple[List[ImportStatement], Optional[ImportRegion]]:
    """Return the imports of ``tree`` and the region they occupy.

    Returns ([], None) when the file has no static imports.
    """
    source = tree.source
    nodes = [n for n in tree.statements if n.kind == 'import']
    if not nodes:
        return [], None

    floor = tree.shebang_end
    for node in tree.statements:
        if node.kind == 'directive':
            floor = max(floor, node.end)

    inner = set()
    outer: List[Comment] = []
    for comment in tree.comments:
        if comment.start < floor:
            continue
        owner = next((i for i, n in enumerate(nodes) if n.start < comment.start < n.end), None)
        if owner is None:
            outer.append(comment)
        else:
            inner.add(owner)

    statements: List[ImportStatement] = []
    region_start = nodes[0].start
    previous_end = floor
    position = 0

    for index, node in enumerate(nodes):
        leading: List[Comment] = []
        while position < len(outer) and outer[position].start < node.start:
            leading.append(outer[position])
            position += 1
        if statements:
            trailing, leading = _split_trailing(source, leading, previous_end)
            statements[-1] = _with_trailing(source, statements[-1], trailing)
        else:
            if floor:
                # comments on the shebang/directive line stay with it
                _, leading = _split_trailing(source, leading, floor)
            _, leading = _split_file_comments(source, leading, node.start, file_comment_gap)
            if leading:
                region_start = leading[0].start
        statements.append(ImportStatement(
            specifier=node.specifier,
            bindings=node.bindings,
            type_only=node.type_only,
            leading_comments=_comment_lines(source, leading),
            start=node.start,
            end=node.end,
            raw=source[node.start:node.end],
            quote=node.quote,
            attributes=node.attributes,
            has_semicolon=node.has_semicolon,
            inner_comments=index in inner,
            index=index,
        ))
        previous_end = node.end

    trailing, _ = _split_trailing(source, outer[position:], previous_end)
    statements[-1] = _with_trailing(source, statements[-1], trailing)
    region_end = trailing[-1].end if trailing else nodes[-1].end
    return statements, ImportRegion(region_start, region_end)


def _split_trailing(source: str, comments: Sequence[Comment], previous_end: int) -> Tuple[List[Comment], List[Comment]]:
    """Split comments into those on the line ending at ``previous_end`` and the rest."""
    trailing: List[Comment] = []
    for comment in comments:
        if line_breaks(source[previous_end:comment.start]):
            break
        trailing.append(comment)
        previous_end = comment.end
    return trailing, list(comments[len(trailing):])


def _with_trailing(source: str, statement: ImportStatement, trailing: Sequence[Comment]) -> ImportStatement:
    if not trailing:
        return statement
    text = source[trailing[0].start:trailing[-1].end]
    return replace(statement, trailing_comment=text)
