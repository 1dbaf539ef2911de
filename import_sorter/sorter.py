"""Group, merge and sort import statements."""
from __future__ import annotations
from dataclasses import replace
import logging
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from import_sorter.config import Configuration
from import_sorter.errors import HardConflictError
from import_sorter.errors import ParseUnsupportedError
from import_sorter.extract import ImportStatement
from import_sorter.parser import Binding
from import_sorter.project import ProjectOptions
from import_sorter.rules import build_groups
from import_sorter.rules import classify_import
from import_sorter.rules import sort_key

LOG = logging.getLogger(__name__)


def _identity(binding: Binding) -> Tuple[str, Optional[str]]:
    return binding.kind, binding.name if binding.kind == 'named' else None


def _claim(owners: Dict[str, Binding], binding: Binding, specifier: str) -> None:
    """Register the local name of ``binding``, failing if it is already bound to something else."""
    owner = owners.get(binding.local)
    if owner is not None and _identity(owner) != _identity(binding):
        raise HardConflictError(specifier, f"local name {binding.local!r} is bound twice")
    owners[binding.local] = binding


def _combine(statements: Sequence[ImportStatement]) -> List[ImportStatement]:
    """Merge imports of one module into as few statements as the syntax allows."""
    first = statements[0]
    specifier = first.specifier
    if any(s.inner_comments for s in statements):
        raise ParseUnsupportedError(f"cannot merge imports of {specifier!r} with comments inside")

    heads: Dict[str, Binding] = {}
    named: Dict[Tuple[str, str], Binding] = {}
    owners: Dict[str, Binding] = {}
    for statement in statements:
        for binding in statement.bindings:
            if binding.kind == 'named':
                key = (binding.name, binding.local)
                existing = named.get(key)
                if existing is None:
                    _claim(owners, binding, specifier)
                    named[key] = binding
                elif existing.type_only and not binding.type_only:
                    named[key] = binding
                continue
            existing = heads.get(binding.kind)
            if existing is None:
                _claim(owners, binding, specifier)
                heads[binding.kind] = binding
            elif existing.local != binding.local:
                raise HardConflictError(
                    specifier, f"conflicting {binding.kind} imports {existing.local!r} and {binding.local!r}")

    head_list = [heads[k] for k in ('default', 'namespace') if k in heads]
    named_list = list(named.values())
    if first.type_only:
        # a type-only import may bind a default, a namespace or a list, not a mix
        shapes = [[b] for b in head_list] + ([named_list] if named_list else [])
    elif 'namespace' in heads and named_list:
        shapes = [head_list, named_list]
    else:
        shapes = [head_list + named_list]
    shapes = [s for s in shapes if s] or [[]]
    if not first.type_only and shapes != [[]] and any(s.side_effect for s in statements) \
            and all(b.type_only for b in head_list + named_list):
        # an import of inline type bindings only is erased, taking the side effect with it
        shapes.insert(0, [])

    leading: List[str] = []
    trailing: Optional[str] = None
    for statement in statements:
        leading.extend(statement.leading_comments)
        if statement.trailing_comment is None:
            continue
        if trailing is None:
            trailing = statement.trailing_comment
        else:
            leading.append(statement.trailing_comment)

    LOG.debug(f"Merged {len(statements)} imports of {specifier!r} into {len(shapes)}")
    start = min(s.start for s in statements)
    end = max(s.end for s in statements)
    return [
        replace(first, bindings=tuple(bindings), leading_comments=tuple(leading) if i == 0 else (),
                trailing_comment=trailing if i == 0 else None, start=start, end=end, raw=None)
        for i, bindings in enumerate(shapes)
    ]


def merge_duplicates(statements: Sequence[ImportStatement]) -> List[ImportStatement]:
    """Combine statements importing the same module.

    Statements are only combined with others of the same type-only flag and
    import attributes. Order follows the first occurrence of each module.

    Raises:
        HardConflictError: If two different default or namespace bindings,
            or two bindings sharing a local name, are imported from one module.
    """
    order: List[Tuple] = []
    by_key: Dict[Tuple, List[ImportStatement]] = {}
    for statement in statements:
        key = (statement.specifier, statement.type_only, statement.attributes)
        if key not in by_key:
            by_key[key] = []
            order.append(key)
        by_key[key].append(statement)
    merged: List[ImportStatement] = []
    for key in order:
        same = by_key[key]
        merged.extend(same if len(same) == 1 else _combine(same))
    return merged


def group_imports(statements: Sequence[ImportStatement], config: Configuration,
                  project: Optional[ProjectOptions] = None) -> List[List[ImportStatement]]:
    """Return the non-empty groups of ``statements`` in output order, each sorted."""
    groups = build_groups(config.groups)
    buckets: Dict[int, List[ImportStatement]] = {g.position: [] for g in groups}
    for statement in statements:
        buckets[classify_import(statement, groups, project).position].append(statement)

    result: List[List[ImportStatement]] = []
    for position in sorted(buckets):
        bucket = buckets[position]
        if config.merge_duplicates:
            bucket = merge_duplicates(bucket)
        if bucket:
            result.append(sorted(bucket, key=lambda s: sort_key(s, config)))
    LOG.debug(f"Sorted {len(statements)} imports into {len(result)} groups")
    return result
