import pytest

from import_sorter.config import DEFAULT_CONFIG
from import_sorter.config import GroupRule
from import_sorter.config import merge_config
from import_sorter.errors import ConfigInvalidError
from import_sorter.errors import ParseUnsupportedError
from import_sorter.extract import ImportStatement
from import_sorter.extract import extract_imports
from import_sorter.parser import Binding
from import_sorter.parser import Dialect
from import_sorter.parser import dialect_for
from import_sorter.parser import parse
from import_sorter.project import ProjectOptions
from import_sorter.rules import build_groups
from import_sorter.rules import classify_import
from import_sorter.rules import compile_pattern
from import_sorter.rules import sort_bindings
from import_sorter.rules import sort_key

TS = Dialect(typescript=True)


def imports_of(source, dialect=TS):
    return [n for n in parse(source, dialect).statements if n.kind == "import"]


def test_dialect_for():
    assert dialect_for("a/b.tsx") == Dialect(typescript=True, jsx=True)
    assert dialect_for("b.mjs") == Dialect(typescript=False, jsx=False)
    assert dialect_for("setup.py") is None


def test_parse_bindings():
    nodes = imports_of("import a, * as ns from 'x';\nimport {b as c, d} from \"y\";\nimport 'z'\n")
    assert nodes[0].bindings == (Binding("default", "a"), Binding("namespace", "ns"))
    assert nodes[0].quote == "'"
    assert nodes[1].bindings == (Binding("named", "b", "c"), Binding("named", "d"))
    assert nodes[1].specifier == "y"
    assert nodes[1].quote == '"'
    assert nodes[2].bindings == ()
    assert not nodes[2].has_semicolon


def test_parse_type_modifiers():
    nodes = imports_of(
        "import type {A} from 'a';\n"
        "import {type B, C} from 'b';\n"
        "import type from 'c';\n"
        "import {type as t} from 'd';\n"
    )
    assert nodes[0].type_only
    assert nodes[0].bindings == (Binding("named", "A"),)
    assert nodes[1].bindings == (Binding("named", "B", None, True), Binding("named", "C"))
    assert not nodes[2].type_only
    assert nodes[2].bindings == (Binding("default", "type"),)
    assert nodes[3].bindings == (Binding("named", "type", "t"),)


def test_parse_import_attributes():
    node = imports_of("import data from './data.json' with { type: 'json' };\n")[0]
    assert node.attributes == "with { type: 'json' }"
    assert node.has_semicolon


def test_parse_stops_at_first_statement():
    source = "import a from 'a';\nconst x = 1;\nimport b from 'b';\n"
    tree = parse(source, TS)
    assert [n.specifier for n in tree.statements] == ["a"]
    assert tree.code_start == source.index("const")


def test_dynamic_import_is_code():
    tree = parse("import('x');\n", TS)
    assert tree.statements == ()
    assert tree.code_start == 0


def test_shebang_and_directive_are_skipped():
    source = "#!/usr/bin/env node\n'use strict';\nimport a from 'a';\n"
    tree = parse(source, Dialect())
    assert tree.shebang_end == len("#!/usr/bin/env node")
    assert [n.kind for n in tree.statements] == ["directive", "import"]


@pytest.mark.parametrize("source", [
    "import fs = require('fs');\n",
    "import a from 'a",
    "import {a b} from 'a';\n",
    "import {'a-b'} from 'a';\n",
    "import a {b} from 'a';\n",
    "import from 'a';\n",
])
def test_unsupported_imports(source):
    with pytest.raises(ParseUnsupportedError):
        parse(source, TS)


def test_extract_attaches_comments():
    source = (
        "// header\n"
        "\n"
        "// about b\n"
        "import b from 'b'; // trailing b\n"
        "import a from 'a';\n"
        "console.log(a, b);\n"
    )
    statements, region = extract_imports(parse(source, TS))
    assert statements[0].leading_comments == ("// about b",)
    assert statements[0].trailing_comment == "// trailing b"
    assert statements[1].leading_comments == ()
    assert region.start == source.index("// about b")
    assert region.end == source.index("\nconsole")


def test_extract_keeps_pragmas_in_place():
    source = "// @flow\nimport b from 'b';\n"
    statements, region = extract_imports(parse(source, Dialect()))
    assert statements[0].leading_comments == ()
    assert region.start == source.index("import")


def test_file_comment_gap_is_configurable():
    source = "// note\n\nimport a from 'a';\n"
    statements, region = extract_imports(parse(source, TS), file_comment_gap=1)
    assert statements[0].leading_comments == ()
    assert region.start == source.index("import")

    statements, region = extract_imports(parse(source, TS), file_comment_gap=2)
    assert statements[0].leading_comments == ("// note",)
    assert region.start == 0


def test_extract_region_covers_last_trailing_comment():
    source = "import a from 'a'; // keep\n\nfoo();\n"
    statements, region = extract_imports(parse(source, TS))
    assert statements[0].trailing_comment == "// keep"
    assert region.end == source.index("\n\nfoo")


def test_extract_marks_inner_comments():
    statements, _ = extract_imports(parse("import {a, /* b */ c} from 'x';\n", TS))
    assert statements[0].inner_comments


def test_extract_without_imports():
    assert extract_imports(parse("const a = 1;\n", TS)) == ([], None)


def test_compile_pattern():
    assert compile_pattern("prefix:@app/").kind == "prefix"
    assert compile_pattern("*").kind == "*"
    with pytest.raises(ConfigInvalidError):
        compile_pattern("prefix:")


def test_build_groups_adds_catch_all():
    groups = build_groups([GroupRule("builtin", ("builtin",)), GroupRule("relative", ("relative",))])
    assert [(g.name, g.position) for g in groups] == [("builtin", 0), ("relative", 1), ("other", 2)]

    groups = build_groups(DEFAULT_CONFIG.groups)
    assert [g.name for g in groups] == ["builtin", "alias", "relative", "external"]


@pytest.mark.parametrize("specifier,expected", [
    ("fs", "builtin"),
    ("fs/promises", "builtin"),
    ("node:test", "builtin"),
    ("./a", "relative"),
    ("..", "relative"),
    ("@scope/pkg", "scoped"),
    ("react", "react"),
    ("react-dom", "react"),
    ("lodash", "other"),
])
def test_classify_import(specifier, expected):
    groups = build_groups([
        GroupRule("builtin", ("builtin",)),
        GroupRule("relative", ("relative",)),
        GroupRule("react", ("exact:react", "regex:^react-")),
        GroupRule("scoped", ("scoped",)),
    ])
    assert classify_import(ImportStatement(specifier), groups).name == expected


def test_first_matching_group_wins():
    groups = build_groups([GroupRule("any", ("*",), 1), GroupRule("builtin", ("builtin",), 0)])
    assert classify_import(ImportStatement("fs"), groups).name == "any"


def test_classify_alias_and_module_resolution():
    groups = build_groups(DEFAULT_CONFIG.groups)
    project = ProjectOptions(paths={"@app/*": ("src/*",)})
    assert classify_import(ImportStatement("@app/util"), groups, project).name == "alias"
    assert classify_import(ImportStatement("@app/util"), groups).name == "external"

    classic = ProjectOptions(module_resolution="classic")
    assert classify_import(ImportStatement("fs"), groups, classic).name == "external"
    assert classify_import(ImportStatement("node:fs"), groups, classic).name == "builtin"


def test_sort_bindings():
    bindings = (Binding("named", "b"), Binding("named", "B"), Binding("default", "z"), Binding("named", "a"))
    names = [b.name for b in sort_bindings(bindings, DEFAULT_CONFIG)]
    assert names == ["z", "B", "a", "b"]

    insensitive = merge_config(DEFAULT_CONFIG, {"caseSensitive": False})
    names = [b.name for b in sort_bindings(bindings, insensitive)]
    assert names == ["z", "a", "B", "b"]

    unsorted = merge_config(DEFAULT_CONFIG, {"sortNames": False})
    names = [b.name for b in sort_bindings(bindings, unsorted)]
    assert names == ["z", "b", "B", "a"]


def test_sort_key_places_type_only_last():
    value = ImportStatement("x", (Binding("named", "a"),), index=1)
    types = ImportStatement("x", (Binding("named", "A"),), type_only=True, index=0)
    ordered = sorted([types, value], key=lambda s: sort_key(s, DEFAULT_CONFIG))
    assert ordered == [value, types]

    keep = merge_config(DEFAULT_CONFIG, {"typeOnlyLast": False})
    assert sorted([value, types], key=lambda s: sort_key(s, keep)) == [types, value]


def test_sort_by_name():
    config = merge_config(DEFAULT_CONFIG, {"sortBy": "name"})
    first = ImportStatement("a", (Binding("default", "zeta"),), index=0)
    second = ImportStatement("b", (Binding("default", "alpha"),), index=1)
    side_effect = ImportStatement("c", index=2)
    ordered = sorted([first, second, side_effect], key=lambda s: sort_key(s, config))
    assert ordered == [second, side_effect, first]
