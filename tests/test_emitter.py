import pytest

from import_sorter.config import DEFAULT_CONFIG
from import_sorter.config import merge_config
from import_sorter.emitter import render_import
from import_sorter.emitter import render_region
from import_sorter.emitter import requote
from import_sorter.emitter import splice
from import_sorter.errors import ParseUnsupportedError
from import_sorter.extract import ImportRegion
from import_sorter.extract import ImportStatement
from import_sorter.parser import Binding


def config(**overrides):
    return merge_config(DEFAULT_CONFIG, overrides)


def test_requote():
    assert requote("x", "'", "'") == "'x'"
    assert requote("it's", '"', "'") == "'it\\'s'"
    assert requote('say \\"hi\\"', '"', "'") == "'say \"hi\"'"


def test_render_import_orders_bindings_and_quotes():
    statement = ImportStatement(
        "x", (Binding("named", "b"), Binding("default", "X"), Binding("named", "a", "c")), quote='"')
    assert render_import(statement, DEFAULT_CONFIG) == "import X, {a as c, b} from 'x';"


def test_render_import_variants():
    namespace = ImportStatement("x", (Binding("namespace", "ns"),))
    assert render_import(namespace, DEFAULT_CONFIG) == "import * as ns from 'x';"

    side_effect = ImportStatement("./polyfill", quote='"')
    assert render_import(side_effect, DEFAULT_CONFIG) == "import './polyfill';"

    empty_type = ImportStatement("x", type_only=True)
    assert render_import(empty_type, DEFAULT_CONFIG) == "import type {} from 'x';"

    typed = ImportStatement("x", (Binding("named", "B", None, True), Binding("named", "a")))
    assert render_import(typed, DEFAULT_CONFIG) == "import {type B, a} from 'x';"

    attributes = ImportStatement("./d.json", (Binding("default", "d"),), attributes="with { type: 'json' }")
    assert render_import(attributes, DEFAULT_CONFIG) == "import d from './d.json' with { type: 'json' };"

    string_name = ImportStatement("x", (Binding("named", '"a-b"', "ab"),))
    assert render_import(string_name, DEFAULT_CONFIG) == "import {'a-b' as ab} from 'x';"


def test_render_import_style_options():
    statement = ImportStatement("x", (Binding("named", "a"),), quote='"', has_semicolon=False)
    assert render_import(statement, config(bracketSpacing=True)) == "import { a } from 'x';"
    assert render_import(statement, config(semicolon="never")) == "import {a} from 'x'"
    assert render_import(statement, config(semicolon="preserve")) == "import {a} from 'x'"
    assert render_import(statement, config(quoteMark="preserve")) == 'import {a} from "x";'
    assert render_import(statement, config(quoteMark="double")) == 'import {a} from "x";'


def test_render_import_wraps_long_lines():
    statement = ImportStatement("letters", (Binding("named", "beta"), Binding("named", "alpha")))
    assert render_import(statement, config(maxLineLength=30)) == (
        "import {\n"
        "  alpha,\n"
        "  beta,\n"
        "} from 'letters';"
    )
    assert render_import(statement, config(maxLineLength=30, tabSize=4, trailingComma="none"), "\r\n") == (
        "import {\r\n"
        "    alpha,\r\n"
        "    beta\r\n"
        "} from 'letters';"
    )
    assert render_import(statement, config(maxLineLength=0)) == "import {alpha, beta} from 'letters';"


def test_render_import_reuses_raw_text_with_inner_comments():
    raw = "import {a /* keep */} from 'x';"
    statement = ImportStatement("x", (Binding("named", "a"),), raw=raw, inner_comments=True)
    assert render_import(statement, DEFAULT_CONFIG) == raw

    with pytest.raises(ParseUnsupportedError):
        render_import(statement, config(quoteMark="double"))


def test_render_region():
    a = ImportStatement("a", (Binding("default", "a"),), leading_comments=("// about a",))
    b = ImportStatement("./b", (Binding("default", "b"),), trailing_comment="// why")
    assert render_region([[a], [b]], DEFAULT_CONFIG) == (
        "// about a\n"
        "import a from 'a';\n"
        "\n"
        "import b from './b'; // why"
    )
    assert render_region([[a], [b]], config(emptyLinesBetweenGroups=0), "\r\n") == (
        "// about a\r\n"
        "import a from 'a';\r\n"
        "import b from './b'; // why"
    )


def test_splice():
    assert splice("head\nOLD\ntail", ImportRegion(5, 8), "NEW") == "head\nNEW\ntail"
