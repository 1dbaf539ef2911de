import sys

from import_sorter.config import Configuration
from import_sorter.parser import parse
from import_sorter.style_rules import LinterExceptions
from import_sorter.style_rules import eslint_overrides
from import_sorter.style_rules import find_suppressions
from import_sorter.style_rules import load_eslint_rules


def suppressions_of(source):
    return find_suppressions(parse(source).comments, source)


def test_eslint_overrides_translate_rules():
    rules = {
        "quotes": ["error", "double"],
        "semi": ["error", "never"],
        "comma-dangle": ["error", "always-multiline"],
        "object-curly-spacing": [2, "always"],
        "max-len": ["warn", {"code": 100}],
        "indent": ["error", 4],
        "linebreak-style": ["error", "windows"],
        "sort-imports": ["error", {"ignoreCase": True}],
    }
    assert eslint_overrides(rules) == Configuration(
        quote_mark="double",
        semicolon="never",
        trailing_comma="multiline",
        bracket_spacing=True,
        max_line_length=100,
        tab_size=4,
        eol="CRLF",
        case_sensitive=False,
    )


def test_eslint_overrides_defaults_and_disabled_rules():
    assert eslint_overrides({"quotes": "off", "semi": 0}) == Configuration()
    assert eslint_overrides({"comma-dangle": "error", "quotes": "warn"}) == Configuration(
        trailing_comma="none", quote_mark="double")


def test_eslint_overrides_skip_ignored_rules():
    rules = {"quotes": ["error", "double"], "semi": ["error", "never"]}
    assert eslint_overrides(rules, ["quotes"]) == Configuration(semicolon="never")
    assert eslint_overrides(rules, ["*"]) == Configuration()


def test_load_eslint_rules_nearest_wins(tmp_path):
    (tmp_path / ".eslintrc.json").write_text(
        '{"root": true, "rules": {"quotes": ["error", "double"], "semi": "error"}}')
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / ".eslintrc").write_text('{\n  // local override\n  "rules": {"quotes": ["error", "single"]}\n}\n')
    assert load_eslint_rules(sub / "x.ts") == {"quotes": ["error", "single"], "semi": "error"}


def test_load_eslint_rules_from_package_json(tmp_path):
    (tmp_path / "package.json").write_text(
        '{"eslintConfig": {"root": true, "rules": {"semi": ["error", "never"]}}}')
    assert load_eslint_rules(tmp_path / "x.js") == {"semi": ["error", "never"]}


def test_load_eslint_rules_reads_yaml_eslintrc(tmp_path):
    (tmp_path / ".eslintrc.json").write_text('{"root": true, "rules": {"semi": "error"}}')
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / ".eslintrc").write_text("rules:\n  quotes: [error, double]\n")
    assert load_eslint_rules(sub / "x.js") == {"semi": "error", "quotes": ["error", "double"]}


def test_load_eslint_rules_reads_yml_files(tmp_path):
    (tmp_path / ".eslintrc.yml").write_text(
        "root: true\n"
        "rules:\n"
        "  semi: [error, never]\n"
        "  max-len: [warn, {code: 120}]\n"
    )
    (tmp_path / ".eslintrc.json").write_text('{"rules": {"semi": "error"}}')
    rules = load_eslint_rules(tmp_path / "x.ts")
    assert rules == {"semi": ["error", "never"], "max-len": ["warn", {"code": 120}]}
    assert eslint_overrides(rules) == Configuration(semicolon="never", max_line_length=120)


def test_find_suppressions_next_line():
    found = suppressions_of("// eslint-disable-next-line sort-imports -- legacy order\nimport b from 'b';\n")
    assert found == LinterExceptions(((2, 2),))


def test_find_suppressions_block():
    source = (
        "/* eslint-disable import/order */\n"
        "import b from 'b';\n"
        "/* eslint-enable import/order */\n"
        "import a from 'a';\n"
    )
    assert suppressions_of(source) == LinterExceptions(((1, 3),))


def test_find_suppressions_unclosed_block():
    found = suppressions_of("/* eslint-disable simple-import-sort/imports */\nimport b from 'b';\n")
    assert found.ranges == ((1, sys.maxsize),)


def test_find_suppressions_ignores_other_rules():
    assert suppressions_of("/* eslint-disable no-console */\nimport b from 'b';\n") == LinterExceptions()


def test_find_suppressions_file_switch():
    assert suppressions_of("// import-sorter: disable\nimport b from 'b';\n").disabled
    assert suppressions_of("/* ts-import-sorter: disable */\nimport b from 'b';\n").disabled


def test_linter_exceptions_covers():
    exceptions = LinterExceptions(((2, 2),))
    assert exceptions.covers(1, 3)
    assert not exceptions.covers(3, 4)
    assert exceptions.union(LinterExceptions(disabled=True)).covers(10, 12)
