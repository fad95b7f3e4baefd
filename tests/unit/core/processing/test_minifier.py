from __future__ import annotations

"""
Unit tests for the output Minification Utility.

Verifies:
1. Whole-line comment removal per comment syntax family.
2. Blank line collapsing and trailing whitespace removal.
3. Preservation of comment markers inside code (URLs, strings).
"""

from inlinebuild.core.processing.minifier import minify_code, minify_code_stream


def test_minify_js_removes_line_comments_and_collapses_blanks() -> None:
    source = "const a = 1;  \n// comment\n\n\n\nconst b = 2;\n"

    assert minify_code(source, ".js") == "const a = 1;\n\nconst b = 2;\n"


def test_minify_js_removes_single_line_block_comments() -> None:
    source = "/* header */\nrun();\n"

    assert minify_code(source, ".js") == "run();\n"


def test_minify_preserves_inline_markers() -> None:
    """Only whole-line comments go; URLs and trailing comments survive."""
    source = 'const u = "http://x"; // keep\n'

    assert minify_code(source, ".js") == 'const u = "http://x"; // keep\n'


def test_minify_hash_comments_for_script_extensions() -> None:
    source = "# comment\necho hi\n"

    assert minify_code(source, ".sh") == "echo hi\n"
    assert minify_code(source, ".js") == "# comment\necho hi\n"


def test_minify_empty_input_stays_empty() -> None:
    assert minify_code("", ".js") == ""


def test_minify_stream_yields_newline_terminated_lines() -> None:
    lines = iter(["a  \r\n", "\n", "\n", "b"])

    assert list(minify_code_stream(lines, ".js")) == ["a\n", "\n", "b\n"]
