from __future__ import annotations

"""
Unit tests for the built-in Fragment Transformers.

Verifies:
1. Type specific output (CSS/HTML/SVG compaction, JSON normalization,
   data URIs, raw JS with optional headers).
2. Configuration switches disabling the optimizations.
3. Failures are returned as outcomes, never raised.
"""

from pathlib import Path

import pytest

from inlinebuild.core.processing.transformers import (
    CssTransformer,
    HtmlTransformer,
    ImageTransformer,
    JsonTransformer,
    JsTransformer,
    SvgTransformer,
    collapse_markup,
    minify_css,
)


@pytest.fixture
def write(tmp_path: Path):
    def _write(name: str, content) -> str:
        path = tmp_path / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return str(path)
    return _write

# -----------------------------------------------------------------------------
# CSS
# -----------------------------------------------------------------------------

def test_minify_css_strips_comments_and_whitespace() -> None:
    css = ".b {\n  color: red;\n}\n/* note */\n.c { margin: 0 }"

    assert minify_css(css) == ".b{color: red}.c{margin: 0}"


def test_minify_css_keeps_compact_input() -> None:
    assert minify_css(".b{color:red}") == ".b{color:red}"


def test_css_transformer_minifies_by_default(write) -> None:
    path = write("btn.css", ".btn {\n  color: blue;\n}\n")

    outcome = CssTransformer()(path)

    assert outcome.ok
    assert outcome.content == ".btn{color: blue}"


def test_css_transformer_without_minify_returns_raw(write) -> None:
    raw = ".btn {\n  color: blue;\n}\n"
    path = write("btn.css", raw)

    assert CssTransformer(minify=False)(path).content == raw


def test_css_transformer_rejects_invalid_utf8(write) -> None:
    path = write("bad.css", b"\xff\xfe.a{}")

    outcome = CssTransformer()(path)

    assert not outcome.ok
    assert "Cannot read bad.css" in outcome.error

# -----------------------------------------------------------------------------
# HTML / SVG
# -----------------------------------------------------------------------------

def test_html_transformer_removes_comments_and_collapses(write) -> None:
    path = write("card.html", "<div>\n  <!-- c -->\n  <p>Hi   there</p>\n</div>\n")

    outcome = HtmlTransformer()(path)

    assert outcome.content == "<div><p>Hi there</p></div>"


def test_html_transformer_can_keep_comments(write) -> None:
    path = write("card.html", "<div>\n<!-- keep -->\n</div>")

    outcome = HtmlTransformer(minify=True, remove_comments=False)(path)

    assert outcome.content == "<div><!-- keep --></div>"


def test_svg_transformer_drops_prolog_doctype_and_metadata(write) -> None:
    svg = (
        '<?xml version="1.0"?>\n'
        "<!DOCTYPE svg>\n"
        '<svg xmlns="x">\n'
        " <metadata>m</metadata>\n"
        " <!-- c -->\n"
        ' <path d="M0 0"/>\n'
        "</svg>"
    )
    path = write("icon.svg", svg)

    outcome = SvgTransformer()(path)

    assert outcome.content == '<svg xmlns="x"><path d="M0 0"/></svg>'


def test_svg_transformer_can_keep_metadata(write) -> None:
    path = write("icon.svg", "<svg>\n <metadata>m</metadata>\n</svg>")

    outcome = SvgTransformer(remove_metadata=False)(path)

    assert outcome.content == "<svg><metadata>m</metadata></svg>"


def test_collapse_markup_trims_edges() -> None:
    assert collapse_markup("\n  <a>  x  </a>\n") == "<a> x </a>"

# -----------------------------------------------------------------------------
# JSON
# -----------------------------------------------------------------------------

def test_json_transformer_compacts(write) -> None:
    path = write("cfg.json", '{"a": 1, "b": [1, 2]}')

    assert JsonTransformer()(path).content == '{"a":1,"b":[1,2]}'


def test_json_transformer_pretty_prints(write) -> None:
    path = write("cfg.json", '{"a":1}')

    assert JsonTransformer(pretty=True)(path).content == '{\n  "a": 1\n}'


def test_json_transformer_keeps_unicode(write) -> None:
    path = write("cfg.json", '{"s": "é"}')

    assert JsonTransformer()(path).content == '{"s":"é"}'


def test_json_transformer_reports_invalid_syntax(write) -> None:
    path = write("cfg.json", '{"a": }')

    outcome = JsonTransformer()(path)

    assert not outcome.ok
    assert "Invalid JSON syntax" in outcome.error

# -----------------------------------------------------------------------------
# JS
# -----------------------------------------------------------------------------

def test_js_transformer_returns_raw_text(write) -> None:
    path = write("util.js", "export const a = 1;\n")

    assert JsTransformer()(path).content == "export const a = 1;\n"


def test_js_transformer_debug_comments_and_separators(write) -> None:
    path = write("util.js", "a();")

    assert JsTransformer(debug_comments=True)(path).content == "// File: util.js\na();"
    assert JsTransformer(separators=True)(path).content == "\n// ===== util.js =====\na();\n"

# -----------------------------------------------------------------------------
# IMAGES
# -----------------------------------------------------------------------------

def test_image_transformer_builds_data_uri(write) -> None:
    path = write("logo.jpg", b"\xff\xd8\xff")

    assert ImageTransformer()(path).content == "data:image/jpeg;base64,/9j/"


def test_image_transformer_uses_configured_mime(write) -> None:
    path = write("logo.png", b"\x00")

    assert ImageTransformer("image/png")(path).content == "data:image/png;base64,AA=="


def test_missing_fragment_is_a_failed_outcome(tmp_path: Path) -> None:
    outcome = ImageTransformer()(str(tmp_path / "ghost.png"))

    assert not outcome.ok
    assert "Cannot read ghost.png" in outcome.error
