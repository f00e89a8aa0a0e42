"""Name derivation and token rendering helpers."""

from __future__ import annotations

import pytest

from mlua_bindgen.codegen import CodeGen, render_inline, render_lines, rust_str, snake_to_camel
from mlua_bindgen.parser import inner, parse_tokens


@pytest.mark.parametrize(
    "name, expected",
    [
        ("set_color", "setColor"),
        ("to_xyz", "toXYZ"),
        ("make_2d", "make2D"),
        ("from_srgb_linear", "fromSRGBLinear"),
        ("to_xyzd50", "toXYZD50"),
        ("get_xy", "getXY"),
        ("width", "width"),
        ("set__double", "setDouble"),
        ("draw_rrect", "drawRrect"),
    ],
)
def test_snake_to_camel(name: str, expected: str) -> None:
    assert snake_to_camel(name) == expected


def test_first_segment_is_kept_unchanged() -> None:
    assert snake_to_camel("xyz_value") == "xyzValue"
    assert snake_to_camel("Already_mixed") == "AlreadyMixed"


def test_rust_str_escapes() -> None:
    assert rust_str("plain") == '"plain"'
    assert rust_str('say "hi"') == '"say \\"hi\\""'
    assert rust_str("a\\b") == '"a\\\\b"'


def test_codegen_blocks_indent() -> None:
    gen = CodeGen()
    with gen.block("fn main() {"):
        gen.line("let x = 1;")
        with gen.block("if x {", "};"):
            gen.line("y();")
    assert gen.output() == "\n".join(
        [
            "fn main() {",
            "    let x = 1;",
            "    if x {",
            "        y();",
            "    };",
            "}",
        ]
    )


def test_render_inline_keeps_adjacency() -> None:
    tree = parse_tokens("Vec<&'a str>")
    assert render_inline(tree.children) == "Vec<&'a str>"

    tree = parse_tokens("foo( a,b )")
    assert render_inline(tree.children) == "foo( a,b )"


def test_render_lines_keeps_relative_indentation() -> None:
    source = "{\n    let x = 1;\n    if x {\n        y();\n    }\n}"
    brace = parse_tokens(source).children[0]
    assert render_lines(inner(brace)) == [
        "let x = 1;",
        "if x {",
        "    y();",
        "}",
    ]


def test_render_lines_empty() -> None:
    brace = parse_tokens("{}").children[0]
    assert render_lines(inner(brace)) == []
