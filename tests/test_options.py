"""Parsing of #[lua(...)] and #[lua_methods(...)] options."""

from __future__ import annotations

import pytest
from lark import Token

from mlua_bindgen.errors import BindingError
from mlua_bindgen.options import (
    AttributeOptions,
    FunctionOptions,
    ItemOptions,
    ParamOptions,
    decode_string,
)
from mlua_bindgen.parser import find_impls


def _item_options(attrs: str) -> ItemOptions:
    source = f"#[lua_methods]\nimpl T {{\n    {attrs}\n    fn f() {{}}\n}}\n"
    (impl,) = find_impls(source)
    return ItemOptions.from_attrs(impl.methods[0].attrs)


def _interface_options(args: str) -> AttributeOptions:
    (impl,) = find_impls(f"#[lua_methods{args}]\nimpl T {{}}\n")
    return AttributeOptions.parse(impl.attr_args)


def _item_error(attrs: str) -> BindingError:
    with pytest.raises(BindingError) as exc_info:
        _item_options(attrs)
    return exc_info.value


def test_defaults_without_attribute() -> None:
    assert _item_options("#[inline]") == ItemOptions()


def test_flags() -> None:
    options = _item_options("#[lua(skip, constructor)]")
    assert options.skip
    assert options.constructor
    assert options.rename is None
    assert options.function is None


@pytest.mark.parametrize(
    "attrs, expected",
    [
        ('#[lua(rename: "type")]', "type"),
        ("#[lua(rename = fooBar)]", "fooBar"),
        ('#[lua(rename: r"raw")]', "raw"),
    ],
)
def test_rename_values(attrs: str, expected: str) -> None:
    assert _item_options(attrs).rename == expected


def test_function_options() -> None:
    assert _item_options("#[lua(function)]").function == FunctionOptions(mutable=False)
    assert _item_options("#[lua(function(mut))]").function == FunctionOptions(mutable=True)


def test_first_lua_attribute_wins() -> None:
    options = _item_options("#[lua(skip)]\n    #[lua(constructor)]")
    assert options.skip
    assert not options.constructor


@pytest.mark.parametrize(
    "attrs, message",
    [
        ("#[lua(bogus)]", "unknown option: bogus"),
        ("#[lua(function(bogus))]", "unknown option: bogus"),
        ("#[lua(rename)]", "missing value for `rename`"),
        ("#[lua(rename: a::b)]", "rename value must be an ident or string literal"),
        ("#[lua(rename: 5)]", "rename value must be an ident or string literal"),
        ("#[lua(function: x)]", "expected property list or nothing"),
        ("#[lua(skip: true)]", "'skip' option doesn't accept any values"),
        ("#[lua(function(mut = 1))]", "'mut' option doesn't accept any values"),
        ("#[lua]", "expected list arguments"),
        ("#[lua(skip constructor)]", "expected `,`"),
    ],
)
def test_configuration_errors(attrs: str, message: str) -> None:
    assert _item_error(attrs).message == message


def test_errors_point_at_the_offending_key() -> None:
    error = _item_error("#[lua(skip, bogus)]")
    assert error.line == 3
    assert error.column == 17


def test_interface_lua_name() -> None:
    assert _interface_options("").lua_name is None
    assert _interface_options("(lua_name: Shader)").lua_name == "Shader"
    assert _interface_options('(lua_name = "Image")').lua_name == "Image"


@pytest.mark.parametrize(
    "args, message",
    [
        ("(name: Shader)", "unknown option: name"),
        ("(lua_name: 1)", "lua_name expects a name"),
        ("(lua_name)", "missing value for `lua_name`"),
        ("(lua_name Shader)", "expecting comma separated 'key: value' pairs; expected `,`"),
    ],
)
def test_interface_errors(args: str, message: str) -> None:
    with pytest.raises(BindingError) as exc_info:
        _interface_options(args)
    assert exc_info.value.message == message


def test_param_context_tag() -> None:
    source = "#[lua_methods]\nimpl T {\n    fn f<'a>(#[lua(context)] state: &'a State, x: i32) {}\n}\n"
    (impl,) = find_impls(source)
    state, x = impl.methods[0].params
    assert ParamOptions.from_attrs(state.attrs).context
    assert not ParamOptions.from_attrs(x.attrs).context


def test_decode_string() -> None:
    assert decode_string(Token("STRING", '"a\\"b"')) == 'a"b'
    assert decode_string(Token("STRING", '"line\\nbreak\\t\\u{41}"')) == "line\nbreak\tA"
    assert decode_string(Token("RAW_STRING", 'r#"x"y"#')) == 'x"y'
    assert decode_string(Token("RAW_STRING", 'r"plain"')) == "plain"
