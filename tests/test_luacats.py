"""LuaCATS stub generation."""

from __future__ import annotations

from mlua_bindgen.interface import LuaInterface
from mlua_bindgen.ir import IR
from mlua_bindgen.luacats import LuaCATSGenerator
from mlua_bindgen.parser import parse_tokens, parse_type
from mlua_bindgen.types import TypeConverter, TypeHandler

SOURCE = """
#[lua_methods(lua_name: Color4)]
impl LuaColor {
    #[lua(constructor)]
    fn from_rgba(r: u8, g: u8, b: u8, a: u8) -> LuaColor {
        Ok(LuaColor::new(r, g, b, a))
    }
    fn get_alpha(&self) -> f32 { Ok(self.a) }
    fn set_name(&mut self, name: Option<String>) { Ok(()) }
    fn __tostring(&self) -> String { Ok(String::new()) }
    fn lerp(&self, other: &LuaColor, t: f64) -> Vec<LuaColor> { Ok(vec![]) }
    fn bounds(&self) -> (f32, f32) { Ok((0.0, 1.0)) }
    #[lua(rename: "end")]
    fn finish(&self, repeat: bool) { Ok(()) }
}
"""


def _stub() -> str:
    interfaces = [LuaInterface.from_impl(impl) for impl in IR.from_source(SOURCE).impls]
    type_conv = TypeConverter({"LuaColor": "Color4"})
    return LuaCATSGenerator(interfaces, type_conv, "colors").generate()


def _type(source: str):
    return parse_type(parse_tokens(source).children)


def test_header_and_class() -> None:
    lines = _stub().splitlines()
    assert lines[0] == "---@meta"
    assert lines[1] == "-- LuaCATS type definitions for colors"
    assert "---@class Color4" in lines
    assert "---@overload fun(r: integer, g: integer, b: integer, a: integer): Color4" in lines
    assert "Color4 = {}" in lines


def test_methods() -> None:
    stub = _stub()
    assert "---@return number\nfunction Color4:getAlpha() end" in stub
    assert "---@param name? string\nfunction Color4:setName(name) end" in stub
    assert (
        "---@param other Color4\n---@param t number\n---@return Color4[]\n"
        "function Color4:lerp(other, t) end"
    ) in stub
    assert "---@return number\n---@return number\nfunction Color4:bounds() end" in stub


def test_keywords_and_metamethods() -> None:
    stub = _stub()
    assert '---@param repeat_ boolean\nColor4["end"] = function(self, repeat_) end' in stub
    assert "__tostring" not in stub
    assert "fromRgba" not in stub


def test_type_mapping() -> None:
    conv = TypeConverter({"LuaPaint": "Paint"})
    assert conv.luacats_type(_type("i64")) == "integer"
    assert conv.luacats_type(_type("&'a mut LuaPaint")) == "Paint"
    assert conv.luacats_type(_type("Option<Vec<f32>>")) == "number[]?"
    assert conv.luacats_type(_type("LuaFallible<String>")) == "string?"
    assert conv.luacats_type(_type("HashMap<String, bool>")) == "table<string, boolean>"
    assert conv.luacats_type(_type("Self"), "Paint") == "Paint"
    assert conv.luacats_type(_type("Unknown")) == "any"
    assert conv.luacats_type(_type("()")) == "nil"
    assert conv.luacats_type(None) == "nil"


class _ColorHandler(TypeHandler):
    def luacats_type(self) -> str:
        return "integer|string"


def test_custom_type_handler() -> None:
    conv = TypeConverter()
    assert not conv.has_handler("LuaColor")
    handler = _ColorHandler()
    conv.register("LuaColor", handler)
    assert conv.has_handler("LuaColor")
    assert conv.get_handler("LuaColor") is handler
    assert conv.luacats_type(_type("Option<LuaColor>")) == "integer|string?"


STATICS = """
#[lua_methods]
impl Image {
    fn load(path: String) -> Self { Ok(Image::open(path)?) }
    fn count() -> usize { Ok(0) }
    #[lua(rename: "for")]
    fn for_each(f: LuaFunction) { Ok(()) }
}
"""


def test_statics_with_parameters_are_called_on_the_table() -> None:
    (iface,) = [LuaInterface.from_impl(impl) for impl in IR.from_source(STATICS).impls]
    stub = LuaCATSGenerator([iface], TypeConverter(), "image").generate()
    assert "---@param path string\n---@return Image\nfunction Image:load(path) end" in stub
    assert "---@return integer\nfunction Image.count() end" in stub
    assert '---@param f function\nImage["for"] = function(self, f) end' in stub

    register_fn = iface.generate_register_fn()
    assert 'Some(&["self", "path"])' in register_fn
