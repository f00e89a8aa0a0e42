"""Argument extraction and handle borrowing statements."""

from __future__ import annotations

from mlua_bindgen.binding import (
    CallConvention,
    argument_names,
    borrow_statements,
    setup_statements,
)
from mlua_bindgen.method import LuaMethod
from mlua_bindgen.parser import find_impls
from mlua_bindgen.runtime import RuntimeTarget
from mlua_bindgen.signature import MethodSignature, classify


def _method(decl: str, target: RuntimeTarget | None = None) -> LuaMethod:
    source = f"#[lua_methods]\nimpl T {{\n    {decl}\n}}\n"
    (impl,) = find_impls(source)
    if target is None:
        return LuaMethod.new(impl.methods[0])
    return LuaMethod.new(impl.methods[0], target)


def _signature(decl: str) -> MethodSignature:
    (impl,) = find_impls(f"#[lua_methods]\nimpl T {{\n    {decl}\n}}\n")
    return classify(impl.methods[0])


def test_argument_names_per_convention() -> None:
    sig = _signature("fn a(x: i32, y: i32) {}")
    assert argument_names(sig, CallConvention.RECEIVER) == ["x", "y"]
    assert argument_names(sig, CallConvention.TABLE) == ["self", "x", "y"]


def test_table_convention_names_start_with_self_without_parameters() -> None:
    sig = _signature("fn a() {}")
    assert argument_names(sig, CallConvention.TABLE) == ["self"]
    assert argument_names(sig, CallConvention.RECEIVER) == []


def test_single_value_parameter() -> None:
    sig = _signature("fn set_color<'a>(&mut self, ctx: &'a Context, color: Color) {}")
    assert setup_statements(sig, CallConvention.RECEIVER, "ctx") == [
        'let (color,): (Color,) = crate::lua::FromArgs::from_arguments('
        '__lua_cb_args, ctx, Some("setColor"), Some(&["color"]))?;',
    ]


def test_handles_are_borrowed_and_rebound() -> None:
    sig = _signature("fn draw(&self, paint: &Paint, target: &mut Surface, x: f32) {}")
    assert setup_statements(sig, CallConvention.RECEIVER, "__lua_ctx") == [
        'let (paint, target, x): (mlua::AnyUserData, mlua::AnyUserData, f32) = '
        'crate::lua::FromArgs::from_arguments(__lua_cb_args, __lua_ctx, Some("draw"), '
        'Some(&["paint", "target", "x"]))?;',
        "let paint_ud_ref: std::cell::Ref<Paint> = paint.borrow()?;",
        "let paint = &*paint_ud_ref;",
        "let mut target_ud_ref: std::cell::RefMut<Surface> = target.borrow_mut()?;",
        "let target = &mut *target_ud_ref;",
    ]


def test_table_convention_discards_leading_table() -> None:
    sig = _signature("fn from_rgba(r: u8, g: u8, b: u8, a: u8) -> Self {}")
    (stmt,) = setup_statements(sig, CallConvention.TABLE, "__lua_ctx")
    assert stmt == (
        'let (_, r, g, b, a): (mlua::Table, u8, u8, u8, u8) = '
        'crate::lua::FromArgs::from_arguments(__lua_cb_args, __lua_ctx, Some("fromRgba"), '
        'Some(&["self", "r", "g", "b", "a"]))?;'
    )


def test_mutable_bindings() -> None:
    sig = _signature("fn a(mut n: i32, mut p: &Paint) {}")
    stmts = setup_statements(sig, CallConvention.RECEIVER, "__lua_ctx")
    assert stmts[0].startswith("let (mut n, p): (i32, mlua::AnyUserData) = ")
    assert borrow_statements(sig.params[1])[-1] == "let mut p = &*p_ud_ref;"


def test_no_parameters_no_statements() -> None:
    sig = _signature("fn a(&self) {}")
    assert setup_statements(sig, CallConvention.RECEIVER, "__lua_ctx") == []
    assert setup_statements(sig, CallConvention.TABLE, "__lua_ctx") == []


def test_runtime_target_paths() -> None:
    target = RuntimeTarget(crate="rlua", args_path="crate::args::extract")
    method = _method("fn a(t: &Thing) {}", target)
    closure = method.closure(CallConvention.TABLE)
    assert closure.setup[0] == (
        'let (_, t): (rlua::Table, rlua::AnyUserData) = '
        'crate::args::extract(__lua_cb_args, __lua_ctx, Some("a"), Some(&["self", "t"]))?;'
    )
    assert closure.return_type == "rlua::Result<()>"


def test_closure_slots() -> None:
    method = _method("fn get<'lua>(&self, lua: &'lua Lua) -> LuaTable<'lua> { Ok(lua.create_table()?) }")
    closure = method.closure(CallConvention.RECEIVER)
    assert closure.inputs == ["lua", "__cb_this", "()"]
    assert closure.setup == []
    assert closure.header == "|lua, __cb_this, ()| -> mlua::Result<LuaTable<'lua>> {"

    method = _method("fn new(x: i32) -> Self { Ok(Self { x }) }")
    closure = method.closure(CallConvention.TABLE)
    assert closure.inputs == ["__lua_ctx", "__lua_cb_args"]


def test_async_closure_header() -> None:
    method = _method("async fn fetch(&self, url: String) -> String { Ok(url) }")
    closure = method.closure(CallConvention.RECEIVER)
    assert closure.header == "|__lua_ctx, __cb_this, __lua_cb_args| async move {"


def test_closure_render() -> None:
    method = _method("fn scale(&mut self, k: f32) {\n        self.k *= k;\n        Ok(())\n    }")
    assert method.closure(CallConvention.RECEIVER).render() == [
        "|__lua_ctx, __cb_this, __lua_cb_args| -> mlua::Result<()> {",
        '    let (k,): (f32,) = crate::lua::FromArgs::from_arguments('
        '__lua_cb_args, __lua_ctx, Some("scale"), Some(&["k"]))?;',
        "    __cb_this.k *= k;",
        "    Ok(())",
        "}",
    ]
