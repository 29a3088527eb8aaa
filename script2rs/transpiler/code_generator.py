"""
Rust code generation for complete script files.

This module assembles the generated file from its sections: header, prelude,
user structs, the script struct with its factory, the lifecycle and user
method impls and the `ScriptObject` glue the runtime calls by name. Module
scripts become a `pub mod` of free functions instead.
"""

from pathlib import Path

import arrow
from loguru import logger

from script2rs.transpiler.ast.nodes import FunctionDecl, StructDecl, VarDecl
from script2rs.transpiler.bindings import BindingTable
from script2rs.transpiler.code_block import CodeBlock, Temporaries
from script2rs.transpiler.code_gen_expr import ExpressionGenerator, GenerationContext
from script2rs.transpiler.code_gen_stmt import StatementGenerator, lower_params
from script2rs.transpiler.constants import (
    GENERATED_NOTICE,
    NODE_ID_TYPE,
    RUST_PRELUDE,
    SCRIPT_SUFFIX,
    SECTION_RULE,
    USER_PREFIX,
)
from script2rs.transpiler.diagnostics import DiagnosticCollector
from script2rs.transpiler.errors import CompositionError
from script2rs.transpiler.lowering import Lowerer, lower_type, snake_name
from script2rs.transpiler.models import LIFECYCLE_FLAGS, HeaderStyle
from script2rs.transpiler.registry.symbols import FrontendSymbols
from script2rs.transpiler.resolver import ResolvedScript
from script2rs.transpiler.type_checker import is_exposed
from script2rs.transpiler.types import VOID, CustomType

API_PARAM = "api: &mut ScriptApi<'_>"


class _Generator:
    """Shared state of one file's generation."""

    def __init__(self, ctx: GenerationContext, code: CodeBlock):
        self.ctx = ctx
        self.code = code
        self.exprs = ExpressionGenerator(ctx)
        self.stmts = StatementGenerator(ctx, self.exprs, code)

    def function_body(self, function: FunctionDecl) -> None:
        self.ctx.temps.reset()
        self.stmts.generate_body(function.body)


def _generate_header(code: CodeBlock, path: str, header: HeaderStyle) -> None:
    """Write the header comment naming the source file."""
    if header is HeaderStyle.NONE:
        return
    code.add_line(f"// {GENERATED_NOTICE}")
    code.add_line(f"// Source: {Path(path).name if path else '<memory>'}")
    if header is HeaderStyle.TIMESTAMPED:
        code.add_line(f"// Generated at: {arrow.utcnow().format('YYYY-MM-DD HH:mm:ss UTC')}")
    code.add_line()


def _section(code: CodeBlock, title: str) -> None:
    code.add_line()
    code.add_line(SECTION_RULE)
    code.add_line(f"// {title}")
    code.add_line(SECTION_RULE)
    code.add_line()


def _return_suffix(function: FunctionDecl) -> str:
    if function.resolved_return is None or function.resolved_return == VOID:
        return ""
    return f" -> {lower_type(function.resolved_return)}"


def _initializer(gen: _Generator, decl: VarDecl, in_struct: bool = False) -> str:
    """Initializer text of a field declaration.

    Struct fields are initialized inside `Default::default()`, where the
    runtime API is not available.
    """
    if decl.value is None:
        return "Default::default()"
    if in_struct and gen.exprs.borrows_context(decl.value):
        gen.ctx.diagnostics.report(
            CompositionError(
                f"Initializer of struct field '{decl.name}' cannot call the runtime",
                decl.value.span,
            )
        )
    return gen.exprs.generate(decl.value)


def _generate_structs(gen: _Generator, structs: list[StructDecl]) -> None:
    """Generate user struct definitions.

    Args:
        gen: File generation state
        structs: Struct declarations of the script
    """
    if not structs:
        return
    code = gen.code
    _section(code, "Structs")
    for struct in structs:
        name = lower_type(CustomType(struct.name))
        initialized = any(decl.value is not None for decl in struct.fields)
        derives = "Clone, Debug, Serialize, Deserialize" if initialized else (
            "Clone, Debug, Default, Serialize, Deserialize"
        )
        code.add_line(f"#[derive({derives})]")
        with code.block(f"pub struct {name}"):
            for decl in struct.fields:
                field_name = gen.ctx.lowerer.symbol(decl.symbol)
                code.add_line(f"pub {field_name}: {lower_type(decl.resolved_type)},")
        if initialized:
            gen.ctx.temps.reset()
            with code.block(f"impl Default for {name}"):
                with code.block("fn default() -> Self"):
                    with code.block("Self"):
                        for decl in struct.fields:
                            field_name = gen.ctx.lowerer.symbol(decl.symbol)
                            value = _initializer(gen, decl, in_struct=True)
                            code.add_line(f"{field_name}: {value},")
        code.add_line()


def _generate_script_struct(gen: _Generator, type_name: str, factory: str) -> None:
    """Generate the script struct and its `extern "C"` factory."""
    code = gen.code
    fields = gen.ctx.resolved.script.fields
    _section(code, "Script")
    with code.block(f"pub struct {type_name}"):
        code.add_line(f"id: {NODE_ID_TYPE},")
        for decl in fields:
            code.add_line(f"{gen.ctx.lowerer.symbol(decl.symbol)}: {lower_type(decl.resolved_type)},")
    code.add_line()

    code.add_line("#[unsafe(no_mangle)]")
    with code.block(f'pub extern "C" fn {factory}() -> *mut dyn ScriptObject'):
        code.add_line(f"Box::into_raw(Box::new({type_name} {{")
        code.indent_level += 1
        code.add_line("id: Default::default(),")
        for decl in fields:
            code.add_line(f"{gen.ctx.lowerer.symbol(decl.symbol)}: Default::default(),")
        code.indent_level -= 1
        code.add_line("})) as *mut dyn ScriptObject")


def _generate_lifecycle(gen: _Generator, type_name: str, functions: list[FunctionDecl]) -> None:
    code = gen.code
    code.add_line()
    with code.block(f"impl Script for {type_name}"):
        for i, function in enumerate(functions):
            if i:
                code.add_line()
            with code.block(f"fn {function.lifecycle.value}(&mut self, {API_PARAM})"):
                gen.function_body(function)


def _method_signature(gen: _Generator, function: FunctionDecl, receiver: str | None) -> str:
    params = [API_PARAM, *lower_params(gen.ctx, function.params)]
    if receiver is not None:
        params.insert(0, receiver)
    name = gen.ctx.lowerer.name(function, function.name)
    return f"fn {name}({', '.join(params)}){_return_suffix(function)}"


def _generate_methods(gen: _Generator, type_name: str, functions: list[FunctionDecl]) -> None:
    code = gen.code
    code.add_line()
    with code.block(f"impl {type_name}"):
        for i, function in enumerate(functions):
            if i:
                code.add_line()
            with code.block(_method_signature(gen, function, "&mut self")):
                gen.function_body(function)


def _generate_script_object(
    gen: _Generator,
    type_name: str,
    methods: list[FunctionDecl],
    lifecycle: list[FunctionDecl],
    symbols: FrontendSymbols,
) -> None:
    """Generate the `ScriptObject` impl the runtime drives the script through.

    Args:
        gen: File generation state
        type_name: Rust name of the script struct
        methods: User (non-lifecycle) methods
        lifecycle: Lifecycle methods
        symbols: Symbol table of the script's frontend, for the expose attribute
    """
    code = gen.code
    lowerer = gen.ctx.lowerer
    fields = gen.ctx.resolved.script.fields
    public = [decl for decl in fields if decl.is_public]

    code.add_line()
    with code.block(f"impl ScriptObject for {type_name}"):
        with code.block(f"fn set_id(&mut self, id: {NODE_ID_TYPE})"):
            code.add_line("self.id = id;")
        code.add_line()
        with code.block(f"fn get_id(&self) -> {NODE_ID_TYPE}"):
            code.add_line("self.id")

        code.add_line()
        with code.block("fn get_var(&self, name: &str) -> Option<Value>"):
            with code.block("match name"):
                for decl in public:
                    code.add_line(f'"{decl.name}" => Some(json!(self.{lowerer.symbol(decl.symbol)})),')
                code.add_line("_ => None,")

        code.add_line()
        with code.block("fn set_var(&mut self, name: &str, val: Value) -> Option<()>"):
            with code.block("match name"):
                for decl in public:
                    if decl.is_const:
                        continue
                    with code.block(f'"{decl.name}" =>'):
                        code.add_line(
                            f"self.{lowerer.symbol(decl.symbol)} = "
                            f"serde_json::from_value::<{lower_type(decl.resolved_type)}>(val).ok()?;"
                        )
                        code.add_line("Some(())")
                code.add_line("_ => None,")

        code.add_line()
        _generate_apply_exposed(gen, fields, symbols)

        code.add_line()
        _generate_call_function(gen, methods)

        code.add_line()
        flags = sum(LIFECYCLE_FLAGS[function.lifecycle] for function in lifecycle)
        with code.block("fn script_flags(&self) -> u8"):
            code.add_line(str(flags))


def _generate_apply_exposed(
    gen: _Generator, fields: list[VarDecl], symbols: FrontendSymbols
) -> None:
    """Run field initializers, then override exposed fields from the per-instance table."""
    code = gen.code
    lowerer = gen.ctx.lowerer
    gen.ctx.temps.reset()
    signature = f"fn apply_exposed(&mut self, {API_PARAM}, hashmap: &HashMap<String, Value>)"
    with code.block(signature):
        for decl in fields:
            if decl.value is None:
                continue
            with gen.ctx.temps.capture() as lets:
                value = gen.exprs.generate(decl.value)
            code.add_lines(lets)
            code.add_line(f"self.{lowerer.symbol(decl.symbol)} = {value};")

        exposed = [decl for decl in fields if is_exposed(decl, symbols)]
        if not exposed:
            return
        logger.debug(f"Exposing {', '.join(decl.name for decl in exposed)}")
        with code.block("for (key, val) in hashmap.iter()"):
            with code.block("match key.as_str()"):
                for decl in exposed:
                    rust_type = lower_type(decl.resolved_type)
                    with code.block(f'"{decl.name}" =>'):
                        with code.block(
                            f"if let Ok(v) = serde_json::from_value::<{rust_type}>(val.clone())"
                        ):
                            code.add_line(f"self.{lowerer.symbol(decl.symbol)} = v;")
                code.add_line("_ => {}")


def _generate_call_function(gen: _Generator, methods: list[FunctionDecl]) -> None:
    """Name-keyed dispatch of user methods with JSON arguments."""
    code = gen.code
    lowerer = gen.ctx.lowerer
    signature = (
        f"fn call_function(&mut self, name: &str, {API_PARAM}, params: &Vec<Value>) -> Value"
    )
    with code.block(signature):
        with code.block("match name"):
            for function in methods:
                with code.block(f'"{function.name}" =>'):
                    args = ["api"]
                    for i, param in enumerate(function.params):
                        name = lowerer.symbol(param.symbol)
                        rust_type = lower_type(param.resolved_type)
                        code.add_line(
                            f"let {name}: {rust_type} = serde_json::from_value::<{rust_type}>("
                            f"params.get({i}).cloned().unwrap_or_default()).unwrap_or_default();"
                        )
                        args.append(name)
                    call = f"self.{lowerer.name(function, function.name)}({', '.join(args)})"
                    if _return_suffix(function):
                        code.add_line(f"json!({call})")
                    else:
                        code.add_line(f"{call};")
                        code.add_line("Value::Null")
            code.add_line("_ => Value::Null,")


def _generate_module(gen: _Generator) -> None:
    """Generate a module script as a `pub mod` of free functions.

    Module fields have no instance to live in; each becomes a getter that
    evaluates its initializer.
    """
    code = gen.code
    script = gen.ctx.resolved.script
    _section(code, "Module")
    with code.block(f"pub mod {USER_PREFIX}{snake_name(script.name)}"):
        code.add_line("use super::*;")
        code.add_line()
        _generate_structs(gen, script.structs)
        for decl in script.fields:
            gen.ctx.temps.reset()
            name = gen.ctx.lowerer.symbol(decl.symbol)
            with code.block(f"pub fn {name}({API_PARAM}) -> {lower_type(decl.resolved_type)}"):
                with gen.ctx.temps.capture() as lets:
                    value = _initializer(gen, decl)
                code.add_lines(lets)
                code.add_line(value)
            code.add_line()
        for function in script.functions:
            with code.block(f"pub {_method_signature(gen, function, None)}"):
                gen.function_body(function)
            code.add_line()


def _generate_script(gen: _Generator, symbols: FrontendSymbols) -> None:
    script = gen.ctx.resolved.script
    type_name = f"{script.name}{SCRIPT_SUFFIX}"
    factory = f"{snake_name(script.name)}_create_script"
    lifecycle = [f for f in script.functions if f.lifecycle is not None]
    methods = [f for f in script.functions if f.lifecycle is None]

    _generate_structs(gen, script.structs)
    _generate_script_struct(gen, type_name, factory)
    _section(gen.code, "Methods")
    _generate_lifecycle(gen, type_name, lifecycle)
    if methods:
        _generate_methods(gen, type_name, methods)
    _generate_script_object(gen, type_name, methods, lifecycle, symbols)


def generate_rust(
    resolved: ResolvedScript,
    bindings: BindingTable,
    symbols: FrontendSymbols,
    header: HeaderStyle = HeaderStyle.PLAIN,
    diagnostics: DiagnosticCollector | None = None,
    lowerer: Lowerer | None = None,
) -> str:
    """Generate the Rust file of a resolved script.

    Args:
        resolved: Script annotated by the resolver, without errors
        bindings: Frozen binding table
        symbols: Symbol table of the script's frontend
        header: Header comment style
        diagnostics: Collector receiving composition notes and errors
        lowerer: Lowerer to record the emitted names in, e.g. for a source map

    Returns:
        Generated Rust source

    Raises:
        TranspilerError: If a resolved node has no Rust form
    """
    script = resolved.script
    logger.debug(f"Generating Rust for '{script.name}'")
    ctx = GenerationContext(
        resolved,
        bindings,
        lowerer if lowerer is not None else Lowerer(),
        Temporaries(),
        diagnostics if diagnostics is not None else DiagnosticCollector(script.path),
    )
    gen = _Generator(ctx, CodeBlock())
    _generate_header(gen.code, script.path, header)
    gen.code.add_lines(list(RUST_PRELUDE))

    if resolved.is_module:
        _generate_module(gen)
    else:
        _generate_script(gen, symbols)

    logger.debug(f"Generated '{script.name}' with {len(ctx.lowerer)} lowered names")
    return gen.code.get_code()
