from __future__ import annotations

import pytest

from conftest import transpile, wrap_class, wrap_method
from csharp_lexer import Token, TokenType, tokenize
from fsharp_translator import Emitter, FSharpTranslator, TokenCursor, TranslationContext, translate
from transpile_errors import TranslationError


def expect_error(source: str, message: str) -> TranslationError:
    with pytest.raises(TranslationError) as excinfo:
        transpile(source)
    assert message in excinfo.value.message
    return excinfo.value


# =============================================================================
# Cursor and state
# =============================================================================

def test_cursor_skips_omissible_tokens_and_stops_at_sentinel() -> None:
    cursor = TokenCursor(tokenize("a /* c */ b\n"))

    assert cursor.advance().text == "a"
    assert cursor.advance().text == "b"
    end = cursor.advance()
    assert end.type == TokenType.EOF
    for _ in range(3):
        assert cursor.advance() is end
    assert cursor.pos == len(cursor.tokens)
    assert cursor.at_end


def test_cursor_synthesizes_sentinel_without_eof_token() -> None:
    cursor = TokenCursor([Token("abc", TokenType.IDENTIFIER, 3, 4)])
    cursor.advance()

    assert cursor.current.type == TokenType.EOF
    assert (cursor.current.line, cursor.current.column) == (3, 7)
    assert TokenCursor([]).current.type == TokenType.EOF


def test_context_restores_indentation_after_nesting() -> None:
    context = TranslationContext(indent_unit="  ")
    with context.nested():
        with context.nested(2):
            assert context.indent == "      "
        assert context.indent == "  "
    assert context.indent == ""


def test_emitter_capture_collects_lines_separately() -> None:
    emitter = Emitter()
    emitter.line("a")
    with emitter.capture() as lines:
        emitter.line("b")
    emitter.line("c")
    emitter.extend(lines)

    assert emitter.getvalue() == "a\nc\nb\n"


# =============================================================================
# Top level
# =============================================================================

def test_scenario_fields_constructor_and_method() -> None:
    source = """
using System;

namespace App
{
    public class Calc
    {
        private int a;
        private int b;

        public Calc(int a, int b)
        {
            this.a = a;
            this.b = b;
        }

        public int Sum()
        {
            return a + b;
        }
    }
}
"""
    assert transpile(source) == (
        "namespace App\n"
        "\n"
        "open System\n"
        "\n"
        "type Calc =\n"
        "    [<DefaultValue>] val mutable private a : int\n"
        "    [<DefaultValue>] val mutable private b : int\n"
        "    new (a : int, b : int) as this =\n"
        "        { }\n"
        "        then\n"
        "            this.a <- a\n"
        "            this.b <- b\n"
        "    member this.Sum() : int =\n"
        "        a + b\n"
    )


def test_imports_are_written_once_after_namespace_header() -> None:
    output = transpile(
        "using System; using System.Collections.Generic; using IO = System.IO;"
        "namespace A.B { class X { } enum E { V } }"
    )

    assert output.splitlines() == [
        "namespace A.B",
        "",
        "open System",
        "open System.Collections.Generic",
        "open IO=System.IO",
        "",
        "type private X =",
        "    class end",
        "",
        "type private E =",
        "    | V = 0",
    ]


def test_namespace_without_imports() -> None:
    assert transpile("namespace App { }") == "namespace App\n"


def test_whitespace_and_comments_do_not_change_output() -> None:
    compact = "namespace N{public class C{private int x;public int X{get{return x;}}}}"
    spaced = """
    // header comment
    namespace N
    {
        /* the class */
        public class C
        {
            private   int   x;   // field
            public int X
            {
                get { return x; }
            }
        }
    }
    """
    assert transpile(compact) == transpile(spaced)


def test_custom_indent_unit() -> None:
    output = translate(tokenize(wrap_method("if (a) b();")), indent_unit="  ")
    assert output.splitlines()[-3:] == [
        "  member this.Run() =",
        "    if a then",
        "      b()",
    ]


@pytest.mark.parametrize(
    "source, message",
    [
        ("", "expected 'using' or 'namespace'"),
        ("class X { }", "expected 'using' or 'namespace'"),
        ("using System", "expected ';' after using directive"),
        ("using ;", "expected namespace name"),
        ("namespace A { } namespace B { }", "only one namespace declaration is supported"),
        ("namespace A;", "expected '{' after namespace name"),
        ("namespace A { public struct S { } }", "'struct' not supported"),
        ("namespace A { static class S { } }", "'static' not supported"),
        ("namespace A { public class C { }", "expected '}' to close namespace"),
    ],
)
def test_top_level_errors(source: str, message: str) -> None:
    expect_error(source, message)


# =============================================================================
# Enum
# =============================================================================

def test_enum_values_count_from_previous() -> None:
    output = transpile("namespace App { public enum Color { Red, Green = 5, Blue, } }")
    assert output.splitlines()[2:] == [
        "type Color =",
        "    | Red = 0",
        "    | Green = 5",
        "    | Blue = 6",
    ]


def test_enum_negative_value_and_default_access() -> None:
    output = transpile("namespace App { enum E { A = -1, B } }")
    assert output.splitlines()[2:] == [
        "type private E =",
        "    | A = -1",
        "    | B = 0",
    ]


@pytest.mark.parametrize(
    "body, message",
    [
        ("enum E : byte { A }", "enum base type not supported"),
        ("enum E { }", "empty enum not supported"),
        ("enum E { A = x }", "enum value must be an integer literal"),
        ("enum E { A B }", "expected ',' or '}' in enum"),
    ],
)
def test_enum_errors(body: str, message: str) -> None:
    expect_error(f"namespace App {{ {body} }}", message)


# =============================================================================
# Class members
# =============================================================================

def test_field_forms(class_members) -> None:
    assert class_members(
        "public static string name; protected double ratio; public private static int x; static public List<int> items;"
    ) == [
        "    [<DefaultValue>] static val mutable name : string",
        "    [<DefaultValue>] val mutable internal ratio : float",
        "    [<DefaultValue>] static val mutable private x : int",
        "    [<DefaultValue>] static val mutable items : List<int>",
    ]


def test_type_mapping_in_declarations(class_members) -> None:
    assert class_members(
        "ulong a; Dictionary<string, object> b; int[] c; List<List<long>> d; System.Text.StringBuilder e;"
    ) == [
        "    [<DefaultValue>] val mutable private a : uint64",
        "    [<DefaultValue>] val mutable private b : Dictionary<string, obj>",
        "    [<DefaultValue>] val mutable private c : int[]",
        "    [<DefaultValue>] val mutable private d : List<List<int64>>",
        "    [<DefaultValue>] val mutable private e : System.Text.StringBuilder",
    ]


def test_empty_class_body() -> None:
    assert transpile("namespace App { public class Empty { } }").splitlines()[2:] == [
        "type Empty =",
        "    class end",
    ]


def test_methods(class_members) -> None:
    assert class_members(
        "public void Nop() { } "
        "private static long Twice(long x) { return x * 2L; } "
        "internal string Name(int id, bool upper) { return id.ToString(); }"
    ) == [
        "    member this.Nop() = ()",
        "    static member private Twice(x : int64) : int64 =",
        "        x * 2L",
        "    member internal this.Name(id : int, upper : bool) : string =",
        "        id.ToString()",
    ]


def test_constructors(class_members) -> None:
    assert class_members(
        "private Test() { } "
        "public Test(int a) { if (a > 0) { Init(a); } }"
    ) == [
        "    private new () = { }",
        "    new (a : int) as this =",
        "        { }",
        "        then",
        "            if a > 0 then",
        "                Init(a)",
    ]


@pytest.mark.parametrize(
    "members, message",
    [
        ("int x = 5;", "default value not supported"),
        ("public void F(a, b) { }", "parameter 'a' must declare a type"),
        ("public void F(ref int a) { }", "'ref' parameters not supported"),
        ("public void F(int a = 1) { }", "default parameter values not supported"),
        ("public Other() { }", "method 'Other' must declare a return type"),
        ("public Test() : base() { }", "constructor initializer not supported"),
        ("static Test() { }", "static constructors not supported"),
        ("public override string ToString() { return \"\"; }", "'override' modifier not supported"),
        ("public void F();", "method body required"),
        ("public int x, y;", "expected '(', ';' or '{' after member declaration"),
        ("public void F() { ", "expected '}'"),
    ],
)
def test_member_errors(members: str, message: str) -> None:
    expect_error(wrap_class(members), message)


def test_inheritance_is_rejected() -> None:
    error = expect_error("namespace App { class B : A { } }", "inherit not supported")
    assert error.text == ":"


def test_generic_class_is_rejected() -> None:
    expect_error("namespace App { class Box<T> { } }", "generic classes not supported")


# =============================================================================
# Properties
# =============================================================================

def test_auto_property_synthesizes_one_backing_field(class_members) -> None:
    assert class_members("public int X { get; set; }") == [
        "    [<DefaultValue>] val mutable private _X : int",
        "    member this.X",
        "        with get () = this._X",
        "        and set (value : int) = this._X <- value",
    ]


def test_auto_property_accessor_order_follows_source(class_members) -> None:
    lines = class_members("public int X { set; get; }")

    assert sum("val mutable private _X" in line for line in lines) == 1
    assert lines[2:] == [
        "        with set (value : int) = this._X <- value",
        "        and get () = this._X",
    ]


def test_single_return_getter_is_one_expression(class_members) -> None:
    assert class_members("public int Add { get { return a + b; } }") == [
        "    member this.Add",
        "        with get () = a + b",
    ]


def test_block_getter_is_indented(class_members) -> None:
    assert class_members("public int Add { get { var s = a + b; return s; } }") == [
        "    member this.Add",
        "        with get () =",
        "            let mutable s = a + b",
        "            s",
    ]


def test_getter_with_statements_after_return(class_members) -> None:
    assert class_members("int P { get { return 1; Log(); } }") == [
        "    member private this.P",
        "        with get () =",
        "            1",
        "            Log()",
    ]


def test_setter_block_and_accessor_access(class_members) -> None:
    assert class_members("public int V { get { return _v; } private set { _v = value; } }") == [
        "    member this.V",
        "        with get () = _v",
        "        and private set (value : int) =",
        "            _v <- value",
    ]


def test_static_auto_property_uses_class_name(class_members) -> None:
    assert class_members("public static int Count { get; private set; }") == [
        "    [<DefaultValue>] static val mutable private _Count : int",
        "    static member Count",
        "        with get () = Test._Count",
        "        and private set (value : int) = Test._Count <- value",
    ]


@pytest.mark.parametrize(
    "members, message",
    [
        ("public int P { }", "property must declare at least one accessor"),
        ("public int P { add; }", "expected 'get' or 'set'"),
        ("public int P { get; } = 1;", "default value not supported"),
    ],
)
def test_property_errors(members: str, message: str) -> None:
    expect_error(wrap_class(members), message)


# =============================================================================
# Statements
# =============================================================================

def test_if_else_chain_stays_flat(method_body) -> None:
    assert method_body(
        "if (a == 1) { x = 1; } else if (a != 2) x = 2; else { x = 3; }"
    ) == [
        "        if a = 1 then",
        "            x <- 1",
        "        elif a <> 2 then",
        "            x <- 2",
        "        else",
        "            x <- 3",
    ]


def test_sibling_statements_keep_indentation(method_body) -> None:
    assert method_body("if (a) { if (b) c(); } d();") == [
        "        if a then",
        "            if b then",
        "                c()",
        "        d()",
    ]


def test_while_loops(method_body) -> None:
    assert method_body("while (i < 10) i = i + 1; while (Step()); while (x) { }") == [
        "        while i < 10 do",
        "            i <- i + 1",
        "        while Step() do",
        "            ()",
        "        while x do",
        "            ()",
    ]


def test_foreach(method_body) -> None:
    assert method_body("foreach (var item in this.items) { Console.WriteLine(item); }") == [
        "        for item in this.items do",
        "            Console.WriteLine(item)",
    ]


def test_return_throw_and_locals(method_body) -> None:
    assert method_body(
        "var n = Count(); if (n == 0) throw new ArgumentException(\"empty\"); "
        "if (n < 0) throw; return;"
    ) == [
        "        let mutable n = Count()",
        "        if n = 0 then",
        "            raise (new ArgumentException(\"empty\"))",
        "        if n < 0 then",
        "            reraise ()",
        "        ()",
    ]


def test_empty_statements_and_nested_blocks(method_body) -> None:
    assert method_body("; { a(); { b(); } } ;") == [
        "        a()",
        "        b()",
    ]


@pytest.mark.parametrize(
    "members, expected",
    [
        ("public void Run() { ; }", ["    member this.Run() = ()"]),
        ("public void Run() { { } ; { ; } }", ["    member this.Run() = ()"]),
        ("public Test() { ; }", ["    new () = { }"]),
        ("public Test(int a) { { } }", ["    new (a : int) = { }"]),
        ("public int V { get { ; } }", ["    member this.V", "        with get () = ()"]),
        ("public int V { set { { } } }", ["    member this.V", "        with set (value : int) = ()"]),
    ],
)
def test_bodies_without_output_become_unit(class_members, members: str, expected: list) -> None:
    assert class_members(members) == expected


@pytest.mark.parametrize(
    "statements, expected",
    [
        ("while (a) { { } }", ["        while a do", "            ()"]),
        ("while (a) { ; ; }", ["        while a do", "            ()"]),
        ("foreach (var x in xs) { }", ["        for x in xs do", "            ()"]),
        ("if (a) { { } } else { ; }", ["        if a then", "            ()", "        else", "            ()"]),
        ("if (a) { } else if (b) ;", ["        if a then", "            ()", "        elif b then", "            ()"]),
        (
            "switch (a) { case 1: ; break; case 2: { } return x; default: break; }",
            ["        match a with", "        | 1 -> ()", "        | 2 -> x", "        | _ -> ()"],
        ),
        ("Run(delegate { ; });", ["        Run((fun () ->", "            ()", "        ))"]),
    ],
)
def test_statement_bodies_without_output_become_unit(method_body, statements: str, expected: list) -> None:
    assert method_body(statements) == expected


@pytest.mark.parametrize(
    "statements, message",
    [
        ("x++;", "increment operator not supported"),
        ("--x;", "decrement operator not supported"),
        ("x += 1;", "compound assignment not supported"),
        ("x <<= 1;", "compound assignment not supported"),
        ("y = a ?? b;", "null-coalescing operator not supported"),
        ("y = a ? b : c;", "conditional operator not supported"),
        ("f = x => x;", "lambda expression not supported"),
        ("break;", "'break' not supported"),
        ("while (a) { continue; }", "'continue' not supported"),
        ("for (;;) { }", "'for' statement not supported"),
        ("try { } finally { }", "'try' statement not supported"),
        ("foreach (int i in xs) { }", "only 'foreach (var ...)' is supported"),
        ("var 5 = x;", "only identifier targets are supported"),
        ("var x;", "'var' declaration requires an initializer"),
        ("if a { }", "expected '('"),
        ("y = (int)x;", "unexpected 'x'"),
        ("int x = 1;", "unexpected 'x'"),
        ("y = a +;", "expected expression"),
        ("y = ();", "expected expression"),
        ("y = a b;", "unexpected 'b'"),
        ("y = return;", "unexpected 'return'"),
        ("f(a;", "unexpected ';'"),
    ],
)
def test_statement_errors(statements: str, message: str) -> None:
    expect_error(wrap_method(statements), message)


def test_increment_error_reports_position() -> None:
    source = "\n".join([
        "namespace App",
        "{",
        "    class T",
        "    {",
        "        void Run()",
        "        {",
        "            x++;",
        "        }",
        "    }",
        "}",
    ])
    error = expect_error(source, "increment operator not supported")

    assert (error.line, error.column) == (7, 14)
    assert error.text == "++"
    assert error.format() == "7:14: translation error: increment operator not supported near '++'"


def test_unexpected_end_of_input_is_reported() -> None:
    error = expect_error("namespace App { class T { void Run() { x = 1", "unexpected end of input")
    assert error.token.type == TokenType.EOF


# =============================================================================
# Switch
# =============================================================================

def test_switch_arms_in_source_order(class_members) -> None:
    assert class_members(
        "public string Name(int n) { switch (n) { "
        "case 1: return \"one\"; case 2: return \"two\"; default: return \"many\"; } }"
    ) == [
        "    member this.Name(n : int) : string =",
        "        match n with",
        "        | 1 -> \"one\"",
        "        | 2 -> \"two\"",
        "        | _ -> \"many\"",
    ]


def test_switch_fallthrough_groups_and_block_arms(method_body) -> None:
    assert method_body(
        "switch (n) { "
        "case 0: break; "
        "case 1: case 2: Log(n); Log(n); break; "
        "case Color.Red: Log(n); return; "
        "case -1: Log(n); return n * 2; "
        "default: throw new ArgumentException(\"n\"); }"
    ) == [
        "        match n with",
        "        | 0 -> ()",
        "        | 1 | 2 ->",
        "            Log(n)",
        "            Log(n)",
        "        | Color.Red ->",
        "            Log(n)",
        "            ()",
        "        | -1 ->",
        "            Log(n)",
        "            n * 2",
        "        | _ -> raise (new ArgumentException(\"n\"))",
    ]


def test_switch_case_joined_with_default(method_body) -> None:
    assert method_body("switch (c) { case 'a': default: throw; }") == [
        "        match c with",
        "        | 'a' | _ -> reraise ()",
    ]


@pytest.mark.parametrize(
    "switch, message",
    [
        ("switch (n) { case 1: Log(); case 2: break; }", "case body must end with 'break', 'return' or 'throw'"),
        ("switch (n) { case 1: Log(); }", "case body must end with 'break', 'return' or 'throw'"),
        ("switch (n) { case 1: continue; }", "'continue' not supported"),
        ("switch (n) { case 1: break; Log(); }", "expected 'case' or 'default'"),
        ("switch (n) { }", "empty switch not supported"),
        ("switch (n) { case 1 break; }", "unexpected 'break'"),
    ],
)
def test_switch_errors(switch: str, message: str) -> None:
    expect_error(wrap_method(switch), message)


# =============================================================================
# Expressions
# =============================================================================

@pytest.mark.parametrize(
    "statement, expected",
    [
        ("x = a << 2 | b & c ^ ~d;", "x <- a <<< 2 ||| b &&& c ^^^ ~~~d"),
        ("ok = !done && a >= b || c != d;", "ok <- not done && a >= b || c <> d"),
        ("same = a == b;", "same <- a = b"),
        ("y = arr[i + 1];", "y <- arr.[i + 1]"),
        ("z = -(a + b) * 3 % m;", "z <- -(a + b) * 3 % m"),
        ("q = a - -1;", "q <- a - -1"),
        ("f = 1.5f + 2.0 + 3.0d + 4u + 5UL + 6l;", "f <- 1.5f + 2.0 + 3.0 + 4u + 5UL + 6L"),
        ("s = string.Join(\", \", parts);", "s <- String.Join(\", \", parts)"),
        ("n = int.Parse(text) / 2;", "n <- Int32.Parse(text) / 2"),
        ("this.a = this.b.c(d, e)[0].f;", "this.a <- this.b.c(d, e).[0].f"),
        ("o = null; t = true;", "o <- null"),
        ("c = not(x);", "c <- not(x)"),
        ("ch = 'x';", "ch <- 'x'"),
    ],
)
def test_expression_rewrites(method_body, statement: str, expected: str) -> None:
    assert method_body(statement)[0] == "        " + expected


def test_object_and_array_construction(method_body) -> None:
    assert method_body(
        "var a = new int[] { 1, 2, 3 }; "
        "var b = new string[] { }; "
        "var c = new byte[16]; "
        "var d = new Dictionary<string, int>(); "
        "var e = new List<List<int>>(capacity); "
        "var f = new Point[] { new Point(1, 2), Origin, };"
    ) == [
        "        let mutable a = [| 1; 2; 3 |]",
        "        let mutable b = [||]",
        "        let mutable c = Array.zeroCreate<byte> (16)",
        "        let mutable d = new Dictionary<string, int>()",
        "        let mutable e = new List<List<int>>(capacity)",
        "        let mutable f = [| new Point(1, 2); Origin |]",
    ]


@pytest.mark.parametrize(
    "statement, message",
    [
        ("var a = new int[] { 1, , 2 };", "empty array element"),
        ("var a = new int[] { , 1 };", "empty array element"),
        ("var p = new Point { X = 1 };", "object initializers not supported"),
        ("var p = new Point() { X = 1 };", "object initializers not supported"),
        ("var p = new Point;", "expected '(' or '[' after type in 'new' expression"),
    ],
)
def test_construction_errors(statement: str, message: str) -> None:
    expect_error(wrap_method(statement), message)


def test_anonymous_function_becomes_fun_literal(method_body) -> None:
    assert method_body("var add = delegate (int x, int y) { return x + y; };") == [
        "        let mutable add = (fun (x : int) (y : int) ->",
        "            x + y",
        "        )",
    ]


def test_anonymous_function_as_argument(method_body) -> None:
    assert method_body(
        "items.ForEach(delegate (string s) { if (s != null) { Console.WriteLine(s); } }); done();"
    ) == [
        "        items.ForEach((fun (s : string) ->",
        "            if s <> null then",
        "                Console.WriteLine(s)",
        "        ))",
        "        done()",
    ]


def test_parameterless_anonymous_function(method_body) -> None:
    assert method_body("Run(delegate { });") == [
        "        Run((fun () ->",
        "            ()",
        "        ))",
    ]


def test_translator_accepts_raw_token_stream() -> None:
    tokens = tokenize("namespace App { enum E { A } } // trailing")
    assert FSharpTranslator(tokens).translate() == "namespace App\n\ntype private E =\n    | A = 0\n"
