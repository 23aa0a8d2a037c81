#!/usr/bin/env python3
"""
C# to F# Translator

Syntax-directed translation: a recursive-descent walk over the significant
C# tokens that emits F# lines while it recognizes each construct. There is no
intermediate tree. Every production reads tokens through a TokenCursor and
writes through an Emitter, and indentation lives in a TranslationContext
that is saved and restored around every nested block.

Supported input is a deliberately small C# subset: using directives, one
namespace, classes (fields, properties, constructors, methods) and enums,
a handful of statements, and expressions rewritten token by token. Anything
else raises TranslationError at the first offending token.

Expressions are not re-parsed with precedence. Operators are substituted one
token at a time, which relies on the C# and F# precedence tables agreeing for
the supported operators.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from csharp_lexer import NUMERIC_TYPES, Token, TokenType, significant_tokens
from transpile_errors import TranslationError

logger = logging.getLogger(__name__)


# =============================================================================
# Translation Tables
# =============================================================================

ACCESS_KEYWORDS = ('public', 'protected', 'private', 'internal')

# F# has no protected; public is the F# default and needs no keyword
FSHARP_ACCESS = {
    'public': '',
    'protected': 'internal ',
    'internal': 'internal ',
    'private': 'private ',
}

UNSUPPORTED_MODIFIERS = frozenset({
    'abstract', 'virtual', 'override', 'sealed', 'readonly', 'const',
    'extern', 'unsafe', 'volatile', 'async', 'partial', 'new', 'event',
})

TYPE_ALIASES = {
    'int': 'int',
    'uint': 'uint32',
    'long': 'int64',
    'ulong': 'uint64',
    'short': 'int16',
    'ushort': 'uint16',
    'byte': 'byte',
    'sbyte': 'sbyte',
    'float': 'float32',
    'double': 'float',
    'decimal': 'decimal',
    'bool': 'bool',
    'char': 'char',
    'string': 'string',
    'object': 'obj',
    'void': 'unit',
}

BINARY_OPERATORS = {
    '=': '<-',
    '==': '=',
    '!=': '<>',
    '<<': '<<<',
    '>>': '>>>',
    '&': '&&&',
    '|': '|||',
    '^': '^^^',
    '&&': '&&',
    '||': '||',
    '+': '+',
    '-': '-',
    '*': '*',
    '/': '/',
    '%': '%',
    '<': '<',
    '>': '>',
    '<=': '<=',
    '>=': '>=',
}

PREFIX_OPERATORS = {
    '!': 'not ',
    '~': '~~~',
    '-': '-',
    '+': '+',
}

UNSUPPORTED_OPERATORS = {
    '++': 'increment operator',
    '--': 'decrement operator',
    '??': 'null-coalescing operator',
    '?': 'conditional operator',
    '?:': 'conditional operator',
    '->': 'pointer member access',
    '=>': 'lambda expression',
}
UNSUPPORTED_OPERATORS.update(
    (op, 'compound assignment')
    for op in ('+=', '-=', '*=', '/=', '%=', '&=', '|=', '^=', '<<=', '>>=')
)

# Built-in type keywords used as operands, e.g. int.Parse, string.Join
TYPE_CLASS_NAMES = {
    'int': 'Int32',
    'uint': 'UInt32',
    'long': 'Int64',
    'ulong': 'UInt64',
    'short': 'Int16',
    'ushort': 'UInt16',
    'byte': 'Byte',
    'sbyte': 'SByte',
    'float': 'Single',
    'double': 'Double',
    'decimal': 'Decimal',
    'bool': 'Boolean',
    'char': 'Char',
    'string': 'String',
    'object': 'Object',
}

# Words that open a statement or declaration and can never be an operand
STATEMENT_KEYWORDS = frozenset({
    'if', 'else', 'while', 'for', 'foreach', 'do', 'switch', 'case',
    'default', 'return', 'throw', 'break', 'continue', 'try', 'catch',
    'finally', 'using', 'namespace', 'class', 'enum', 'struct', 'goto',
    'lock', 'static', 'public', 'private', 'protected', 'internal',
})

UNSUPPORTED_STATEMENTS = frozenset({
    'for', 'do', 'try', 'goto', 'lock', 'using', 'fixed', 'checked',
    'unchecked', 'unsafe',
})

SWITCH_TERMINATORS = ('break', 'return', 'throw')

LITERAL_TYPES = NUMERIC_TYPES | {TokenType.STRING, TokenType.CHAR}


# =============================================================================
# Translation State
# =============================================================================

class TokenCursor:
    """
    Read position over the significant tokens.

    Reading past the end always yields the same EOF sentinel; the position
    never moves beyond it.
    """

    def __init__(self, tokens: Sequence[Token]):
        self.tokens = [t for t in significant_tokens(tokens) if t.type != TokenType.EOF]
        self.pos = 0
        self.end = self._make_sentinel(tokens)

    def _make_sentinel(self, tokens: Sequence[Token]) -> Token:
        if tokens and tokens[-1].type == TokenType.EOF:
            return tokens[-1]
        if self.tokens:
            last = self.tokens[-1]
            return Token("", TokenType.EOF, last.line, last.column + len(last.text))
        return Token("", TokenType.EOF, 1, 1)

    @property
    def current(self) -> Token:
        return self.peek(0)

    def peek(self, offset: int = 1) -> Token:
        pos = self.pos + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return self.end

    def advance(self) -> Token:
        """Move to next token and return the one just consumed"""
        token = self.current
        if self.pos < len(self.tokens):
            self.pos += 1
        return token

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)


@dataclass
class TranslationContext:
    """Per-call state threaded through the recursive descent"""
    indent_unit: str = "    "
    indent: str = ""
    imports: List[str] = field(default_factory=list)
    # Set while the type name of an object-construction expression is read,
    # so the following ( or [ is left to the construction production
    constructing: bool = False
    class_name: Optional[str] = None

    @contextmanager
    def nested(self, levels: int = 1) -> Iterator[None]:
        saved = self.indent
        self.indent = saved + self.indent_unit * levels
        try:
            yield
        finally:
            self.indent = saved


@dataclass
class MemberModifiers:
    """Modifiers accumulated in front of a class member"""
    access: str = 'private'
    is_static: bool = False


@dataclass(frozen=True)
class TypeName:
    """Declared (type, name); type is None for a constructor"""
    type: Optional[str]
    name: str
    source_type: Optional[str] = None


class Emitter:
    """
    Line-oriented output sink.

    Lines go to the innermost capture, if any. Captures let a production
    render a fragment before deciding where it goes (property accessors,
    anonymous function bodies).
    """

    def __init__(self):
        self._stack: List[List[str]] = [[]]

    def line(self, text: str = ""):
        self._stack[-1].append(text)

    def extend(self, lines: Sequence[str]):
        self._stack[-1].extend(lines)

    @contextmanager
    def capture(self) -> Iterator[List[str]]:
        lines: List[str] = []
        self._stack.append(lines)
        try:
            yield lines
        finally:
            self._stack.pop()

    def getvalue(self) -> str:
        return '\n'.join(self._stack[0]) + '\n'


# =============================================================================
# F# Translator
# =============================================================================

class FSharpTranslator:
    """
    Translates a C# token sequence to F# source text.

    Omissible tokens are filtered out on construction, so the raw lexer output
    can be passed in directly.
    """

    def __init__(self, tokens: Sequence[Token], indent_unit: str = "    "):
        self.cursor = TokenCursor(tokens)
        self.context = TranslationContext(indent_unit=indent_unit)
        self.emitter = Emitter()

    # -------------------------------------------------------------------------
    # Cursor helpers
    # -------------------------------------------------------------------------

    def at(self, text: str) -> bool:
        """True if the current token is the punctuation or word text"""
        token = self.cursor.current
        return token.text == text and token.type not in (TokenType.STRING, TokenType.CHAR)

    def error(self, message: str, token: Optional[Token] = None) -> TranslationError:
        token = token or self.cursor.current
        if token.type == TokenType.EOF:
            message = f"unexpected end of input: {message}"
        return TranslationError(message, line=token.line, column=token.column, token=token)

    def expect(self, text: str) -> Token:
        """Consume a specific token"""
        if not self.at(text):
            raise self.error(f"expected '{text}'")
        return self.cursor.advance()

    def expect_identifier(self, what: str) -> str:
        token = self.cursor.current
        if token.type != TokenType.IDENTIFIER:
            raise self.error(f"expected {what}")
        self.cursor.advance()
        return token.text

    def write(self, text: str):
        """Emit one line at the current indentation"""
        self.emitter.line(self.context.indent + text)

    # -------------------------------------------------------------------------
    # Top level
    # -------------------------------------------------------------------------

    def translate(self) -> str:
        """Translate using directives followed by exactly one namespace"""
        while self.at('using'):
            self.translate_using()

        if not self.at('namespace'):
            raise self.error("expected 'using' or 'namespace'")
        self.translate_namespace()

        if not self.cursor.at_end:
            raise self.error("only one namespace declaration is supported")
        return self.emitter.getvalue()

    def translate_using(self):
        """Collect a using directive's path verbatim"""
        self.cursor.advance()  # using
        parts = []
        while not self.at(';'):
            if self.cursor.current.type in (TokenType.EOF, TokenType.BLOCK_OPEN, TokenType.BLOCK_CLOSE):
                raise self.error("expected ';' after using directive")
            parts.append(self.cursor.advance().text)
        if not parts:
            raise self.error("expected namespace name in using directive")
        self.cursor.advance()  # ;
        self.context.imports.append(''.join(parts))

    def translate_namespace(self):
        self.cursor.advance()  # namespace
        parts = []
        while not self.at('{'):
            token = self.cursor.current
            if not (token.is_name or token.text == '.'):
                raise self.error("expected '{' after namespace name")
            parts.append(self.cursor.advance().text)
        if not parts:
            raise self.error("expected namespace name")
        self.cursor.advance()  # {

        name = ''.join(parts)
        logger.debug("Translating namespace %s", name)
        self.write(f"namespace {name}")

        # Collected using directives are written once, right after the header
        if self.context.imports:
            self.emitter.line()
            for path in self.context.imports:
                self.write(f"open {path}")
            self.context.imports = []

        while not self.at('}'):
            self.translate_type_declaration()
        self.cursor.advance()  # }

    def translate_type_declaration(self):
        access = 'private'
        if self.cursor.current.text in ACCESS_KEYWORDS:
            access = self.cursor.advance().text

        keyword = self.cursor.current
        if keyword.text == 'class':
            self.translate_class(access)
        elif keyword.text == 'enum':
            self.translate_enum(access)
        elif keyword.type == TokenType.EOF:
            raise self.error("expected '}' to close namespace")
        else:
            raise self.error(f"'{keyword.text}' not supported")

        # C# tolerates a stray ; after a type body
        if self.at(';'):
            self.cursor.advance()

    # -------------------------------------------------------------------------
    # Enum
    # -------------------------------------------------------------------------

    def translate_enum(self, access: str):
        self.cursor.advance()  # enum
        name_token = self.cursor.current
        name = self.expect_identifier("enum name")
        if self.at(':'):
            raise self.error("enum base type not supported")
        self.expect('{')
        logger.debug("Translating enum %s", name)

        self.emitter.line()
        self.write(f"type {FSHARP_ACCESS[access]}{name} =")

        value = -1
        count = 0
        with self.context.nested():
            while not self.at('}'):
                member = self.expect_identifier("enum member name")
                if self.at('='):
                    self.cursor.advance()
                    value = self.read_enum_value()
                else:
                    value += 1
                self.write(f"| {member} = {value}")
                count += 1

                if self.at(','):
                    self.cursor.advance()
                elif not self.at('}'):
                    raise self.error("expected ',' or '}' in enum")
        self.cursor.advance()  # }

        if count == 0:
            raise self.error("empty enum not supported", name_token)

    def read_enum_value(self) -> int:
        negative = False
        if self.at('-'):
            self.cursor.advance()
            negative = True
        token = self.cursor.current
        if token.type != TokenType.INT:
            raise self.error("enum value must be an integer literal")
        self.cursor.advance()
        return -int(token.text) if negative else int(token.text)

    # -------------------------------------------------------------------------
    # Class
    # -------------------------------------------------------------------------

    def translate_class(self, access: str):
        self.cursor.advance()  # class
        name = self.expect_identifier("class name")
        if self.at(':'):
            raise self.error("inherit not supported")
        if self.at('<'):
            raise self.error("generic classes not supported")
        self.expect('{')
        logger.debug("Translating class %s", name)

        self.emitter.line()
        self.write(f"type {FSHARP_ACCESS[access]}{name} =")

        self.context.class_name = name
        with self.context.nested():
            if self.at('}'):
                self.write("class end")
            while not self.at('}'):
                self.translate_member()
        self.cursor.advance()  # }
        self.context.class_name = None

    def read_modifiers(self) -> MemberModifiers:
        """Accumulate static/accessibility modifiers; the last accessibility wins"""
        modifiers = MemberModifiers()
        while True:
            token = self.cursor.current
            if token.text in ACCESS_KEYWORDS:
                modifiers.access = token.text
            elif token.text == 'static':
                modifiers.is_static = True
            elif token.text in UNSUPPORTED_MODIFIERS and token.is_name:
                raise self.error(f"'{token.text}' modifier not supported")
            else:
                return modifiers
            self.cursor.advance()

    def translate_member(self):
        if self.cursor.current.type == TokenType.EOF:
            raise self.error("expected '}' to close class")
        modifiers = self.read_modifiers()
        declaration = self.read_declaration()
        logger.debug("Translating member %s", declaration.name)

        if self.at('('):
            self.translate_method(modifiers, declaration)
        elif self.at(';'):
            self.cursor.advance()
            self.translate_field(modifiers, declaration)
        elif self.at('{'):
            self.translate_property(modifiers, declaration)
        elif self.at('='):
            raise self.error("default value not supported")
        else:
            raise self.error("expected '(', ';' or '{' after member declaration")

    def read_declaration(self) -> TypeName:
        """Read 'type name', or a bare name directly followed by '(' (constructor)"""
        source_type, fsharp_type = self.read_type()
        if self.at('('):
            return TypeName(None, source_type)
        name = self.expect_identifier("member name")
        return TypeName(fsharp_type, name, source_type)

    def read_type(self) -> Tuple[str, str]:
        """
        Read a type reference and return (C# text, F# text).

        Accepts dotted names, generic argument lists and array suffixes.
        While an object construction is being read, array brackets are left
        for the caller.
        """
        source: List[str] = []
        target: List[str] = []

        def take(mapped: Optional[str] = None):
            token = self.cursor.advance()
            source.append(token.text)
            target.append(mapped if mapped is not None else token.text)

        def take_name():
            token = self.cursor.current
            if not token.is_name or token.text in STATEMENT_KEYWORDS:
                raise self.error("expected type name")
            take(TYPE_ALIASES.get(token.text, token.text))

        take_name()
        while self.at('.'):
            take()
            take_name()

        if self.at('<'):
            depth = 0
            while True:
                token = self.cursor.current
                if token.text == '<':
                    depth += 1
                    take()
                elif token.text in ('>', '>>'):
                    depth -= len(token.text)
                    if depth < 0:
                        raise self.error("unbalanced generic argument list")
                    take()
                    if depth == 0:
                        break
                elif token.type == TokenType.COMMA:
                    take(', ')
                elif token.text in ('.', '[', ']'):
                    take()
                elif token.is_name:
                    take_name()
                else:
                    raise self.error("expected '>' to close generic argument list")

        while self.at('[') and not self.context.constructing:
            take()
            while self.at(','):
                take(',')
            if not self.at(']'):
                raise self.error("expected ']' in array type")
            take()

        return ''.join(source), ''.join(target)

    def translate_field(self, modifiers: MemberModifiers, declaration: TypeName):
        static = 'static ' if modifiers.is_static else ''
        self.write(
            f"[<DefaultValue>] {static}val mutable "
            f"{FSHARP_ACCESS[modifiers.access]}{declaration.name} : {declaration.type}"
        )

    def read_parameters(self) -> List[Tuple[str, str]]:
        """Read 'type name' pairs up to the closing parenthesis"""
        parameters = []
        if self.at(')'):
            return parameters
        while True:
            token = self.cursor.current
            if token.text in ('ref', 'out', 'params', 'this', 'in'):
                raise self.error(f"'{token.text}' parameters not supported")
            source_type, fsharp_type = self.read_type()
            if self.cursor.current.type != TokenType.IDENTIFIER:
                raise self.error(f"parameter '{source_type}' must declare a type", token)
            name = self.cursor.advance().text
            if self.at('='):
                raise self.error("default parameter values not supported")
            parameters.append((name, fsharp_type))
            if not self.at(','):
                return parameters
            self.cursor.advance()

    def translate_method(self, modifiers: MemberModifiers, declaration: TypeName):
        start = self.cursor.current
        self.cursor.advance()  # (
        parameters = self.read_parameters()
        self.expect(')')
        parameter_text = ', '.join(f"{name} : {type_}" for name, type_ in parameters)
        access = FSHARP_ACCESS[modifiers.access]

        if declaration.type is None:
            self.translate_constructor(modifiers, declaration, f"{access}new ({parameter_text})", start)
            return

        if self.at(';'):
            raise self.error("method body required")

        member = 'static member ' if modifiers.is_static else 'member '
        target = declaration.name if modifiers.is_static else f"this.{declaration.name}"
        annotation = '' if declaration.source_type == 'void' else f" : {declaration.type}"
        head = f"{member}{access}{target}({parameter_text}){annotation} ="

        self.expect('{')
        body = self.translate_block_lines()
        if not body:
            self.write(f"{head} ()")
            return
        self.write(head)
        self.emitter.extend(body)

    def translate_constructor(self, modifiers: MemberModifiers, declaration: TypeName,
                              head: str, start: Token):
        if declaration.name != self.context.class_name:
            raise self.error(f"method '{declaration.name}' must declare a return type", start)
        if modifiers.is_static:
            raise self.error("static constructors not supported", start)
        if self.at(':'):
            raise self.error("constructor initializer not supported")

        self.expect('{')
        with self.context.nested():
            body = self.translate_block_lines()
        if not body:
            self.write(f"{head} = {{ }}")
            return
        self.write(f"{head} as this =")
        with self.context.nested():
            self.write("{ }")
            self.write("then")
        self.emitter.extend(body)

    # -------------------------------------------------------------------------
    # Property
    # -------------------------------------------------------------------------

    def translate_property(self, modifiers: MemberModifiers, declaration: TypeName):
        """
        Translate a property and its get/set accessors.

        The first auto-implemented accessor synthesizes a private backing
        field named _<Property>; later auto accessors reuse it. The field has
        to precede the member, so accessors are rendered into a capture first.
        """
        self.cursor.advance()  # {
        owner = self.context.class_name if modifiers.is_static else 'this'
        backing_field = None
        count = 0

        with self.emitter.capture() as accessor_lines:
            with self.context.nested():
                while not self.at('}'):
                    keyword = 'with' if count == 0 else 'and'
                    access = ''
                    if self.cursor.current.text in ACCESS_KEYWORDS:
                        access = FSHARP_ACCESS[self.cursor.advance().text]

                    kind = self.cursor.current.text
                    if kind not in ('get', 'set'):
                        raise self.error("expected 'get' or 'set'")
                    self.cursor.advance()

                    if kind == 'get':
                        head = f"{keyword} {access}get ()"
                    else:
                        head = f"{keyword} {access}set (value : {declaration.type})"

                    if self.at(';'):
                        self.cursor.advance()
                        if backing_field is None:
                            backing_field = f"_{declaration.name}"
                        target = f"{owner}.{backing_field}"
                        if kind == 'get':
                            self.write(f"{head} = {target}")
                        else:
                            self.write(f"{head} = {target} <- value")
                    elif kind == 'get':
                        self.translate_getter(head)
                    else:
                        self.expect('{')
                        self.translate_accessor_body(head)
                    count += 1
        self.cursor.advance()  # }

        if count == 0:
            raise self.error("property must declare at least one accessor")
        if self.at('='):
            raise self.error("default value not supported")

        if backing_field is not None:
            static = 'static ' if modifiers.is_static else ''
            self.write(f"[<DefaultValue>] {static}val mutable private {backing_field} : {declaration.type}")
        member = 'static member ' if modifiers.is_static else 'member '
        target = declaration.name if modifiers.is_static else f"this.{declaration.name}"
        self.write(f"{member}{FSHARP_ACCESS[modifiers.access]}{target}")
        self.emitter.extend(accessor_lines)

    def translate_getter(self, head: str):
        """A getter whose whole body is 'return e;' becomes a single-expression accessor"""
        self.expect('{')
        if not self.at('return'):
            self.translate_accessor_body(head)
            return

        self.cursor.advance()  # return
        value = self.translate_expression(';')
        self.cursor.advance()  # ;
        if self.at('}'):
            self.cursor.advance()
            self.write(f"{head} = {value}")
            return

        # Statements after the return are still emitted and run; F# warns that
        # the returned expression should have type unit
        self.write(f"{head} =")
        with self.context.nested():
            self.write(value)
        self.emitter.extend(self.translate_block_lines())

    def translate_accessor_body(self, head: str):
        """Accessor statements after the opening brace"""
        body = self.translate_block_lines()
        if not body:
            self.write(f"{head} = ()")
            return
        self.write(f"{head} =")
        self.emitter.extend(body)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def translate_block_statements(self):
        """Translate statements up to (not including) the closing brace"""
        while not self.at('}'):
            self.translate_statement()

    def translate_block_lines(self) -> List[str]:
        """
        Render the statements up to the closing brace one level deeper and
        consume the brace. Returns the captured lines, which are empty when
        the block holds only empty statements or empty nested blocks.
        """
        with self.context.nested():
            with self.emitter.capture() as lines:
                self.translate_block_statements()
        self.cursor.advance()  # }
        return lines

    def translate_body(self):
        """Translate the statement or block controlled by if/while/foreach, one level deeper"""
        if self.at('{'):
            self.cursor.advance()
            body = self.translate_block_lines()
        else:
            with self.context.nested():
                with self.emitter.capture() as body:
                    self.translate_statement()

        if body:
            self.emitter.extend(body)
        else:
            with self.context.nested():
                self.write("()")

    def translate_statement(self):
        token = self.cursor.current
        text = token.text

        if token.type == TokenType.EOF:
            raise self.error("expected '}'")

        if token.type == TokenType.SEPARATOR:
            self.cursor.advance()
            return

        if token.type == TokenType.BLOCK_OPEN:
            self.cursor.advance()
            self.translate_block_statements()
            self.cursor.advance()  # }
            return

        if token.is_name:
            handler = {
                'return': self.translate_return,
                'if': self.translate_if,
                'while': self.translate_while,
                'foreach': self.translate_foreach,
                'switch': self.translate_switch,
                'throw': self.translate_throw,
                'var': self.translate_local,
            }.get(text)
            if handler is not None:
                handler()
                return
            if text in ('break', 'continue'):
                raise self.error(f"'{text}' not supported")
            if text in UNSUPPORTED_STATEMENTS:
                raise self.error(f"'{text}' statement not supported")

        self.write(self.translate_expression(';'))
        self.cursor.advance()  # ;

    def translate_return(self):
        self.cursor.advance()  # return
        if self.at(';'):
            self.cursor.advance()
            self.write("()")
            return
        self.write(self.translate_expression(';'))
        self.cursor.advance()  # ;

    def translate_condition(self) -> str:
        """Translate '( expr )' after a control keyword"""
        self.expect('(')
        condition = self.translate_expression(')')
        self.cursor.advance()  # )
        return condition

    def translate_if(self, keyword: str = 'if'):
        self.cursor.advance()  # if
        self.write(f"{keyword} {self.translate_condition()} then")
        self.translate_body()

        if self.at('else'):
            self.cursor.advance()
            if self.at('if'):
                # else-if chains stay flat
                self.translate_if('elif')
            else:
                self.write("else")
                self.translate_body()

    def translate_while(self):
        self.cursor.advance()  # while
        self.write(f"while {self.translate_condition()} do")
        self.translate_body()

    def translate_foreach(self):
        self.cursor.advance()  # foreach
        self.expect('(')
        if not self.at('var'):
            raise self.error("only 'foreach (var ...)' is supported")
        self.cursor.advance()
        name = self.expect_identifier("loop variable name")
        self.expect('in')
        collection = self.translate_expression(')')
        self.cursor.advance()  # )
        self.write(f"for {name} in {collection} do")
        self.translate_body()

    def translate_throw(self):
        self.cursor.advance()  # throw
        if self.at(';'):
            self.cursor.advance()
            self.write("reraise ()")
            return
        self.write(f"raise ({self.translate_expression(';')})")
        self.cursor.advance()  # ;

    def translate_local(self):
        self.cursor.advance()  # var
        if self.cursor.current.type != TokenType.IDENTIFIER:
            raise self.error("only identifier targets are supported in 'var' declarations")
        name = self.cursor.advance().text
        if not self.at('='):
            raise self.error("'var' declaration requires an initializer")
        self.cursor.advance()
        self.write(f"let mutable {name} = {self.translate_expression(';')}")
        self.cursor.advance()  # ;

    # -------------------------------------------------------------------------
    # Switch
    # -------------------------------------------------------------------------

    def translate_switch(self):
        """
        Translate switch into match.

        Consecutive case labels share one arm with an or-pattern. Each arm
        must end in break (unit), return (arm value) or throw (raise).
        """
        switch_token = self.cursor.advance()
        subject = self.translate_condition()
        self.expect('{')
        self.write(f"match {subject} with")

        arms = 0
        while not self.at('}'):
            patterns = []
            while self.at('case') or self.at('default'):
                if self.cursor.advance().text == 'default':
                    patterns.append('_')
                else:
                    patterns.append(self.translate_expression(':'))
                self.expect(':')
            if not patterns:
                raise self.error("expected 'case' or 'default'")
            self.translate_switch_arm(' | '.join(patterns))
            arms += 1
        self.cursor.advance()  # }

        if arms == 0:
            raise self.error("empty switch not supported", switch_token)

    def at_switch_terminator(self) -> bool:
        return any(self.at(word) for word in SWITCH_TERMINATORS)

    def translate_switch_arm(self, pattern: str):
        head = f"| {pattern} ->"
        with self.context.nested():
            with self.emitter.capture() as body:
                while not self.at_switch_terminator():
                    if self.at('case') or self.at('default') or self.at('}') or self.cursor.at_end:
                        raise self.error("case body must end with 'break', 'return' or 'throw'")
                    self.translate_statement()
            value = self.translate_switch_terminator()

        # Arms without statements fit on the pattern line
        if not body:
            self.write(f"{head} {value or '()'}")
            return
        self.write(head)
        self.emitter.extend(body)
        if value:
            with self.context.nested():
                self.write(value)

    def translate_switch_terminator(self) -> Optional[str]:
        """Consume the arm terminator and return the arm's trailing expression"""
        keyword = self.cursor.advance().text
        if keyword == 'break':
            self.expect(';')
            return None
        if self.at(';'):
            self.cursor.advance()
            return 'reraise ()' if keyword == 'throw' else '()'
        value = self.translate_expression(';')
        self.cursor.advance()  # ;
        return f"raise ({value})" if keyword == 'throw' else value

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def translate_expression(self, *stops: str, allow_empty: bool = False) -> str:
        """
        Translate tokens up to (not including) one of the stop tokens.

        Parenthesized groups, call arguments and index brackets recurse with
        their closing bracket as the stop. The stop token is left for the
        caller to consume.
        """
        out = ''
        expecting_operand = True

        while True:
            token = self.cursor.current
            text = token.text

            if token.type == TokenType.EOF:
                raise self.error(f"expected '{stops[0]}'")
            if token.type not in (TokenType.STRING, TokenType.CHAR) and text in stops:
                break

            if token.type in LITERAL_TYPES or token.type == TokenType.IDENTIFIER:
                if not expecting_operand:
                    raise self.error(f"unexpected '{text}'")
                self.cursor.advance()
                out += self.translate_operand(token)
                expecting_operand = False

            elif token.is_keyword:
                if not expecting_operand or text in STATEMENT_KEYWORDS:
                    raise self.error(f"unexpected '{text}'")
                self.cursor.advance()
                if text == 'new':
                    out += self.translate_new()
                elif text == 'delegate':
                    out += self.translate_anonymous_function()
                else:
                    out += TYPE_CLASS_NAMES.get(text, text)
                expecting_operand = False

            elif text == '(':
                self.cursor.advance()
                # A group needs content; a call may have no arguments
                inner = self.translate_expression(')', allow_empty=not expecting_operand)
                self.cursor.advance()  # )
                out += f"({inner})"
                expecting_operand = False

            elif text == '[':
                if expecting_operand:
                    raise self.error("unexpected '['")
                self.cursor.advance()
                inner = self.translate_expression(']')
                self.cursor.advance()  # ]
                out += f".[{inner}]"

            elif text == '.':
                if expecting_operand:
                    raise self.error("unexpected '.'")
                self.cursor.advance()
                out += '.'
                expecting_operand = True

            elif token.type == TokenType.COMMA:
                if expecting_operand:
                    raise self.error("unexpected ','")
                self.cursor.advance()
                out += ', '
                expecting_operand = True

            elif text in UNSUPPORTED_OPERATORS and token.type == TokenType.OPERATOR:
                raise self.error(f"{UNSUPPORTED_OPERATORS[text]} not supported")

            elif expecting_operand and text in PREFIX_OPERATORS:
                self.cursor.advance()
                out += PREFIX_OPERATORS[text]

            elif not expecting_operand and text in BINARY_OPERATORS:
                self.cursor.advance()
                out += f" {BINARY_OPERATORS[text]} "
                expecting_operand = True

            else:
                raise self.error(f"unexpected '{text}'")

        if expecting_operand and (out or not allow_empty):
            raise self.error("expected expression")
        return out

    def translate_operand(self, token: Token) -> str:
        """Identifiers and literals pass through; numeric suffixes are respelled"""
        text = token.text
        if token.type == TokenType.UINT:
            return text.rstrip('uU') + 'u'
        if token.type == TokenType.LONG:
            return text.rstrip('lL') + 'L'
        if token.type == TokenType.ULONG:
            return text.rstrip('uUlL') + 'UL'
        if token.type == TokenType.FLOAT:
            return text.rstrip('fF') + 'f'
        if token.type == TokenType.DOUBLE:
            return text.rstrip('dD')
        return text

    def translate_new(self) -> str:
        """Translate 'new T(args)', 'new T[] { ... }' or 'new T[n]'"""
        self.context.constructing = True
        try:
            _, fsharp_type = self.read_type()
        finally:
            self.context.constructing = False

        if self.at('('):
            self.cursor.advance()
            arguments = self.translate_expression(')', allow_empty=True)
            self.cursor.advance()  # )
            if self.at('{'):
                raise self.error("object initializers not supported")
            return f"new {fsharp_type}({arguments})"

        if self.at('['):
            self.cursor.advance()
            if self.at(']'):
                self.cursor.advance()
                return self.translate_array_literal()
            size = self.translate_expression(']')
            self.cursor.advance()  # ]
            return f"Array.zeroCreate<{fsharp_type}> ({size})"

        if self.at('{'):
            raise self.error("object initializers not supported")
        raise self.error("expected '(' or '[' after type in 'new' expression")

    def translate_array_literal(self) -> str:
        self.expect('{')
        elements = []
        while not self.at('}'):
            if self.cursor.current.type == TokenType.COMMA:
                raise self.error("empty array element")
            elements.append(self.translate_expression(',', '}'))
            if self.at(','):
                self.cursor.advance()
        self.cursor.advance()  # }
        if not elements:
            return "[||]"
        return f"[| {'; '.join(elements)} |]"

    def translate_anonymous_function(self) -> str:
        """Translate 'delegate (params) { body }' into a multi-line fun literal"""
        parameters = []
        if self.at('('):
            self.cursor.advance()
            parameters = self.read_parameters()
            self.expect(')')
        groups = ' '.join(f"({name} : {type_})" for name, type_ in parameters) or '()'

        self.expect('{')
        body = self.translate_block_lines()
        if not body:
            body = [f"{self.context.indent}{self.context.indent_unit}()"]

        lines = [f"(fun {groups} ->"] + body + [f"{self.context.indent})"]
        return '\n'.join(lines)


def translate(tokens: Sequence[Token], indent_unit: str = "    ") -> str:
    """
    Translate C# tokens to F# source text.

    Whitespace, newline and comment tokens may be included; they are ignored.

    Raises:
        TranslationError: At the first unsupported or malformed construct.
    """
    return FSharpTranslator(tokens, indent_unit=indent_unit).translate()


__all__ = [
    "FSharpTranslator",
    "TokenCursor",
    "TranslationContext",
    "Emitter",
    "translate",
]
