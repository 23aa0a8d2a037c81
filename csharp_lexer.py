#!/usr/bin/env python3
"""
C# Lexer

Tokenizes C# source text into a flat list of positioned tokens. Every
character of the input ends up in exactly one token: whitespace, newlines and
comments are reported too, so hosts can reconstruct or dump the raw text. The
translator only looks at the significant ones (see significant_tokens()).

Usage:
    from csharp_lexer import tokenize

    tokens = tokenize('x <<= 2;')
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional, Tuple

from transpile_errors import LexicalError


# =============================================================================
# Token Types
# =============================================================================

class TokenType(Enum):
    """C# token categories"""
    EOF = auto()            # end of input
    ERROR = auto()          # partial fragment carried by a LexicalError
    WHITESPACE = auto()     # run of spaces/tabs
    NEWLINE = auto()        # \r, \n or \r\n
    IDENTIFIER = auto()
    KEYWORD = auto()
    OPERATOR = auto()
    SEPARATOR = auto()      # ;
    COMMA = auto()          # ,
    BLOCK_OPEN = auto()     # {
    BLOCK_CLOSE = auto()    # }
    INT = auto()            # 42
    UINT = auto()           # 42u
    LONG = auto()           # 42L
    ULONG = auto()          # 42UL
    FLOAT = auto()          # 1.5f
    DOUBLE = auto()         # 1.5, 1.5d
    STRING = auto()         # "text"
    CHAR = auto()           # 'c'
    LINE_COMMENT = auto()   # // ...
    BLOCK_COMMENT = auto()  # /* ... */


OMISSIBLE_TYPES = frozenset({
    TokenType.WHITESPACE,
    TokenType.NEWLINE,
    TokenType.LINE_COMMENT,
    TokenType.BLOCK_COMMENT,
})

NUMERIC_TYPES = frozenset({
    TokenType.INT, TokenType.UINT, TokenType.LONG, TokenType.ULONG,
    TokenType.FLOAT, TokenType.DOUBLE,
})


@dataclass(frozen=True)
class Token:
    """A classified fragment of source text and the position where it starts"""
    text: str
    type: TokenType
    line: int
    column: int

    @property
    def is_omissible(self) -> bool:
        return self.type in OMISSIBLE_TYPES

    @property
    def is_keyword(self) -> bool:
        return self.type == TokenType.KEYWORD

    @property
    def is_name(self) -> bool:
        """Identifier or keyword"""
        return self.type in (TokenType.IDENTIFIER, TokenType.KEYWORD)

    def expand_tabs(self, tab: int = 4) -> str:
        """Text of a whitespace token with tabs expanded to the next tab stop"""
        if self.type != TokenType.WHITESPACE:
            return self.text
        result = []
        column = self.column
        for char in self.text:
            if char == '\t':
                width = tab - ((column - 1) % tab)
                result.append(' ' * width)
                column += width
            else:
                result.append(char)
                column += 1
        return ''.join(result)

    def describe(self) -> str:
        """One-line debug rendering used by the token dump"""
        prefix = f"[{self.line}, {self.column}] {self.type.name}: "
        if self.type == TokenType.WHITESPACE:
            return prefix + str(len(self.expand_tabs(4)))
        if self.type == TokenType.NEWLINE:
            return prefix + self.text.replace('\r', '\\r').replace('\n', '\\n')
        return prefix + self.text

    def __repr__(self):
        return f"Token({self.type.name}, {self.text!r}, {self.line}:{self.column})"


# =============================================================================
# C# Character Sets
# =============================================================================

OPERATORS = (
    ".", "(", ")", "[", "]", "++", "--", "->",
    "+", "-", "!", "~", "&", "*", "/", "%",
    "<<", ">>", "<", ">", "<=", ">=", "==", "!=",
    "^", "|", "&&", "||", "??", "?:", "=", "+=",
    "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=",
    ">>=", "=>", "?", ":",
)

KEYWORDS = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
    "char", "checked", "class", "const", "continue", "decimal", "default", "delegate",
    "do", "double", "else", "enum", "event", "explicit", "extern", "false",
    "finally", "fixed", "float", "for", "foreach", "goto", "if", "implicit",
    "in", "int", "interface", "internal", "is", "lock", "long", "namespace",
    "new", "null", "object", "operator", "out", "override", "params", "private",
    "protected", "public", "readonly", "ref", "return", "sbyte", "sealed", "short",
    "sizeof", "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe", "ushort",
    "using", "virtual", "void", "volatile", "while",
})

SINGLE_CHAR_TOKENS = {
    ';': TokenType.SEPARATOR,
    ',': TokenType.COMMA,
    '{': TokenType.BLOCK_OPEN,
    '}': TokenType.BLOCK_CLOSE,
}

DIGITS = '0123456789'


def _build_operator_table(operators: Iterable[str]) -> Dict[str, Tuple[str, ...]]:
    """Group operators by first character, longest first, ties in lexicographic order"""
    groups: Dict[str, List[str]] = {}
    for op in operators:
        groups.setdefault(op[0], []).append(op)
    return {
        head: tuple(sorted(candidates, key=lambda op: (-len(op), op)))
        for head, candidates in groups.items()
    }


OPERATOR_TABLE = _build_operator_table(OPERATORS)


def is_identifier_start(char: str) -> bool:
    return char == '_' or 'A' <= char <= 'Z' or 'a' <= char <= 'z' or ord(char) >= 128


def is_identifier_char(char: str) -> bool:
    return is_identifier_start(char) or char in DIGITS


# =============================================================================
# C# Lexer
# =============================================================================

class CSharpLexer:
    """
    Tokenizes C# source code into a stream of tokens.

    Scans left to right without backtracking. Classification at each position,
    in priority order: whitespace, newline, single-character punctuation,
    character literal, string literal, comment, number, identifier/keyword,
    and finally the longest operator starting with the current character.
    The first character nothing matches raises LexicalError.
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []
        self._start_pos = 0
        self._start_line = 1
        self._start_column = 1

    def current_char(self) -> Optional[str]:
        """Get current character or None if at end"""
        if self.pos < len(self.source):
            return self.source[self.pos]
        return None

    def peek_char(self, offset: int = 1) -> Optional[str]:
        """Look ahead without advancing"""
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self) -> Optional[str]:
        """Move to next character, tracking line and column"""
        char = self.current_char()
        if char is None:
            return None
        self.pos += 1
        if char == '\n' or (char == '\r' and self.current_char() != '\n'):
            self.line += 1
            self.column = 1
        elif char != '\r':
            self.column += 1
        return char

    def at(self, chars: str) -> bool:
        """True if the current character is one of chars"""
        char = self.current_char()
        return char is not None and char in chars

    def begin_token(self):
        self._start_pos = self.pos
        self._start_line = self.line
        self._start_column = self.column

    def finish_token(self, token_type: TokenType) -> Token:
        return Token(
            text=self.source[self._start_pos:self.pos],
            type=token_type,
            line=self._start_line,
            column=self._start_column
        )

    def error(self, message: str) -> LexicalError:
        fragment = self.finish_token(TokenType.ERROR)
        return LexicalError(
            message,
            line=fragment.line,
            column=fragment.column,
            token=fragment
        )

    def read_whitespace(self) -> Token:
        while self.at(' \t'):
            self.advance()
        return self.finish_token(TokenType.WHITESPACE)

    def read_newline(self) -> Token:
        if self.advance() == '\r' and self.current_char() == '\n':
            self.advance()
        return self.finish_token(TokenType.NEWLINE)

    def read_char(self) -> Token:
        """Read a character literal: one optional escape, one character, closing quote"""
        self.advance()  # Opening quote
        if self.current_char() == '\\':
            self.advance()
        if self.advance() is None or self.current_char() != "'":
            raise self.error("unterminated character")
        self.advance()
        return self.finish_token(TokenType.CHAR)

    def read_string(self) -> Token:
        """Read a string literal; a backslash escapes the next character"""
        self.advance()  # Opening quote
        while True:
            char = self.advance()
            if char is None:
                raise self.error("unterminated string")
            if char == '"':
                break
            if char == '\\' and self.advance() is None:
                raise self.error("unterminated string")
        return self.finish_token(TokenType.STRING)

    def read_comment(self) -> Token:
        """Read a // or /* */ comment"""
        self.advance()  # First slash
        if self.advance() == '/':
            while self.current_char() is not None and not self.at('\r\n'):
                self.advance()
            return self.finish_token(TokenType.LINE_COMMENT)

        while True:
            if self.current_char() is None:
                raise self.error("unterminated comment")
            if self.current_char() == '*' and self.peek_char() == '/':
                self.advance()
                self.advance()
                return self.finish_token(TokenType.BLOCK_COMMENT)
            self.advance()

    def read_number(self) -> Token:
        """Read a numeric literal and classify it by shape and suffix"""
        while self.at(DIGITS):
            self.advance()

        # Decimal part
        if self.current_char() == '.' and self.peek_char() is not None and self.peek_char() in DIGITS:
            self.advance()
            while self.at(DIGITS):
                self.advance()
            if self.at('fF'):
                self.advance()
                return self.finish_token(TokenType.FLOAT)
            if self.at('dD'):
                self.advance()
            return self.finish_token(TokenType.DOUBLE)

        unsigned = False
        if self.at('uU'):
            self.advance()
            unsigned = True
        if self.at('lL'):
            self.advance()
            return self.finish_token(TokenType.ULONG if unsigned else TokenType.LONG)
        return self.finish_token(TokenType.UINT if unsigned else TokenType.INT)

    def read_name(self) -> Token:
        """Read an identifier or keyword"""
        while self.current_char() is not None and is_identifier_char(self.current_char()):
            self.advance()
        token = self.finish_token(TokenType.IDENTIFIER)
        if token.text in KEYWORDS:
            return self.finish_token(TokenType.KEYWORD)
        return token

    def read_operator(self) -> Token:
        """Read the longest operator that starts at the current position"""
        for op in OPERATOR_TABLE.get(self.current_char(), ()):
            if self.source.startswith(op, self.pos):
                for _ in op:
                    self.advance()
                return self.finish_token(TokenType.OPERATOR)
        self.advance()
        raise self.error("invalid character")

    def read_token(self) -> Token:
        """Read one token starting at the current position"""
        self.begin_token()
        char = self.current_char()

        if char in (' ', '\t'):
            return self.read_whitespace()

        if char in ('\r', '\n'):
            return self.read_newline()

        if char in SINGLE_CHAR_TOKENS:
            self.advance()
            return self.finish_token(SINGLE_CHAR_TOKENS[char])

        if char == "'":
            return self.read_char()

        if char == '"':
            return self.read_string()

        if char == '/' and self.peek_char() in ('/', '*'):
            return self.read_comment()

        if char in DIGITS:
            return self.read_number()

        if is_identifier_start(char):
            return self.read_name()

        return self.read_operator()

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source; the last token is always EOF"""
        self.tokens = []
        while self.pos < len(self.source):
            self.tokens.append(self.read_token())
        self.tokens.append(Token("", TokenType.EOF, self.line, self.column))
        return self.tokens


def tokenize(source: str) -> List[Token]:
    """
    Tokenize C# source text.

    Returns every token including whitespace, newlines and comments, followed
    by a single EOF token.

    Raises:
        LexicalError: On an invalid character or an unterminated character
            literal, string literal or block comment.
    """
    return CSharpLexer(source).tokenize()


def significant_tokens(tokens: Iterable[Token]) -> List[Token]:
    """Drop whitespace, newline and comment tokens"""
    return [token for token in tokens if not token.is_omissible]


__all__ = [
    "TokenType",
    "Token",
    "CSharpLexer",
    "OPERATORS",
    "OPERATOR_TABLE",
    "KEYWORDS",
    "tokenize",
    "significant_tokens",
]
