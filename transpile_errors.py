"""
Error model for the C# to F# transpiler.

Both pipeline stages fail fast: the lexer raises LexicalError, the translator
raises TranslationError. Each carries the position and the offending fragment
so the message can be shown to a person as-is.
"""

from typing import Any, Optional


class TranspileError(Exception):
    """Base class for diagnostics surfaced to users."""

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        line: int,
        column: int,
        token: Any = None,
        path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.token = token
        self.path = path

    @property
    def text(self) -> str:
        """Source text of the offending token (empty at end of input)"""
        if self.token is None:
            return ""
        return self.token.text

    def location(self) -> str:
        if self.path:
            return f"{self.path}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"

    def format(self) -> str:
        result = f"{self.location()}: {self.kind}: {self.message}"
        if self.text:
            result += f" near '{self.text}'"
        return result

    def __str__(self) -> str:
        return self.format()


class LexicalError(TranspileError):
    """Raised when the lexer finds an invalid character or an unterminated literal."""

    kind = "lexical error"


class TranslationError(TranspileError):
    """Raised when the translator meets unsupported or malformed input."""

    kind = "translation error"


__all__ = [
    "TranspileError",
    "LexicalError",
    "TranslationError",
]
