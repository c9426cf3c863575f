from dataclasses import dataclass
from typing import Any


@dataclass
class ErrorVal:
    """Represents an Endive error: a category name plus a message."""
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


class EndiveError(Exception):
    """Base exception for every failure raised by the Endive pipeline."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"{err.name}: {err.message}")
        self.err = err


class ParseError(EndiveError):
    """Malformed token sequence; `index` is the offending source offset."""
    def __init__(self, message: str, index: int):
        super().__init__(ErrorVal('SyntaxError', f"{message} (at index {index})"))
        self.message = message
        self.index = index


class LexError(ParseError):
    """Raised when raw text cannot be split into tokens."""


class AnalysisError(EndiveError):
    def __init__(self, message: str):
        super().__init__(ErrorVal('SemanticError', message))


class EvaluationError(EndiveError):
    def __init__(self, message: str):
        super().__init__(ErrorVal('RuntimeError', message))


class ScopeError(EndiveError):
    """Unbound or duplicate name in a scope chain."""
    def __init__(self, message: str):
        super().__init__(ErrorVal('NameError', message))


class ReturnSignal:
    """Result of a `RETURN` statement, passed up until a call boundary."""
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"
