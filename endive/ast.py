"""Abstract Syntax Tree (AST) definitions for the Endive language.

The parser builds these nodes from tokens; the analyzer then fills in the
resolved slots (expression types and variable/function bindings) that the
interpreter and the generator read. Resolved slots never take part in
equality, so a freshly parsed tree compares equal to an analyzed one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


def _resolved(node: 'Node', value: Any, what: str) -> Any:
    if value is None:
        raise ValueError(f"{type(node).__name__} {what} has not been analyzed")
    return value


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Expression(Node):
    """Base class for expressions; carries the analyzer's resolved type."""
    resolved_type: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def type(self) -> Any:
        return _resolved(self, self.resolved_type, 'type')

    @type.setter
    def type(self, value: Any) -> None:
        self.resolved_type = value


@dataclass
class Source(Node):
    fields: List['Field']
    methods: List['Method']


@dataclass
class Field(Node):
    name: str
    type_name: Optional[str]
    constant: bool
    value: Optional[Expression]
    resolved_variable: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def variable(self) -> Any:
        return _resolved(self, self.resolved_variable, 'variable')

    @variable.setter
    def variable(self, value: Any) -> None:
        self.resolved_variable = value


@dataclass
class Method(Node):
    name: str
    parameters: List[str]
    parameter_type_names: List[Optional[str]]
    return_type_name: Optional[str]
    statements: List[Node]
    resolved_function: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def function(self) -> Any:
        return _resolved(self, self.resolved_function, 'function')

    @function.setter
    def function(self, value: Any) -> None:
        self.resolved_function = value


@dataclass
class ExprStmt(Node):
    expr: Expression


@dataclass
class Declaration(Node):
    name: str
    type_name: Optional[str]
    value: Optional[Expression]
    resolved_variable: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def variable(self) -> Any:
        return _resolved(self, self.resolved_variable, 'variable')

    @variable.setter
    def variable(self, value: Any) -> None:
        self.resolved_variable = value


@dataclass
class Assign(Node):
    receiver: Expression  # must be an Access; checked by the analyzer
    value: Expression


@dataclass
class IfStmt(Node):
    condition: Expression
    then_statements: List[Node]
    else_statements: List[Node]


@dataclass
class ForStmt(Node):
    initialization: Optional[Assign]
    condition: Expression
    increment: Optional[Assign]
    statements: List[Node]


@dataclass
class WhileStmt(Node):
    condition: Expression
    statements: List[Node]


@dataclass
class ReturnStmt(Node):
    value: Expression


@dataclass
class Literal(Expression):
    value: Any  # None, bool, CharVal, str, int or Decimal


@dataclass
class Group(Expression):
    expression: Expression


@dataclass
class BinaryOp(Expression):
    operator: str
    left: Expression
    right: Expression


@dataclass
class Access(Expression):
    receiver: Optional[Expression]
    name: str
    resolved_variable: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def variable(self) -> Any:
        return _resolved(self, self.resolved_variable, 'variable')

    @variable.setter
    def variable(self, value: Any) -> None:
        self.resolved_variable = value


@dataclass
class Call(Expression):
    receiver: Optional[Expression]
    name: str
    arguments: List[Expression]
    resolved_function: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def function(self) -> Any:
        return _resolved(self, self.resolved_function, 'function')

    @function.setter
    def function(self, value: Any) -> None:
        self.resolved_function = value
