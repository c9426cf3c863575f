"""Static analyzer for the Endive language.

The analyzer makes one top-down pass over a parsed `Source` tree. It
resolves every name against its own scope chain, gives every expression a
static type and attaches variable/function bindings to the nodes that
reference them. A program is either fully annotated or rejected with an
`AnalysisError`; nothing half-analyzed is handed to the interpreter.

Fields are analyzed before methods, so a field initializer only sees the
fields declared above it. Every method signature is declared before any
method body is analyzed, which is what makes direct and mutual recursion
work inside bodies.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import List, Optional

from .ast import (
    Source, Field, Method, ExprStmt, Declaration, Assign, IfStmt, ForStmt,
    WhileStmt, ReturnStmt, Literal, Group, BinaryOp, Access, Call, Node,
    Expression,
)
from .environment import Function, Scope, Variable
from .errors import AnalysisError, ScopeError
from .std.io import populate_static_io
from .types import (
    CharVal, COMPARABLE_TYPES, INT_MAX, INT_MIN, Type, get_type,
    require_assignable,
)


def _define_variable(scope: Scope, variable: Variable) -> Variable:
    try:
        return scope.define_variable(variable)
    except ScopeError as e:
        raise AnalysisError(e.err.message) from e


def _lookup_variable(scope: Scope, name: str) -> Variable:
    try:
        return scope.lookup_variable(name)
    except ScopeError as e:
        raise AnalysisError(e.err.message) from e


def _define_function(scope: Scope, function: Function) -> Function:
    try:
        return scope.define_function(function)
    except ScopeError as e:
        raise AnalysisError(e.err.message) from e


def _lookup_function(scope: Scope, name: str, arity: int) -> Function:
    try:
        return scope.lookup_function(name, arity)
    except ScopeError as e:
        raise AnalysisError(e.err.message) from e


class Analyzer:
    """Checks an Endive AST for scope and type errors."""
    def __init__(self, parent: Optional[Scope] = None, debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.scope = populate_static_io(Scope(parent))
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'a') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write('analyzer: ' + msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Public API
    def analyze(self, source: Source) -> Source:
        """Analyze a whole program in this analyzer's root scope."""
        try:
            self.debug('analyze source')
            self.analyze_source(source, self.scope)
            return source
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def analyze_source(self, source: Source, scope: Scope) -> None:
        for field in source.fields:
            self.analyze_field(field, scope)
        for method in source.methods:
            self.declare_method(method, scope)
        for method in source.methods:
            self.analyze_method(method, scope)
        try:
            main = scope.lookup_function('main', 0)
        except ScopeError as e:
            raise AnalysisError('program has no main/0 method') from e
        if main.return_type is not Type.INTEGER:
            raise AnalysisError(f'main/0 must return Integer, not {main.return_type}')

    def analyze_field(self, field: Field, scope: Scope) -> None:
        field_type: Optional[Type] = None
        if field.type_name is not None:
            field_type = get_type(field.type_name)
        if field.value is not None:
            value_type = self.analyze_expression(field.value, scope)
            if field_type is None:
                field_type = value_type
            require_assignable(field_type, value_type)
        elif field.constant:
            raise AnalysisError(f'constant field {field.name} has no initial value')
        if field_type is None:
            raise AnalysisError(f'field {field.name} has neither a type nor an initial value')
        variable = Variable(field.name, field.name, constant=field.constant, type=field_type)
        field.variable = _define_variable(scope, variable)
        if self.debug_level >= 2:
            self.debug(f"field {field.name}: {field_type}")

    def declare_method(self, method: Method, scope: Scope) -> None:
        parameter_types = [Type.ANY if name is None else get_type(name) for name in method.parameter_type_names]
        return_type = Type.NIL if method.return_type_name is None else get_type(method.return_type_name)
        function = Function(
            method.name, method.name, len(method.parameters),
            parameter_types=parameter_types, return_type=return_type,
        )
        method.function = _define_function(scope, function)
        if self.debug_level >= 2:
            self.debug(f"method {method.name}/{len(method.parameters)} -> {return_type}")

    def analyze_method(self, method: Method, scope: Scope) -> None:
        body_scope = Scope(scope)
        for name, parameter_type in zip(method.parameters, method.function.parameter_types):
            _define_variable(body_scope, Variable(name, name, type=parameter_type))
        for stmt in method.statements:
            self.analyze_statement(stmt, body_scope, method)

    def analyze_block(self, statements: List[Node], scope: Scope, method: Optional[Method]) -> None:
        block_scope = Scope(scope)
        for stmt in statements:
            self.analyze_statement(stmt, block_scope, method)

    def require_boolean(self, condition: Expression, scope: Scope, construct: str) -> None:
        condition_type = self.analyze_expression(condition, scope)
        if condition_type is not Type.BOOLEAN:
            raise AnalysisError(f'{construct} condition must be Boolean, not {condition_type}')

    def analyze_statement(self, node: Node, scope: Scope, method: Optional[Method] = None) -> None:
        if isinstance(node, ExprStmt):
            self.analyze_expression(node.expr, scope)
            return
        if isinstance(node, Declaration):
            value_type = self.analyze_expression(node.value, scope) if node.value is not None else None
            if node.type_name is not None:
                declared = get_type(node.type_name)
                if value_type is not None:
                    require_assignable(declared, value_type)
            elif value_type is not None:
                declared = value_type
            else:
                raise AnalysisError(f'declaration of {node.name} has neither a type nor an initial value')
            node.variable = _define_variable(scope, Variable(node.name, node.name, type=declared))
            if self.debug_level >= 2:
                self.debug(f"declare {node.name}: {declared}")
            return
        if isinstance(node, Assign):
            if not isinstance(node.receiver, Access):
                raise AnalysisError('assignment receiver must be a variable or field access')
            target_type = self.analyze_expression(node.receiver, scope)
            value_type = self.analyze_expression(node.value, scope)
            if node.receiver.variable.constant:
                raise AnalysisError(f'cannot assign to constant {node.receiver.name}')
            require_assignable(target_type, value_type)
            return
        if isinstance(node, IfStmt):
            self.require_boolean(node.condition, scope, 'if')
            if not node.then_statements:
                raise AnalysisError('if statement has an empty then-branch')
            self.analyze_block(node.then_statements, scope, method)
            if node.else_statements:
                self.analyze_block(node.else_statements, scope, method)
            return
        if isinstance(node, ForStmt):
            loop_scope = Scope(scope)
            loop_type: Optional[Type] = None
            if node.initialization is not None:
                self.analyze_statement(node.initialization, loop_scope, method)
                loop_type = node.initialization.receiver.type
            self.require_boolean(node.condition, loop_scope, 'for')
            if node.increment is not None:
                self.analyze_statement(node.increment, loop_scope, method)
                increment_type = node.increment.receiver.type
                if loop_type is not None and increment_type is not loop_type:
                    raise AnalysisError(f'for increment has type {increment_type}, expected {loop_type}')
            if not node.statements:
                raise AnalysisError('for statement has an empty body')
            self.analyze_block(node.statements, loop_scope, method)
            return
        if isinstance(node, WhileStmt):
            self.require_boolean(node.condition, scope, 'while')
            self.analyze_block(node.statements, scope, method)
            return
        if isinstance(node, ReturnStmt):
            value_type = self.analyze_expression(node.value, scope)
            if method is None:
                raise AnalysisError('return statement outside of a method')
            require_assignable(method.function.return_type, value_type)
            return
        raise NotImplementedError(f"analyze_statement: unexpected node type {type(node)}")

    def analyze_expression(self, node: Expression, scope: Scope) -> Type:
        """Type-check an expression, record its type on the node, return it."""
        node.type = self.resolve_expression(node, scope)
        if self.debug_level >= 3:
            self.debug(f"{type(node).__name__} : {node.type}")
        return node.type

    def resolve_expression(self, node: Expression, scope: Scope) -> Type:
        if isinstance(node, Literal):
            return self.literal_type(node.value)
        if isinstance(node, Group):
            return self.analyze_expression(node.expression, scope)
        if isinstance(node, BinaryOp):
            left = self.analyze_expression(node.left, scope)
            right = self.analyze_expression(node.right, scope)
            return self.binary_type(node.operator, left, right)
        if isinstance(node, Access):
            if node.receiver is not None:
                receiver_type = self.analyze_expression(node.receiver, scope)
                node.variable = _lookup_variable(receiver_type.scope, node.name)
            else:
                node.variable = _lookup_variable(scope, node.name)
            return node.variable.type
        if isinstance(node, Call):
            argument_types = [self.analyze_expression(arg, scope) for arg in node.arguments]
            if node.receiver is not None:
                receiver_type = self.analyze_expression(node.receiver, scope)
                function = _lookup_function(receiver_type.scope, node.name, len(node.arguments) + 1)
                parameter_types = function.parameter_types[1:]
            else:
                function = _lookup_function(scope, node.name, len(node.arguments))
                parameter_types = function.parameter_types
            for parameter_type, argument_type in zip(parameter_types, argument_types):
                require_assignable(parameter_type, argument_type)
            node.function = function
            return function.return_type
        raise NotImplementedError(f"analyze_expression: unexpected node type {type(node)}")

    @staticmethod
    def literal_type(value) -> Type:
        if value is None:
            return Type.NIL
        if isinstance(value, bool):
            return Type.BOOLEAN
        if isinstance(value, CharVal):
            return Type.CHARACTER
        if isinstance(value, str):
            return Type.STRING
        if isinstance(value, int):
            if not INT_MIN <= value <= INT_MAX:
                raise AnalysisError(f'integer literal {value} is out of range')
            return Type.INTEGER
        if isinstance(value, Decimal):
            as_double = float(value)
            if math.isinf(as_double) or math.isnan(as_double):
                raise AnalysisError(f'decimal literal {value} is out of range')
            return Type.DECIMAL
        raise AnalysisError(f'unsupported literal {value!r}')

    @staticmethod
    def binary_type(operator: str, left: Type, right: Type) -> Type:
        if operator in ('AND', 'OR', '&&', '||'):
            if left is not Type.BOOLEAN or right is not Type.BOOLEAN:
                raise AnalysisError(f'{operator} requires Boolean operands, not {left} and {right}')
            return Type.BOOLEAN
        if operator in ('<', '<=', '>', '>=', '==', '!='):
            if left not in COMPARABLE_TYPES or right is not left:
                raise AnalysisError(f'{operator} requires matching Comparable operands, not {left} and {right}')
            return Type.BOOLEAN
        if operator == '+' and (left is Type.STRING or right is Type.STRING):
            return Type.STRING
        if operator in ('+', '-', '*', '/'):
            if left not in (Type.INTEGER, Type.DECIMAL) or right is not left:
                raise AnalysisError(f'{operator} requires matching Integer or Decimal operands, not {left} and {right}')
            return left
        raise AnalysisError(f'unknown operator {operator}')


def analyze_program(source: Source, debug_level: int = 0) -> Source:
    """Analyze `source` with a fresh analyzer and return the annotated tree."""
    return Analyzer(debug_level=debug_level).analyze(source)
