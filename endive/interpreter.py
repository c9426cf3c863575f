"""Interpreter for the Endive language.

This module walks an Endive AST and executes it directly. The tree may or
may not have been through the analyzer first: the interpreter re-checks
everything it depends on at runtime and raises `EvaluationError` when a
check fails.

Statements return `None` on normal completion or a `ReturnSignal` carrying
the value of a `RETURN`. Blocks and loops hand the signal upwards unchanged;
only the method-call boundary turns it back into an ordinary result.
"""

from __future__ import annotations

import sys
from decimal import Context, Decimal, MAX_EMAX, MAX_PREC, MIN_EMIN
from fractions import Fraction
from typing import Any, List, Optional

from .analyzer import Analyzer
from .ast import (
    Source, Field, Method, ExprStmt, Declaration, Assign, IfStmt, ForStmt,
    WhileStmt, ReturnStmt, Literal, Group, BinaryOp, Access, Call, Node,
)
from .environment import Function, Scope, Variable
from .errors import EvaluationError, ReturnSignal, ScopeError
from .parser import parse_program
from .std.io import populate_runtime_io
from .types import NIL, CharVal, ObjectVal, to_string, type_name

# Addition, subtraction and multiplication of decimals never round.
EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

COMPARABLE_TAGS = ('Integer', 'Decimal', 'Character', 'String')

# Every Endive call costs several Python frames.
sys.setrecursionlimit(max(sys.getrecursionlimit(), 20000))


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _scale(value: Decimal) -> int:
    return -value.as_tuple().exponent


def divide_integers(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    if b == 0:
        raise EvaluationError('division by zero')
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def divide_decimals(a: Decimal, b: Decimal) -> Decimal:
    """Divide, rounding half-even to the larger of the operands' scales."""
    if b == 0:
        raise EvaluationError('division by zero')
    scale = max(_scale(a), _scale(b))
    scaled = round(Fraction(a) / Fraction(b) * Fraction(10) ** scale)
    return Decimal(scaled).scaleb(-scale, EXACT)


class Interpreter:
    """Core interpreter that executes an Endive AST."""
    def __init__(self, parent: Optional[Scope] = None, debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.scope = populate_runtime_io(Scope(parent))
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'a') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write('interpreter: ' + msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Public API
    def run(self, source: Source) -> Any:
        """Execute a program and return the value produced by `main/0`."""
        try:
            self.debug('run source')
            try:
                result = self.execute_source(source, self.scope)
            except RecursionError as e:
                raise EvaluationError('call stack exhausted') from e
            self.debug(f'main returned {to_string(result)}')
            return result
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def execute_source(self, source: Source, scope: Scope) -> Any:
        for field in source.fields:
            self.execute_field(field, scope)
        for method in source.methods:
            self.define_method(method, scope)
        try:
            main = scope.lookup_function('main', 0)
        except ScopeError as e:
            raise EvaluationError('program has no main/0 method') from e
        return main.invoke([])

    def execute_field(self, field: Field, scope: Scope) -> None:
        value = self.evaluate(field.value, scope) if field.value is not None else NIL
        self.define_variable(scope, Variable(field.name, field.name, constant=field.constant, value=value))
        if self.debug_level >= 2:
            self.debug(f"field {field.name} = {to_string(value)}")

    def define_method(self, method: Method, scope: Scope) -> Function:
        def invoke(args: List[Any]) -> Any:
            call_scope = Scope(scope)
            for name, arg in zip(method.parameters, args):
                self.define_variable(call_scope, Variable(name, name, value=arg))
            if self.debug_level >= 3:
                self.debug(f"call {method.name}({', '.join(to_string(a) for a in args)})")
            result = self.execute_block(method.statements, call_scope)
            if isinstance(result, ReturnSignal):
                return result.value
            return NIL

        function = Function(method.name, method.name, len(method.parameters), fn=invoke)
        try:
            scope.define_function(function)
        except ScopeError as e:
            raise EvaluationError(e.err.message) from e
        if self.debug_level >= 2:
            self.debug(f"define method {method.name}/{len(method.parameters)}")
        return function

    @staticmethod
    def define_variable(scope: Scope, variable: Variable) -> Variable:
        try:
            return scope.define_variable(variable)
        except ScopeError as e:
            raise EvaluationError(e.err.message) from e

    @staticmethod
    def lookup_variable(scope: Scope, name: str) -> Variable:
        try:
            return scope.lookup_variable(name)
        except ScopeError as e:
            raise EvaluationError(e.err.message) from e

    def execute_block(self, statements: List[Node], scope: Scope) -> Optional[ReturnSignal]:
        for stmt in statements:
            result = self.execute(stmt, scope)
            if isinstance(result, ReturnSignal):
                return result
        return None

    def require_boolean(self, value: Any, construct: str) -> bool:
        if not isinstance(value, bool):
            raise EvaluationError(f'{construct} condition must be Boolean, got {type_name(value)}')
        if self.debug_level >= 3:
            self.debug(f"{construct} condition -> {to_string(value)}")
        return value

    def execute(self, node: Node, scope: Scope) -> Optional[ReturnSignal]:
        if isinstance(node, ExprStmt):
            self.evaluate(node.expr, scope)
            return None
        if isinstance(node, Declaration):
            value = self.evaluate(node.value, scope) if node.value is not None else NIL
            self.define_variable(scope, Variable(node.name, node.name, value=value))
            if self.debug_level >= 2:
                self.debug(f"declare {node.name} = {to_string(value)}")
            return None
        if isinstance(node, Assign):
            self.assign(node, scope)
            return None
        if isinstance(node, IfStmt):
            if self.require_boolean(self.evaluate(node.condition, scope), 'if'):
                return self.execute_block(node.then_statements, Scope(scope))
            return self.execute_block(node.else_statements, Scope(scope))
        if isinstance(node, ForStmt):
            loop_scope = Scope(scope)
            if node.initialization is not None:
                self.execute(node.initialization, loop_scope)
            while self.require_boolean(self.evaluate(node.condition, loop_scope), 'for'):
                result = self.execute_block(node.statements, Scope(loop_scope))
                if isinstance(result, ReturnSignal):
                    return result
                if node.increment is not None:
                    self.execute(node.increment, loop_scope)
            return None
        if isinstance(node, WhileStmt):
            while self.require_boolean(self.evaluate(node.condition, scope), 'while'):
                result = self.execute_block(node.statements, Scope(scope))
                if isinstance(result, ReturnSignal):
                    return result
            return None
        if isinstance(node, ReturnStmt):
            return ReturnSignal(self.evaluate(node.value, scope))
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def assign(self, node: Assign, scope: Scope) -> None:
        if not isinstance(node.receiver, Access):
            raise EvaluationError('assignment receiver must be a variable or field access')
        value = self.evaluate(node.value, scope)
        receiver = node.receiver
        if receiver.receiver is not None:
            target = self.evaluate(receiver.receiver, scope)
            if not isinstance(target, ObjectVal):
                raise EvaluationError(f'cannot assign field {receiver.name} on {type_name(target)}')
            target.set_field(receiver.name, value)
            return
        variable = self.lookup_variable(scope, receiver.name)
        if variable.constant:
            raise EvaluationError(f'cannot assign to constant {receiver.name}')
        variable.value = value

    def evaluate(self, node: Node, scope: Scope) -> Any:
        if isinstance(node, Literal):
            return NIL if node.value is None else node.value
        if isinstance(node, Group):
            return self.evaluate(node.expression, scope)
        if isinstance(node, BinaryOp):
            return self.evaluate_binary(node, scope)
        if isinstance(node, Access):
            if node.receiver is not None:
                target = self.evaluate(node.receiver, scope)
                if not isinstance(target, ObjectVal):
                    raise EvaluationError(f'cannot access field {node.name} on {type_name(target)}')
                return target.get_field(node.name)
            return self.lookup_variable(scope, node.name).value
        if isinstance(node, Call):
            if node.receiver is not None:
                target = self.evaluate(node.receiver, scope)
                args = [self.evaluate(arg, scope) for arg in node.arguments]
                if not isinstance(target, ObjectVal):
                    raise EvaluationError(f'cannot call method {node.name} on {type_name(target)}')
                return target.call_method(node.name, args)
            args = [self.evaluate(arg, scope) for arg in node.arguments]
            try:
                function = scope.lookup_function(node.name, len(args))
            except ScopeError as e:
                raise EvaluationError(e.err.message) from e
            return function.invoke(args)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def evaluate_binary(self, node: BinaryOp, scope: Scope) -> Any:
        left = self.evaluate(node.left, scope)
        # AND / OR short-circuit: the right operand may never run.
        if node.operator in ('AND', '&&'):
            if not self.require_boolean(left, node.operator):
                return False
            return self.require_boolean(self.evaluate(node.right, scope), node.operator)
        if node.operator in ('OR', '||'):
            if self.require_boolean(left, node.operator):
                return True
            return self.require_boolean(self.evaluate(node.right, scope), node.operator)
        right = self.evaluate(node.right, scope)
        return self.apply_binary_op(node.operator, left, right)

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op in ('==', '!='):
            eq = self.equal_values(a, b)
            return eq if op == '==' else not eq
        if op in ('<', '<=', '>', '>='):
            return self.compare_values(op, a, b)
        if op == '+' and (isinstance(a, str) or isinstance(b, str)):
            return to_string(a) + to_string(b)
        if op in ('+', '-', '*', '/'):
            if _is_integer(a) and _is_integer(b):
                if op == '+':
                    return a + b
                if op == '-':
                    return a - b
                if op == '*':
                    return a * b
                return divide_integers(a, b)
            if isinstance(a, Decimal) and isinstance(b, Decimal):
                if op == '+':
                    return EXACT.add(a, b)
                if op == '-':
                    return EXACT.subtract(a, b)
                if op == '*':
                    return EXACT.multiply(a, b)
                return divide_decimals(a, b)
            raise EvaluationError(f'unsupported {op} for {type_name(a)} and {type_name(b)}')
        raise EvaluationError(f'unknown operator {op}')

    @staticmethod
    def equal_values(a: Any, b: Any) -> bool:
        if type_name(a) != type_name(b):
            return False
        if isinstance(a, ObjectVal):
            return a is b
        return a == b

    @staticmethod
    def compare_values(op: str, a: Any, b: Any) -> bool:
        tag = type_name(a)
        if tag != type_name(b) or tag not in COMPARABLE_TAGS:
            raise EvaluationError(f'comparison not supported for {type_name(a)} and {type_name(b)}')
        if isinstance(a, CharVal):
            a, b = a.value, b.value
        if op == '<':
            return a < b
        if op == '<=':
            return a <= b
        if op == '>':
            return a > b
        return a >= b


def run_program(source: str, check: bool = True, debug_level: int = 0) -> Any:
    """Parse, optionally analyze, and execute an Endive program.

    Returns the value `main/0` produced.
    """
    program = parse_program(source)
    if check:
        Analyzer(debug_level=debug_level).analyze(program)
    return Interpreter(debug_level=debug_level).run(program)
