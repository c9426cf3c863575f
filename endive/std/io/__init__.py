from typing import Any, List

from endive.environment import Function, Scope
from endive.errors import EvaluationError
from endive.types import NIL, Type, to_string


def populate_static_io(scope: Scope) -> Scope:
    """Declare the I/O builtins' signatures for the analyzer."""
    scope.define_function(Function(
        'print', 'System.out.println', 1,
        parameter_types=[Type.ANY], return_type=Type.NIL,
    ))
    return scope


def populate_runtime_io(scope: Scope) -> Scope:
    """Bind the I/O builtins' implementations for the interpreter."""

    def std_print(args: List[Any]) -> Any:
        if len(args) != 1:
            raise EvaluationError('print(value) expects 1 argument')
        print(to_string(args[0]))
        return NIL

    scope.define_function(Function('print', 'System.out.println', 1, fn=std_print))
    return scope
