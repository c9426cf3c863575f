from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from endive.errors import ScopeError


@dataclass(eq=False)
class Variable:
    """A variable binding.

    The analyzer fills in `type` and leaves `value` unset; the interpreter
    does the opposite.
    """
    name: str
    jvm_name: str
    constant: bool = False
    type: Any = None
    value: Any = None

    def __repr__(self) -> str:
        return f"<variable {self.name}>"


@dataclass(eq=False)
class Function:
    """A function binding, keyed in its scope by name and arity."""
    name: str
    jvm_name: str
    arity: int
    fn: Optional[Callable[[List[Any]], Any]] = None
    parameter_types: List[Any] = field(default_factory=list)
    return_type: Any = None

    def invoke(self, args: List[Any]) -> Any:
        if self.fn is None:
            raise ScopeError(f'function {self.name}/{self.arity} has no implementation')
        return self.fn(args)

    def __repr__(self) -> str:
        return f"<function {self.name}/{self.arity}>"


class Scope:
    """One frame of a scope chain, holding variables and functions."""
    def __init__(self, parent: Optional['Scope'] = None):
        self.parent = parent
        self.variables: Dict[str, Variable] = {}
        self.functions: Dict[Tuple[str, int], Function] = {}

    def define_variable(self, variable: Variable) -> Variable:
        if variable.name in self.variables:
            raise ScopeError(f'variable {variable.name} already defined in this scope')
        self.variables[variable.name] = variable
        return variable

    def lookup_variable(self, name: str) -> Variable:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        raise ScopeError(f'undefined variable {name}')

    def define_function(self, function: Function) -> Function:
        key = (function.name, function.arity)
        if key in self.functions:
            raise ScopeError(f'function {function.name}/{function.arity} already defined in this scope')
        self.functions[key] = function
        return function

    def lookup_function(self, name: str, arity: int) -> Function:
        scope: Optional[Scope] = self
        while scope is not None:
            if (name, arity) in scope.functions:
                return scope.functions[(name, arity)]
            scope = scope.parent
        raise ScopeError(f'undefined function {name}/{arity}')
