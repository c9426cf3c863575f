"""Type definitions and helpers for Endive.

This module holds both halves of the Endive type system:

* the static type registry queried by the analyzer and the generator. Each
  `Type` has a source-level name, the Java name the generator emits, and a
  member scope listing the fields and methods its values expose;
* the runtime value model used by the interpreter. Plain Python values stand
  in for booleans, strings, integers (`int`) and decimals
  (`decimal.Decimal`); small wrapper classes cover the tags Python lacks
  (nil, characters and user-defined objects).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .environment import Scope
from .errors import AnalysisError, EvaluationError, ScopeError


class Type:
    """A static Endive type, compared by identity."""
    def __init__(self, name: str, jvm_name: str, scope: Optional[Scope] = None):
        self.name = name
        self.jvm_name = jvm_name
        self.scope = scope if scope is not None else Scope()

    def __repr__(self) -> str:
        return self.name

    # Populated below, once the class exists.
    ANY: 'Type'
    NIL: 'Type'
    COMPARABLE: 'Type'
    BOOLEAN: 'Type'
    INTEGER: 'Type'
    DECIMAL: 'Type'
    CHARACTER: 'Type'
    STRING: 'Type'


Type.ANY = Type('Any', 'Object')
Type.NIL = Type('Nil', 'Void')
Type.COMPARABLE = Type('Comparable', 'Comparable')
Type.BOOLEAN = Type('Boolean', 'boolean')
Type.INTEGER = Type('Integer', 'int')
Type.DECIMAL = Type('Decimal', 'double')
Type.CHARACTER = Type('Character', 'char')
Type.STRING = Type('String', 'String')

TYPES: Dict[str, Type] = {
    t.name: t for t in (
        Type.ANY, Type.NIL, Type.COMPARABLE, Type.BOOLEAN,
        Type.INTEGER, Type.DECIMAL, Type.CHARACTER, Type.STRING,
    )
}

COMPARABLE_TYPES = (Type.INTEGER, Type.DECIMAL, Type.CHARACTER, Type.STRING)

# Bounds of the native signed 32-bit integer that literals must fit.
INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1


def get_type(name: str) -> Type:
    """Resolve a type name through the fixed registry."""
    if name not in TYPES:
        raise AnalysisError(f'unknown type {name}')
    return TYPES[name]


def require_assignable(target: Type, source: Type) -> None:
    """Fail unless a value of type `source` may be stored in `target`.

    Identical types are always assignable, `Any` accepts everything, and
    `Comparable` accepts the comparable primitives as well as nil.
    """
    if source is target or target is Type.ANY:
        return
    if target is Type.COMPARABLE and (source in COMPARABLE_TYPES or source is Type.NIL):
        return
    raise AnalysisError(f'expected {target}, received {source}')


class NilVal:
    """Marker object for the Endive `NIL` value. Use the `NIL` singleton."""
    _instance: Optional['NilVal'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'NIL'


NIL = NilVal()


@dataclass(frozen=True)
class CharVal:
    """A single character, kept apart from one-character strings."""
    value: str

    def __repr__(self) -> str:
        return f"CharVal({self.value!r})"


class ObjectVal:
    """A user-defined object whose fields and methods live in a scope.

    Methods are stored with the receiver as their first parameter, so a call
    with N arguments looks up arity N + 1.
    """
    def __init__(self, scope: Scope, type_name: str = 'Object'):
        self.scope = scope
        self.type_name = type_name

    def get_field(self, name: str) -> Any:
        try:
            return self.scope.lookup_variable(name).value
        except ScopeError as e:
            raise EvaluationError(f'{self.type_name} has no field {name}') from e

    def set_field(self, name: str, value: Any) -> None:
        try:
            variable = self.scope.lookup_variable(name)
        except ScopeError as e:
            raise EvaluationError(f'{self.type_name} has no field {name}') from e
        if variable.constant:
            raise EvaluationError(f'cannot assign to constant field {name}')
        variable.value = value

    def call_method(self, name: str, args: List[Any]) -> Any:
        try:
            method = self.scope.lookup_function(name, len(args) + 1)
        except ScopeError as e:
            raise EvaluationError(f'{self.type_name} has no method {name}/{len(args)}') from e
        return method.invoke([self] + list(args))

    def __repr__(self) -> str:
        return f"<{self.type_name} object>"


def type_name(value: Any) -> str:
    """Return the Endive tag name of a runtime value."""
    if value is NIL or value is None:
        return 'Nil'
    if isinstance(value, bool):
        return 'Boolean'
    if isinstance(value, CharVal):
        return 'Character'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, int):
        return 'Integer'
    if isinstance(value, Decimal):
        return 'Decimal'
    if isinstance(value, ObjectVal):
        return value.type_name
    return type(value).__name__


def to_string(value: Any) -> str:
    """Convert an Endive value to the text `print` and `+` produce."""
    if value is NIL or value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, CharVal):
        return value.value
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal)):
        return str(value)
    return repr(value)
