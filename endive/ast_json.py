"""JSON serialization/deserialization for the Endive AST.

This module converts between Endive AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Only syntax is stored:
resolved types and bindings are left out, so a loaded tree has to be
analyzed again before it can be generated.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from .ast import (
    Source,
    Field,
    Method,
    ExprStmt,
    Declaration,
    Assign,
    IfStmt,
    ForStmt,
    WhileStmt,
    ReturnStmt,
    Literal,
    Group,
    BinaryOp,
    Access,
    Call,
)
from .types import CharVal


def literal_to_obj(value: Any) -> Any:
    if isinstance(value, Decimal):
        return {"__type__": "Decimal", "value": str(value)}
    if isinstance(value, CharVal):
        return {"__type__": "Character", "value": value.value}
    return value


def literal_from_obj(obj: Any) -> Any:
    if isinstance(obj, dict):
        if obj.get("__type__") == "Decimal":
            return Decimal(obj["value"])
        if obj.get("__type__") == "Character":
            return CharVal(obj["value"])
        raise ValueError(f"Unknown literal encoding: {obj.get('__type__')}")
    return obj


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if isinstance(node, Source):
        return {
            "type": "Source",
            "fields": [ast_to_obj(f) for f in node.fields],
            "methods": [ast_to_obj(m) for m in node.methods],
        }
    if isinstance(node, Field):
        return {
            "type": "Field",
            "name": node.name,
            "type_name": node.type_name,
            "constant": node.constant,
            "value": ast_to_obj(node.value),
        }
    if isinstance(node, Method):
        return {
            "type": "Method",
            "name": node.name,
            "parameters": list(node.parameters),
            "parameter_type_names": list(node.parameter_type_names),
            "return_type_name": node.return_type_name,
            "statements": [ast_to_obj(s) for s in node.statements],
        }
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expr": ast_to_obj(node.expr)}
    if isinstance(node, Declaration):
        return {
            "type": "Declaration",
            "name": node.name,
            "type_name": node.type_name,
            "value": ast_to_obj(node.value),
        }
    if isinstance(node, Assign):
        return {"type": "Assign", "receiver": ast_to_obj(node.receiver), "value": ast_to_obj(node.value)}
    if isinstance(node, IfStmt):
        return {
            "type": "IfStmt",
            "condition": ast_to_obj(node.condition),
            "then_statements": [ast_to_obj(s) for s in node.then_statements],
            "else_statements": [ast_to_obj(s) for s in node.else_statements],
        }
    if isinstance(node, ForStmt):
        return {
            "type": "ForStmt",
            "initialization": ast_to_obj(node.initialization),
            "condition": ast_to_obj(node.condition),
            "increment": ast_to_obj(node.increment),
            "statements": [ast_to_obj(s) for s in node.statements],
        }
    if isinstance(node, WhileStmt):
        return {
            "type": "WhileStmt",
            "condition": ast_to_obj(node.condition),
            "statements": [ast_to_obj(s) for s in node.statements],
        }
    if isinstance(node, ReturnStmt):
        return {"type": "ReturnStmt", "value": ast_to_obj(node.value)}
    if isinstance(node, Literal):
        return {"type": "Literal", "value": literal_to_obj(node.value)}
    if isinstance(node, Group):
        return {"type": "Group", "expression": ast_to_obj(node.expression)}
    if isinstance(node, BinaryOp):
        return {
            "type": "BinaryOp",
            "operator": node.operator,
            "left": ast_to_obj(node.left),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Access):
        return {"type": "Access", "receiver": ast_to_obj(node.receiver), "name": node.name}
    if isinstance(node, Call):
        return {
            "type": "Call",
            "receiver": ast_to_obj(node.receiver),
            "name": node.name,
            "arguments": [ast_to_obj(a) for a in node.arguments],
        }

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    if t == "Source":
        return Source(
            fields=[ast_from_obj(f) for f in obj["fields"]],
            methods=[ast_from_obj(m) for m in obj["methods"]],
        )
    if t == "Field":
        return Field(
            name=obj["name"],
            type_name=obj.get("type_name"),
            constant=bool(obj.get("constant", False)),
            value=ast_from_obj(obj.get("value")),
        )
    if t == "Method":
        parameters = list(obj["parameters"])
        return Method(
            name=obj["name"],
            parameters=parameters,
            parameter_type_names=list(obj.get("parameter_type_names", [None] * len(parameters))),
            return_type_name=obj.get("return_type_name"),
            statements=[ast_from_obj(s) for s in obj["statements"]],
        )
    if t == "ExprStmt":
        return ExprStmt(expr=ast_from_obj(obj["expr"]))
    if t == "Declaration":
        return Declaration(
            name=obj["name"],
            type_name=obj.get("type_name"),
            value=ast_from_obj(obj.get("value")),
        )
    if t == "Assign":
        return Assign(receiver=ast_from_obj(obj["receiver"]), value=ast_from_obj(obj["value"]))
    if t == "IfStmt":
        return IfStmt(
            condition=ast_from_obj(obj["condition"]),
            then_statements=[ast_from_obj(s) for s in obj["then_statements"]],
            else_statements=[ast_from_obj(s) for s in obj.get("else_statements", [])],
        )
    if t == "ForStmt":
        return ForStmt(
            initialization=ast_from_obj(obj.get("initialization")),
            condition=ast_from_obj(obj["condition"]),
            increment=ast_from_obj(obj.get("increment")),
            statements=[ast_from_obj(s) for s in obj["statements"]],
        )
    if t == "WhileStmt":
        return WhileStmt(
            condition=ast_from_obj(obj["condition"]),
            statements=[ast_from_obj(s) for s in obj["statements"]],
        )
    if t == "ReturnStmt":
        return ReturnStmt(value=ast_from_obj(obj["value"]))
    if t == "Literal":
        return Literal(value=literal_from_obj(obj["value"]))
    if t == "Group":
        return Group(expression=ast_from_obj(obj["expression"]))
    if t == "BinaryOp":
        return BinaryOp(
            operator=obj["operator"],
            left=ast_from_obj(obj["left"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Access":
        return Access(receiver=ast_from_obj(obj.get("receiver")), name=obj["name"])
    if t == "Call":
        return Call(
            receiver=ast_from_obj(obj.get("receiver")),
            name=obj["name"],
            arguments=[ast_from_obj(a) for a in obj["arguments"]],
        )

    raise ValueError(f"Unknown AST node type: {t}")
