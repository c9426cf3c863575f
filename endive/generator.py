"""Java source generator for analyzed Endive programs.

The generator renders a `Source` tree as a single Java class named `Main`.
It reads the bindings and types the analyzer attached to the tree and does
no checking of its own, so the tree must have been analyzed first.
"""

from __future__ import annotations

import io
from typing import List, TextIO

from .ast import (
    Source, Field, Method, ExprStmt, Declaration, Assign, IfStmt, ForStmt,
    WhileStmt, ReturnStmt, Literal, Group, BinaryOp, Access, Call, Node,
)
from .types import CharVal

JAVA_OPERATORS = {'AND': '&&', 'OR': '||'}

JAVA_ESCAPES = {
    '\b': '\\b',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
    '\'': '\\\'',
    '"': '\\"',
    '\\': '\\\\',
    '\0': '\\0',
}


def escape_java(text: str) -> str:
    return ''.join(JAVA_ESCAPES.get(c, c) for c in text)


class Generator:
    def __init__(self, writer: TextIO):
        self.writer = writer
        self.indent = 0

    def write(self, *parts) -> None:
        for part in parts:
            if isinstance(part, Node):
                self.visit(part)
            else:
                self.writer.write(str(part))

    def newline(self, indent: int) -> None:
        self.writer.write('\n' + '    ' * indent)

    def generate(self, source: Source) -> None:
        self.write('public class Main {')
        self.newline(0)
        self.indent = 1
        if source.fields:
            for field in source.fields:
                self.newline(self.indent)
                self.visit(field)
            self.newline(0)
        self.newline(self.indent)
        self.write('public static void main(String[] args) {')
        self.newline(self.indent + 1)
        self.write('System.exit(new Main().main());')
        self.newline(self.indent)
        self.write('}')
        self.newline(0)
        for method in source.methods:
            self.newline(self.indent)
            self.visit(method)
            self.newline(0)
        self.indent = 0
        self.write('}')

    def block(self, statements: List[Node]) -> None:
        """Write `{ ... }` for a statement list at the current indent."""
        if not statements:
            self.write('{}')
            return
        self.write('{')
        self.indent += 1
        for stmt in statements:
            self.newline(self.indent)
            self.visit(stmt)
        self.indent -= 1
        self.newline(self.indent)
        self.write('}')

    def visit(self, node: Node) -> None:
        if isinstance(node, Source):
            self.generate(node)
        elif isinstance(node, Field):
            variable = node.variable
            if variable.constant:
                self.write('final ')
            self.write(variable.type.jvm_name, ' ', variable.jvm_name)
            if node.value is not None:
                self.write(' = ', node.value)
            self.write(';')
        elif isinstance(node, Method):
            function = node.function
            self.write(function.return_type.jvm_name, ' ', function.jvm_name, '(')
            self.write(', '.join(
                f'{t.jvm_name} {name}' for t, name in zip(function.parameter_types, node.parameters)
            ))
            self.write(') ')
            self.block(node.statements)
        elif isinstance(node, ExprStmt):
            self.write(node.expr, ';')
        elif isinstance(node, Declaration):
            variable = node.variable
            self.write(variable.type.jvm_name, ' ', variable.jvm_name)
            if node.value is not None:
                self.write(' = ', node.value)
            self.write(';')
        elif isinstance(node, Assign):
            self.write(node.receiver, ' = ', node.value, ';')
        elif isinstance(node, IfStmt):
            self.write('if (', node.condition, ') ')
            self.block(node.then_statements)
            if node.else_statements:
                self.write(' else ')
                self.block(node.else_statements)
        elif isinstance(node, ForStmt):
            self.write('for (')
            if node.initialization is not None:
                self.write(node.initialization.receiver, ' = ', node.initialization.value)
            self.write('; ', node.condition, ';')
            if node.increment is not None:
                self.write(' ', node.increment.receiver, ' = ', node.increment.value)
            self.write(') ')
            self.block(node.statements)
        elif isinstance(node, WhileStmt):
            self.write('while (', node.condition, ') ')
            self.block(node.statements)
        elif isinstance(node, ReturnStmt):
            self.write('return ', node.value, ';')
        elif isinstance(node, Literal):
            self.write(self.literal(node.value))
        elif isinstance(node, Group):
            self.write('(', node.expression, ')')
        elif isinstance(node, BinaryOp):
            self.write(node.left, ' ', JAVA_OPERATORS.get(node.operator, node.operator), ' ', node.right)
        elif isinstance(node, Access):
            if node.receiver is not None:
                self.write(node.receiver, '.')
            self.write(node.variable.jvm_name)
        elif isinstance(node, Call):
            if node.receiver is not None:
                self.write(node.receiver, '.')
            self.write(node.function.jvm_name, '(')
            for i, arg in enumerate(node.arguments):
                if i > 0:
                    self.write(', ')
                self.write(arg)
            self.write(')')
        else:
            raise NotImplementedError(f"generate: unexpected node type {type(node)}")

    @staticmethod
    def literal(value) -> str:
        if value is None:
            return 'null'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, CharVal):
            return "'" + escape_java(value.value) + "'"
        if isinstance(value, str):
            return '"' + escape_java(value) + '"'
        return str(value)


def generate(source: Source) -> str:
    """Render an analyzed `Source` tree as Java source text."""
    out = io.StringIO()
    Generator(out).generate(source)
    return out.getvalue()
