"""Parser for the Endive language.

This is a recursive-descent parser: every grammar rule has its own
`parse_*` method, and a reference to another rule is a call to that rule's
method. It consumes the token list produced by `endive.lexer.lex` and
returns a `Source` node.

Binary operators are parsed one precedence level per method, from loosest
to tightest: logical (`AND`/`OR`, also spelled `&&`/`||`), comparison,
additive, multiplicative, then the postfix `.name` / `.name(args)` chain.
Each level folds its operands into a left-associative `BinaryOp` chain.

Any mismatch raises `ParseError` with the offending token's source offset,
or the offset just past the last token when input runs out. There is no
error recovery and no partial tree.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple, Union

from .ast import (
    Source, Field, Method, ExprStmt, Declaration, Assign, IfStmt, ForStmt,
    WhileStmt, ReturnStmt, Literal, Group, BinaryOp, Access, Call, Node,
    Expression,
)
from .errors import ParseError
from .lexer import Token, TokenKind, lex
from .types import CharVal

Pattern = Union[TokenKind, str]

LOGICAL_OPERATORS = ('AND', 'OR', '&&', '||')
COMPARISON_OPERATORS = ('<', '<=', '>', '>=', '==', '!=')

ESCAPES = {
    'b': '\b',
    'n': '\n',
    'r': '\r',
    't': '\t',
    '\'': '\'',
    '"': '"',
    '\\': '\\',
}


def unescape(text: str) -> str:
    """Decode the escapes Endive recognises; unknown escapes pass through."""
    result: List[str] = []
    i = 0
    while i < len(text):
        c = text[i]
        if c == '\\' and i + 1 < len(text):
            nxt = text[i + 1]
            result.append(ESCAPES.get(nxt, nxt))
            i += 2
            continue
        result.append(c)
        i += 1
    return ''.join(result)


def strip_sign(lexeme: str) -> str:
    return lexeme[1:] if lexeme.startswith('+') else lexeme


class TokenStream:
    """Random-access cursor over a token list."""
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0

    def has(self, offset: int) -> bool:
        return self.index + offset < len(self.tokens)

    def get(self, offset: int) -> Token:
        return self.tokens[self.index + offset]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = TokenStream(tokens)

    # Token helpers

    def peek(self, *patterns: Pattern) -> bool:
        """Check whether the upcoming tokens match `patterns` in order.

        A `TokenKind` pattern matches on the token's kind, a string pattern
        on its exact literal text.
        """
        for offset, pattern in enumerate(patterns):
            if not self.tokens.has(offset):
                return False
            token = self.tokens.get(offset)
            if isinstance(pattern, TokenKind):
                if token.kind != pattern:
                    return False
            elif token.literal != pattern:
                return False
        return True

    def match(self, *patterns: Pattern) -> bool:
        """Like `peek`, but consumes the matched tokens."""
        if not self.peek(*patterns):
            return False
        for _ in patterns:
            self.tokens.advance()
        return True

    def peek_any(self, options: Tuple[str, ...]) -> Optional[str]:
        for option in options:
            if self.peek(option):
                return option
        return None

    def error_index(self) -> int:
        if self.tokens.has(0):
            return self.tokens.get(0).index
        if self.tokens.index == 0:
            return 0
        last = self.tokens.get(-1)
        return last.index + len(last.literal)

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.error_index())

    def consume(self, pattern: Pattern, description: str) -> Token:
        if not self.peek(pattern):
            raise self.error(f"Expected {description}.")
        return self.tokens.advance()

    def consume_identifier(self) -> str:
        return self.consume(TokenKind.IDENTIFIER, 'identifier').literal

    def parse_type_annotation(self) -> Optional[str]:
        if self.match(':'):
            return self.consume_identifier()
        return None

    # Top level

    def parse_source(self) -> Source:
        fields: List[Field] = []
        methods: List[Method] = []
        while self.peek('LET'):
            fields.append(self.parse_field())
        while self.peek('DEF'):
            methods.append(self.parse_method())
        if self.tokens.has(0):
            raise self.error("Unexpected token.")
        return Source(fields, methods)

    def parse_field(self) -> Field:
        self.consume('LET', 'LET')
        constant = self.match('CONST')
        name = self.consume_identifier()
        type_name = self.parse_type_annotation()
        value: Optional[Expression] = None
        if self.match('='):
            value = self.parse_expression()
        self.consume(';', "';'")
        return Field(name, type_name, constant, value)

    def parse_method(self) -> Method:
        self.consume('DEF', 'DEF')
        name = self.consume_identifier()
        self.consume('(', "'('")
        parameters: List[str] = []
        parameter_type_names: List[Optional[str]] = []
        if not self.peek(')'):
            while True:
                parameters.append(self.consume_identifier())
                parameter_type_names.append(self.parse_type_annotation())
                if not self.match(','):
                    break
        self.consume(')', "')'")
        return_type_name = self.parse_type_annotation()
        self.consume('DO', 'DO')
        statements = self.parse_block('END')
        self.consume('END', 'END')
        return Method(name, parameters, parameter_type_names, return_type_name, statements)

    def parse_block(self, *terminators: str) -> List[Node]:
        """Parse statements up to (not including) one of `terminators`."""
        statements: List[Node] = []
        while not any(self.peek(t) for t in terminators):
            if not self.tokens.has(0):
                raise self.error(f"Expected {terminators[-1]}.")
            statements.append(self.parse_statement())
        return statements

    # Statements

    def parse_statement(self) -> Node:
        if self.peek('LET'):
            return self.parse_declaration_statement()
        if self.peek('IF'):
            return self.parse_if_statement()
        if self.peek('FOR'):
            return self.parse_for_statement()
        if self.peek('WHILE'):
            return self.parse_while_statement()
        if self.peek('RETURN'):
            return self.parse_return_statement()
        expr = self.parse_expression()
        if self.match('='):
            value = self.parse_expression()
            self.consume(';', "';'")
            return Assign(expr, value)
        self.consume(';', "';'")
        return ExprStmt(expr)

    def parse_declaration_statement(self) -> Declaration:
        self.consume('LET', 'LET')
        name = self.consume_identifier()
        type_name = self.parse_type_annotation()
        value: Optional[Expression] = None
        if self.match('='):
            value = self.parse_expression()
        self.consume(';', "';'")
        return Declaration(name, type_name, value)

    def parse_if_statement(self) -> IfStmt:
        self.consume('IF', 'IF')
        condition = self.parse_expression()
        self.consume('DO', 'DO')
        then_statements = self.parse_block('ELSE', 'END')
        else_statements: List[Node] = []
        if self.match('ELSE'):
            else_statements = self.parse_block('END')
        self.consume('END', 'END')
        return IfStmt(condition, then_statements, else_statements)

    def parse_loop_assignment(self) -> Optional[Assign]:
        # FOR headers only allow `identifier = expression`.
        if not self.peek(TokenKind.IDENTIFIER):
            return None
        name = self.consume_identifier()
        self.consume('=', "'='")
        value = self.parse_expression()
        return Assign(Access(None, name), value)

    def parse_for_statement(self) -> ForStmt:
        self.consume('FOR', 'FOR')
        self.consume('(', "'('")
        initialization = self.parse_loop_assignment()
        self.consume(';', "';'")
        condition = self.parse_expression()
        self.consume(';', "';'")
        increment = self.parse_loop_assignment()
        self.consume(')', "')'")
        statements = self.parse_block('END')
        self.consume('END', 'END')
        return ForStmt(initialization, condition, increment, statements)

    def parse_while_statement(self) -> WhileStmt:
        self.consume('WHILE', 'WHILE')
        condition = self.parse_expression()
        self.consume('DO', 'DO')
        statements = self.parse_block('END')
        self.consume('END', 'END')
        return WhileStmt(condition, statements)

    def parse_return_statement(self) -> ReturnStmt:
        self.consume('RETURN', 'RETURN')
        value = self.parse_expression()
        self.consume(';', "';'")
        return ReturnStmt(value)

    # Expressions

    def parse_expression(self) -> Expression:
        return self.parse_logical_expression()

    def parse_logical_expression(self) -> Expression:
        node = self.parse_comparison_expression()
        while True:
            op = self.peek_any(LOGICAL_OPERATORS)
            if op is None:
                return node
            self.tokens.advance()
            right = self.parse_comparison_expression()
            node = BinaryOp(op, node, right)

    def parse_comparison_expression(self) -> Expression:
        node = self.parse_additive_expression()
        while True:
            op = self.peek_any(COMPARISON_OPERATORS)
            if op is None:
                return node
            self.tokens.advance()
            right = self.parse_additive_expression()
            node = BinaryOp(op, node, right)

    def parse_additive_expression(self) -> Expression:
        node = self.parse_multiplicative_expression()
        while True:
            op = self.peek_any(('+', '-'))
            if op is None:
                return node
            self.tokens.advance()
            right = self.parse_multiplicative_expression()
            node = BinaryOp(op, node, right)

    def parse_multiplicative_expression(self) -> Expression:
        node = self.parse_secondary_expression()
        while True:
            op = self.peek_any(('*', '/'))
            if op is None:
                return node
            self.tokens.advance()
            right = self.parse_secondary_expression()
            node = BinaryOp(op, node, right)

    def parse_secondary_expression(self) -> Expression:
        node = self.parse_primary_expression()
        while self.match('.'):
            name = self.consume_identifier()
            if self.match('('):
                node = Call(node, name, self.parse_arguments())
            else:
                node = Access(node, name)
        return node

    def parse_arguments(self) -> List[Expression]:
        """Parse a call's arguments; the opening '(' is already consumed."""
        arguments: List[Expression] = []
        if self.match(')'):
            return arguments
        arguments.append(self.parse_expression())
        while self.match(','):
            arguments.append(self.parse_expression())
        self.consume(')', "')'")
        return arguments

    def parse_primary_expression(self) -> Expression:
        if not self.tokens.has(0):
            raise self.error("Expected expression.")
        if self.match('NIL'):
            return Literal(None)
        if self.match('TRUE'):
            return Literal(True)
        if self.match('FALSE'):
            return Literal(False)
        if self.peek(TokenKind.INTEGER):
            return Literal(int(strip_sign(self.tokens.advance().literal)))
        if self.peek(TokenKind.DECIMAL):
            return Literal(Decimal(strip_sign(self.tokens.advance().literal)))
        if self.peek(TokenKind.CHARACTER):
            inside = unescape(self.tokens.advance().literal[1:-1])
            return Literal(CharVal(inside[0] if inside else '\0'))
        if self.peek(TokenKind.STRING):
            return Literal(unescape(self.tokens.advance().literal[1:-1]))
        if self.match('('):
            inner = self.parse_expression()
            self.consume(')', "')'")
            return Group(inner)
        if self.peek(TokenKind.IDENTIFIER):
            name = self.consume_identifier()
            if self.match('('):
                return Call(None, name, self.parse_arguments())
            return Access(None, name)
        raise self.error("Expected expression.")


def parse_program(source: str) -> Source:
    """Lex and parse Endive source code into a `Source` AST."""
    return Parser(lex(source)).parse_source()
