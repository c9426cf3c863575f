from decimal import Decimal

import pytest

from endive.ast import (
    Source, Field, Method, ExprStmt, Declaration, Assign, IfStmt, ForStmt,
    WhileStmt, ReturnStmt, Literal, Group, BinaryOp, Access, Call,
)
from endive.errors import ParseError
from endive.lexer import lex
from endive.parser import Parser, parse_program, unescape
from endive.types import CharVal


def expr(source):
    return Parser(lex(source)).parse_expression()


def stmt(source):
    return Parser(lex(source)).parse_statement()


def var(name):
    return Access(None, name)


def test_parse_field_and_method():
    source = parse_program('LET CONST x = 5; DEF main() DO RETURN x; END')
    assert source == Source(
        [Field('x', None, True, Literal(5))],
        [Method('main', [], [], None, [ReturnStmt(var('x'))])],
    )


def test_parse_empty_source():
    assert parse_program('') == Source([], [])


def test_parse_typed_method():
    source = parse_program('DEF add(a: Integer, b): Integer DO RETURN a + b; END')
    method = source.methods[0]
    assert method.parameters == ['a', 'b']
    assert method.parameter_type_names == ['Integer', None]
    assert method.return_type_name == 'Integer'
    assert method.statements == [ReturnStmt(BinaryOp('+', var('a'), var('b')))]


def test_parse_typed_field_without_value():
    assert parse_program('LET total: Decimal;').fields == [Field('total', 'Decimal', False, None)]


def test_precedence():
    assert expr('1 + 2 * 3 == 7 AND x') == BinaryOp(
        'AND',
        BinaryOp('==', BinaryOp('+', Literal(1), BinaryOp('*', Literal(2), Literal(3))), Literal(7)),
        var('x'),
    )


def test_left_associative_chains():
    assert expr('a - b - c') == BinaryOp('-', BinaryOp('-', var('a'), var('b')), var('c'))
    assert expr('a || b OR c') == BinaryOp('OR', BinaryOp('||', var('a'), var('b')), var('c'))


def test_group_overrides_precedence():
    assert expr('(1 + 2) * 3') == BinaryOp('*', Group(BinaryOp('+', Literal(1), Literal(2))), Literal(3))


def test_secondary_chain():
    assert expr('obj.field.method(1, 2)') == Call(
        Access(var('obj'), 'field'), 'method', [Literal(1), Literal(2)],
    )
    assert expr('f()') == Call(None, 'f', [])


def test_literals():
    assert expr('NIL') == Literal(None)
    assert expr('TRUE') == Literal(True)
    assert expr('FALSE') == Literal(False)
    assert expr('+5') == Literal(5)
    assert expr('-12') == Literal(-12)
    assert expr('1.50') == Literal(Decimal('1.50'))
    assert expr(r"'\n'") == Literal(CharVal('\n'))
    assert expr(r'"a\tb"') == Literal('a\tb')


def test_huge_integer_literal_is_not_checked():
    assert expr('99999999999999999999') == Literal(99999999999999999999)


def test_unknown_escape_passes_through():
    assert unescape(r'a\qb') == 'aqb'
    assert unescape('\\') == '\\'
    assert expr(r'"\\ and \""') == Literal('\\ and "')


def test_statement_dispatch():
    assert stmt('x.y = 3;') == Assign(Access(var('x'), 'y'), Literal(3))
    assert stmt('print(1);') == ExprStmt(Call(None, 'print', [Literal(1)]))
    assert stmt('LET n: Integer = 1;') == Declaration('n', 'Integer', Literal(1))
    assert stmt('LET n;') == Declaration('n', None, None)
    assert stmt('RETURN NIL;') == ReturnStmt(Literal(None))


def test_assignment_receiver_is_not_validated():
    assert stmt('1 = 2;') == Assign(Literal(1), Literal(2))


def test_if_else():
    assert stmt('IF x DO ELSE y; END') == IfStmt(var('x'), [], [ExprStmt(var('y'))])
    assert stmt('IF x DO y; END') == IfStmt(var('x'), [ExprStmt(var('y'))], [])


def test_for_header():
    assert stmt('FOR (i = 0; i < 3; i = i + 1) print(i); END') == ForStmt(
        Assign(var('i'), Literal(0)),
        BinaryOp('<', var('i'), Literal(3)),
        Assign(var('i'), BinaryOp('+', var('i'), Literal(1))),
        [ExprStmt(Call(None, 'print', [var('i')]))],
    )


def test_for_header_optional_parts():
    assert stmt('FOR (; TRUE; ) END') == ForStmt(None, Literal(True), None, [])


def test_while():
    assert stmt('WHILE n > 0 DO n = n - 1; END') == WhileStmt(
        BinaryOp('>', var('n'), Literal(0)),
        [Assign(var('n'), BinaryOp('-', var('n'), Literal(1)))],
    )


def test_missing_semicolon_at_end_of_input():
    with pytest.raises(ParseError) as exc:
        parse_program('LET x = 1')
    assert exc.value.message == "Expected ';'."
    assert exc.value.index == 9


def test_trailing_comma_in_arguments():
    with pytest.raises(ParseError) as exc:
        parse_program('DEF main() DO f(1,); END')
    assert exc.value.message == 'Expected expression.'
    assert exc.value.index == 18


def test_field_after_method():
    with pytest.raises(ParseError) as exc:
        parse_program('DEF main() DO END LET x;')
    assert exc.value.message == 'Unexpected token.'
    assert exc.value.index == 18


def test_missing_end():
    with pytest.raises(ParseError) as exc:
        parse_program('DEF main() DO')
    assert exc.value.index == 13


def test_empty_expression():
    with pytest.raises(ParseError) as exc:
        Parser([]).parse_expression()
    assert exc.value.index == 0


def test_for_header_rejects_non_assignment():
    with pytest.raises(ParseError) as exc:
        stmt('FOR (i; TRUE; ) END')
    assert exc.value.message == "Expected '='."
    assert exc.value.index == 6


def test_parse_error_message_has_index():
    with pytest.raises(ParseError) as exc:
        parse_program('DEF')
    assert str(exc.value) == 'SyntaxError: Expected identifier. (at index 3)'


def test_empty_character_literal_is_nul():
    assert expr("''") == Literal(CharVal('\0'))
