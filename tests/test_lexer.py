import pytest

from endive.errors import LexError, ParseError
from endive.lexer import Token, TokenKind, fold_signs, lex


def kinds(source):
    return [(t.kind, t.literal) for t in lex(source)]


def test_lex_declaration():
    assert kinds('LET x = 5;') == [
        (TokenKind.IDENTIFIER, 'LET'),
        (TokenKind.IDENTIFIER, 'x'),
        (TokenKind.OPERATOR, '='),
        (TokenKind.INTEGER, '5'),
        (TokenKind.OPERATOR, ';'),
    ]


def test_lex_offsets_skip_whitespace():
    assert [t.index for t in lex('ab  12\n\tc')] == [0, 4, 8]


def test_lex_multi_character_operators():
    literals = [t.literal for t in lex('a<=b!=c&&d||e==f>=g<h')]
    assert literals == ['a', '<=', 'b', '!=', 'c', '&&', 'd', '||', 'e', '==', 'f', '>=', 'g', '<', 'h']


def test_lex_numbers():
    assert kinds('1.50 2 3.') == [
        (TokenKind.DECIMAL, '1.50'),
        (TokenKind.INTEGER, '2'),
        (TokenKind.INTEGER, '3'),
        (TokenKind.OPERATOR, '.'),
    ]


def test_lex_character_and_string():
    assert kinds(r"""'a' '\n' "say \"hi\"" """) == [
        (TokenKind.CHARACTER, "'a'"),
        (TokenKind.CHARACTER, r"'\n'"),
        (TokenKind.STRING, r'"say \"hi\""'),
    ]


def test_sign_folds_into_leading_number():
    assert lex('-1') == [Token(TokenKind.INTEGER, '-1', 0)]
    assert kinds('x = +2.5;')[2] == (TokenKind.DECIMAL, '+2.5')
    assert kinds('RETURN -1;')[1] == (TokenKind.INTEGER, '-1')


def test_sign_stays_operator_after_operand():
    assert kinds('x -1') == [
        (TokenKind.IDENTIFIER, 'x'),
        (TokenKind.OPERATOR, '-'),
        (TokenKind.INTEGER, '1'),
    ]
    assert [t.literal for t in lex('(a) -2')] == ['(', 'a', ')', '-', '2']
    assert [t.literal for t in lex('3 -4')] == ['3', '-', '4']


def test_sign_needs_adjacent_number():
    assert [t.literal for t in lex('= - 1')] == ['=', '-', '1']


def test_fold_signs_keeps_trailing_sign():
    tokens = [Token(TokenKind.OPERATOR, '-', 0)]
    assert fold_signs(tokens) == tokens


def test_lex_unexpected_character():
    with pytest.raises(LexError) as exc:
        lex("x = 'ab';")
    assert exc.value.index == 4
    assert isinstance(exc.value, ParseError)


def test_lex_unterminated_string():
    with pytest.raises(LexError) as exc:
        lex('"open')
    assert exc.value.index == 0


def test_lex_empty_character():
    assert kinds("c = '';") == [
        (TokenKind.IDENTIFIER, 'c'),
        (TokenKind.OPERATOR, '='),
        (TokenKind.CHARACTER, "''"),
        (TokenKind.OPERATOR, ';'),
    ]
