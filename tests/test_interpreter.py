from decimal import Decimal

import pytest

from endive.environment import Function, Scope, Variable
from endive.errors import EvaluationError
from endive.interpreter import Interpreter, divide_decimals, divide_integers, run_program
from endive.parser import parse_program
from endive.types import NIL, CharVal, ObjectVal


def run(body, fields='', check=True):
    return run_program(f'{fields} DEF main(): Integer DO {body} END', check=check)


def test_constant_field_program():
    source = parse_program('LET CONST x = 5; DEF main() DO RETURN x; END')
    assert len(source.fields) == 1
    assert len(source.methods) == 1
    assert Interpreter().run(source) == 5


def test_return_unwinds_past_if():
    assert run_program('DEF main() DO IF TRUE DO RETURN 1; END RETURN 0; END', check=False) == 1
    assert run('IF TRUE DO RETURN 1; END RETURN 0;') == 1


def test_return_unwinds_past_loops():
    body = 'LET i = 0; WHILE TRUE DO FOR (i = 0; TRUE; i = i + 1) IF i == 4 DO RETURN i; END END END RETURN 0;'
    assert run(body) == 4


def test_method_without_return_yields_nil():
    assert run_program('DEF f() DO print(1); END DEF main() DO RETURN f(); END', check=False) is NIL


def test_missing_main():
    with pytest.raises(EvaluationError):
        run_program('DEF helper() DO RETURN 1; END', check=False)


def test_short_circuit(capsys):
    program = (
        'DEF touch(): Boolean DO print("touched"); RETURN TRUE; END '
        'DEF main(): Integer DO '
        'print(FALSE AND touch()); print(TRUE OR touch()); '
        'print(TRUE AND touch()); print(FALSE || touch()); RETURN 0; END'
    )
    run_program(program)
    out = capsys.readouterr().out.splitlines()
    assert out == ['false', 'true', 'touched', 'true', 'touched', 'true']


def test_logical_operands_must_be_boolean():
    with pytest.raises(EvaluationError):
        run('print(1 AND TRUE); RETURN 0;', check=False)
    with pytest.raises(EvaluationError):
        run('print(FALSE OR 1); RETURN 0;', check=False)


def test_integer_arithmetic():
    assert run('RETURN 1 + 1;') == 2
    assert run('RETURN 7 / 2;') == 3
    assert run('RETURN -7 / 2;') == -3
    assert run('RETURN 2 * 3 - 10;') == -4


def test_division_helpers():
    assert divide_integers(-7, 2) == -3
    assert divide_integers(7, -2) == -3
    assert divide_decimals(Decimal('1.0'), Decimal('3.0')) == Decimal('0.3')
    assert divide_decimals(Decimal('0.5'), Decimal('2.0')) == Decimal('0.2')
    assert divide_decimals(Decimal('1.5'), Decimal('2.0')) == Decimal('0.8')
    assert str(divide_decimals(Decimal('10'), Decimal('4.00'))) == '2.50'


def test_decimal_arithmetic(capsys):
    run('print(1.0 / 3.0); print(0.1 * 0.2); print(1.10 + 2.205); print(1.0 - 3.25); RETURN 0;')
    out = capsys.readouterr().out.splitlines()
    assert out == ['0.3', '0.02', '3.305', '-2.25']


def test_division_by_zero():
    with pytest.raises(EvaluationError) as exc:
        run('RETURN 1 / 0;')
    assert 'division by zero' in str(exc.value)
    with pytest.raises(EvaluationError):
        run('print(1.0 / 0.0); RETURN 0;')


def test_string_concatenation(capsys):
    interpreter = Interpreter()
    assert interpreter.apply_binary_op('+', 'a', 1) == 'a1'
    assert interpreter.apply_binary_op('+', Decimal('1.5'), 'x') == '1.5x'
    assert interpreter.apply_binary_op('+', 'v=', NIL) == 'v=null'
    assert interpreter.apply_binary_op('+', CharVal('c'), '!') == 'c!'
    run('print("a" + 1); print("flag " + TRUE); RETURN 0;')
    assert capsys.readouterr().out.splitlines() == ['a1', 'flag true']


def test_mixed_arithmetic_is_an_error():
    with pytest.raises(EvaluationError):
        Interpreter().apply_binary_op('+', 1, Decimal('1.0'))
    with pytest.raises(EvaluationError):
        Interpreter().apply_binary_op('*', True, 2)


def test_equality_across_tags():
    interpreter = Interpreter()
    assert interpreter.apply_binary_op('==', 1, 1)
    assert not interpreter.apply_binary_op('==', 1, Decimal('1'))
    assert not interpreter.apply_binary_op('==', CharVal('a'), 'a')
    assert not interpreter.apply_binary_op('==', 1, True)
    assert interpreter.apply_binary_op('==', NIL, NIL)
    assert interpreter.apply_binary_op('!=', NIL, 0)
    assert interpreter.apply_binary_op('==', Decimal('1.0'), Decimal('1.00'))


def test_comparison():
    interpreter = Interpreter()
    assert interpreter.apply_binary_op('<', 1, 2)
    assert interpreter.apply_binary_op('>=', 'b', 'a')
    assert interpreter.apply_binary_op('<=', CharVal('a'), CharVal('a'))
    assert not interpreter.apply_binary_op('>', Decimal('1.5'), Decimal('2'))
    with pytest.raises(EvaluationError):
        interpreter.apply_binary_op('<', 1, Decimal('2'))
    with pytest.raises(EvaluationError):
        interpreter.apply_binary_op('<', True, False)


def test_shadowing(capsys):
    result = run(
        'LET x = 1; IF TRUE DO LET x = 2; print(x); END print(x); '
        'LET n = 0; WHILE n < 2 DO LET x = n * 10; print(x); n = n + 1; END '
        'RETURN x;'
    )
    assert result == 1
    assert capsys.readouterr().out.splitlines() == ['2', '1', '0', '10']


def test_block_scopes_are_discarded():
    with pytest.raises(EvaluationError):
        run('IF TRUE DO LET y = 1; END RETURN y;', check=False)


def test_for_loop():
    result = run('LET total = 0; LET i = 0; FOR (i = 1; i <= 4; i = i + 1) total = total + i; END RETURN total;')
    assert result == 10


def test_fields_and_calls(capsys):
    program = (
        'LET counter: Integer = 0; '
        'DEF bump(by: Integer): Integer DO counter = counter + by; RETURN counter; END '
        'DEF main(): Integer DO bump(2); bump(3); print(counter); RETURN bump(0); END'
    )
    assert run_program(program) == 5
    assert capsys.readouterr().out == '5\n'


def test_recursion():
    program = (
        'DEF fact(n: Integer): Integer DO IF n <= 1 DO RETURN 1; END RETURN n * fact(n - 1); END '
        'DEF main(): Integer DO RETURN fact(10); END'
    )
    assert run_program(program) == 3628800


def test_print_representation(capsys):
    run("print(NIL); print(TRUE); print(FALSE); print('c'); print(\"s\"); print(-4); print(2.50); RETURN 0;")
    assert capsys.readouterr().out.splitlines() == ['null', 'true', 'false', 'c', 's', '-4', '2.50']


def test_constant_assignment_is_a_runtime_error():
    with pytest.raises(EvaluationError) as exc:
        run('x = 2; RETURN x;', 'LET CONST x = 1;', check=False)
    assert 'constant' in str(exc.value)


def test_unbound_names_and_arity():
    with pytest.raises(EvaluationError):
        run('RETURN missing;', check=False)
    with pytest.raises(EvaluationError):
        run('print(1, 2); RETURN 0;', check=False)
    with pytest.raises(EvaluationError):
        run('missing(); RETURN 0;', check=False)


def test_conditions_must_be_boolean():
    with pytest.raises(EvaluationError):
        run('IF 1 DO RETURN 1; END RETURN 0;', check=False)
    with pytest.raises(EvaluationError):
        run('WHILE NIL DO END RETURN 0;', check=False)


def test_members_on_non_objects():
    with pytest.raises(EvaluationError):
        run('LET s = "abc"; RETURN s.length;', check=False)
    with pytest.raises(EvaluationError):
        run('LET s = "abc"; RETURN s.length();', check=False)
    with pytest.raises(EvaluationError):
        run('LET n = 1; n.value = 2; RETURN n;', check=False)


def make_object():
    members = Scope()
    members.define_variable(Variable('x', 'x', value=1))
    members.define_variable(Variable('id', 'id', constant=True, value=7))
    members.define_function(Function('double', 'double', 1, fn=lambda args: args[0].get_field('x') * 2))
    members.define_function(Function('add', 'add', 2, fn=lambda args: args[0].get_field('x') + args[1]))
    return ObjectVal(members, 'Box')


def test_object_fields_and_methods():
    globals_scope = Scope()
    box = make_object()
    globals_scope.define_variable(Variable('box', 'box', value=box))
    source = parse_program('DEF main() DO box.x = 21; RETURN box.double() + box.add(1) - box.x; END')
    assert Interpreter(parent=globals_scope).run(source) == 43


def test_object_errors():
    box = make_object()
    with pytest.raises(EvaluationError):
        box.get_field('y')
    with pytest.raises(EvaluationError):
        box.set_field('id', 8)
    with pytest.raises(EvaluationError):
        box.call_method('double', [1])


def test_object_equality_is_identity():
    box = make_object()
    interpreter = Interpreter()
    assert interpreter.apply_binary_op('==', box, box)
    assert not interpreter.apply_binary_op('==', box, make_object())


def test_unanalyzed_program_runs():
    assert run_program('DEF main() DO LET a = 2; RETURN a * 21; END', check=False) == 42


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    source = parse_program('DEF main() DO RETURN 3; END')
    assert Interpreter(debug_level=2, debug_file=str(debug_file)).run(source) == 3
    trace = debug_file.read_text()
    assert 'interpreter: run source' in trace
    assert 'interpreter: define method main/0' in trace
    assert 'interpreter: main returned 3' in trace


COUNT_PROGRAM = (
    'DEF count(n: Integer): Integer DO IF n == 0 DO RETURN 0; END RETURN 1 + count(n - 1); END '
    'DEF main(): Integer DO RETURN count({}); END'
)


def test_deep_recursion():
    assert run_program(COUNT_PROGRAM.format(1000)) == 1000


def test_call_stack_exhausted():
    with pytest.raises(EvaluationError) as exc:
        run_program(COUNT_PROGRAM.format(1000000))
    assert 'call stack exhausted' in str(exc.value)
