import pytest
from musl.errors import MuslError
from musl.interpreter import run_program


def evaluate(expr, **options):
    interp = run_program(f"result = {expr}\n", **options)
    return interp.get_var('result')


def test_precedence():
    assert evaluate('1 + 2 * 3') == 7
    assert evaluate('(1 + 2) * 3') == 9
    assert evaluate('10 - 4 - 3') == 3
    assert evaluate('2 * 3 % 4') == 2


def test_truncating_division():
    assert evaluate('7 / 2') == 3
    assert evaluate('-7 / 2') == -3
    assert evaluate('-7 % 3') == -1


def test_32_bit_wraparound():
    assert evaluate('2147483647 + 1') == -2147483648
    assert evaluate('65536 * 65536') == 0


def test_string_operands_coerce_to_numbers():
    assert evaluate('"12" + 3') == 15
    assert evaluate('"abc" * 2') == 0
    assert evaluate('+"42"') == 42
    assert evaluate('-"5"') == -5


def test_concatenation_binds_looser_than_addition():
    assert evaluate('"ab" & 1 + 2') == 'ab3'
    assert evaluate('1 & 2') == '12'


def test_assignment_keeps_string_type():
    assert evaluate('"abc"') == 'abc'
    assert evaluate('("abc")') == 'abc'


def test_comparisons():
    assert evaluate('"abc" = "abc"') == 1
    assert evaluate('"abc" < "abd"') == 1
    assert evaluate('10 < 9') == 0
    assert evaluate('"10" < 9') == 1
    assert evaluate('5 ~ 5') == 0
    assert evaluate('5 > 4') == 1


def test_comparisons_do_not_chain():
    with pytest.raises(MuslError, match="expected"):
        evaluate('1 < 2 < 3')


def test_logic_is_bitwise():
    assert evaluate('6 AND 3') == 2
    assert evaluate('4 OR 1') == 5
    assert evaluate('NOT 0') == 1
    assert evaluate('NOT 5') == 0
    assert evaluate('1 = 1 AND 2 = 2') == 1


def test_divide_by_zero():
    with pytest.raises(MuslError, match="Divide by zero") as e:
        evaluate('1 / 0')
    assert e.value.name == 'ArithmeticError'
    with pytest.raises(MuslError, match="Divide by zero"):
        evaluate('5 % 0')


def test_undefined_variable_is_an_error_by_default():
    with pytest.raises(MuslError, match="Read from undefined variable 'y'") as e:
        evaluate('y + 1')
    assert e.value.name == 'NameError'


def test_undefined_variable_in_lenient_mode():
    assert evaluate('y + 1', strict_variables=False) == 1
    assert evaluate('y$', strict_variables=False) == ''


def test_array_elements_are_flat_names():
    interp = run_program('i = 2\na[i] = 5\nb = a[1 + 1]\n')
    assert interp.get_var('b') == 5
    assert interp.get_var('a[2]') == 5


def test_array_index_keeps_case():
    interp = run_program('k$ = "Key"\nm[k$] = 1\n')
    assert interp.get_var('m[Key]') == 1
    assert interp.get_var('M[Key]') == 1
    assert interp.get_var('m[key]') is None


def test_missing_bracket_or_paren():
    with pytest.raises(MuslError, match="Missing '\\)'"):
        evaluate('(1 + 2')
    with pytest.raises(MuslError, match="Missing '\\]'"):
        run_program('a[1 = 2\n')


def test_value_expected():
    with pytest.raises(MuslError, match="Value expected") as e:
        evaluate('1 + ')
    assert e.value.name == 'SyntaxError'
