import pytest
from musl.errors import MuslError
from musl.interpreter import Interpreter, run_program
from musl.values import to_string


def test_native_function_arguments_are_coerced():
    def add(interp, args):
        return interp.par_num(0) + interp.par_num(1)

    interp = run_program('x = add(2, "40")\n', functions={'add': add})
    assert interp.get_num('x') == 42


def test_native_receives_argument_list():
    seen = []

    def capture(interp, args):
        seen.append(list(args))
        return interp.par_str(0)

    interp = run_program('s$ = capture(1 + 1, "b")\n', functions={'capture': capture})
    assert seen == [[2, 'b']]
    assert interp.get_str('s$') == '2'


def test_native_return_values():
    functions = {
        'nothing': lambda interp, args: None,
        'yes': lambda interp, args: True,
        'big': lambda interp, args: 2 ** 31,
    }
    interp = run_program('a = nothing()\nb = yes()\nc = big()\n', functions=functions)
    assert interp.get_var('a') == 0
    assert interp.get_var('b') == 1
    assert interp.get_var('c') == -2147483648


def test_native_invalid_return_value():
    with pytest.raises(MuslError, match="Function half\\(\\) returned an invalid value") as e:
        run_program('x = half()\n', functions={'half': lambda interp, args: 0.5})
    assert e.value.name == 'ArgumentError'


def test_too_few_parameters():
    def second(interp, args):
        return interp.par_num(1)

    with pytest.raises(MuslError, match="Too few parameters to function"):
        run_program('x = second(1)\n', functions={'second': second})


def test_too_many_parameters():
    source = 'x = count(' + ', '.join(['1'] * 21) + ')\n'
    functions = {'count': lambda interp, args: len(args)}
    with pytest.raises(MuslError, match="Too many parameters to function count"):
        run_program(source, functions=functions)
    source = 'x = count(' + ', '.join(['1'] * 20) + ')\n'
    assert run_program(source, functions=functions).get_num('x') == 20


def test_undefined_function():
    with pytest.raises(MuslError, match="Call to undefined function nope\\(\\)") as e:
        run_program('x = nope(1)\n')
    assert e.value.name == 'NameError'


def test_undefined_function_is_checked_even_when_suppressed():
    with pytest.raises(MuslError, match="Call to undefined function nope"):
        run_program('IF 0 THEN x = nope()\n')


def test_suppressed_call_is_not_invoked():
    def boom(interp, args):
        raise AssertionError("must not be called")

    interp = run_program('IF 0 THEN boom()\nIF 0 THEN s$ = boom()\n', functions={'boom': boom})
    assert interp.get_var('s$') is None


def test_replace_and_disable_builtins():
    interp = Interpreter()
    interp.add_func('LEN', lambda interp, args: 99)
    assert interp.run('x = len("a")\n')
    assert interp.get_num('x') == 99
    interp.add_func('len', None)
    assert not interp.run('x = len("a")\n')
    assert interp.error_msg == "Call to undefined function len()"


def test_throw_error_from_native():
    def fail(interp, args):
        interp.throw_error("bad value %d", interp.par_num(0))

    interp = Interpreter()
    interp.add_func('fail', fail)
    assert not interp.run('x = 1\nfail(7)\n')
    assert interp.error_msg == "bad value 7"
    assert interp.error.name == 'NativeError'
    assert interp.cur_line() == 2


def test_variable_accessors():
    interp = Interpreter()
    interp.set_num('N', 5)
    interp.set_str('S$', 'x')
    interp.set_str('myarray$[foo]', 'XYZZY')
    assert interp.run('t$ = s$ & n\nv$ = MyArray$["foo"]\n')
    assert interp.get_str('t$') == 'x5'
    assert interp.get_str('v$') == 'XYZZY'
    assert interp.get_num('n') == 5
    assert interp.get_num('missing') == 0
    assert interp.get_str('missing$') is None
    assert interp.get_num('t$') == 0


def test_set_var_accepts_only_musl_values():
    interp = Interpreter()
    interp.set_var('a', 3)
    interp.set_var('b$', 'text')
    assert interp.get_var('a') == 3
    assert interp.get_var('b$') == 'text'
    with pytest.raises(TypeError):
        interp.set_var('c', 1.5)


def test_user_data():
    interp = Interpreter()
    state = object()
    interp.set_data(state)
    assert interp.get_data() is state
    assert interp.user_data is state


def test_variables_persist_between_runs():
    interp = Interpreter()
    assert interp.run('x = 1\n')
    assert interp.run('y = x + 1\n')
    assert interp.get_num('y') == 2


def make_interpreter():
    output = []
    errors = []

    def trace(interp, args):
        output.append(' '.join(to_string(a) for a in args))

    def call(interp, args):
        ok = interp.gosub(interp.par_str(0))
        if not ok:
            errors.append(interp.error_msg)
        return ok

    interp = Interpreter()
    interp.add_func('trace', trace)
    interp.add_func('call', call)
    return interp, output, errors


def test_reentrant_gosub():
    interp, output, errors = make_interpreter()
    source = 'ok = call("sub")\ntrace("after", ok)\nEND\nsub: trace("in sub")\nRETURN\n'
    assert interp.run(source)
    assert output == ['in sub', 'after 1']
    assert errors == []
    assert interp.gosub_stack == []


def test_reentrant_gosub_failure_is_reported_to_the_caller():
    interp, output, errors = make_interpreter()
    source = 'r = call("bad")\ntrace("r", r)\nEND\nbad: x = 1 / 0\nRETURN\n'
    assert interp.run(source)
    assert output == ['r 0']
    assert errors == ["Divide by zero"]
    # the script itself succeeded, so no error is left behind
    assert interp.error is None
    assert interp.error_msg == "Divide by zero"


def test_reentrant_gosub_undefined_label():
    interp, output, errors = make_interpreter()
    assert interp.run('r = call("nowhere")\n')
    assert interp.get_num('r') == 0
    assert errors == ["GOSUB to undefined label"]


def test_nested_reentrant_gosub():
    interp, output, errors = make_interpreter()
    source = (
        'call("outer")\n'
        'trace("main")\n'
        'END\n'
        'outer: trace("outer")\n'
        'call("inner")\n'
        'trace("outer again")\n'
        'RETURN\n'
        'inner: trace("inner")\n'
        'RETURN\n'
    )
    assert interp.run(source)
    assert output == ['outer', 'inner', 'outer again', 'main']


def test_halt_from_native():
    output = []
    functions = {
        'trace': lambda interp, args: output.append(interp.par_str(0)),
        'stop': lambda interp, args: interp.halt(),
    }
    run_program('trace(1)\nstop()\ntrace(2)\n', functions=functions)
    assert output == ['1']


def test_debug_log_written_to_file(tmp_path):
    log = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=3, debug_file=str(log))
    assert interp.run('GOSUB s\nEND\ns: x = 1\nRETURN\n')
    interp.cleanup()
    text = log.read_text()
    assert 'label s at line 3' in text
    assert 'gosub s (from line 1)' in text
    assert 'run: finished' in text


def test_debug_log_to_stdout(capsys):
    interp = Interpreter(debug_level=1, debug_file=None)
    interp.run('x = 1\n')
    out = capsys.readouterr().out
    assert 'run: 6 characters' in out


def test_no_debug_file_without_debug_level(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Interpreter().run('x = 1\n')
    assert not (tmp_path / 'debug.txt').exists()
