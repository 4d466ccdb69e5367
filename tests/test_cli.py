import pytest
from musl.__main__ import main


def write_script(tmp_path, name, source):
    path = tmp_path / name
    path.write_text(source, encoding='utf-8')
    return str(path)


def test_runs_script(tmp_path, capsys):
    path = write_script(tmp_path, 'a.musl', 'print("Hello ", 1 + 1)\n')
    main([path])
    assert capsys.readouterr().out == 'Hello 2\n'


def test_error_exits_with_report(tmp_path, capsys):
    path = write_script(tmp_path, 'bad.musl', 'x = 1\ny = 1 / 0\n')
    with pytest.raises(SystemExit) as e:
        main([path])
    assert e.value.code == 1
    assert capsys.readouterr().err == 'ERROR:Line 2: Divide by zero:\n>> 0\n'


def test_defines(tmp_path, capsys):
    path = write_script(tmp_path, 'd.musl', 'print("Hello ", name$, n + 1)\n')
    main(['-D', 'name$=World', '-D', 'n=3', path])
    assert capsys.readouterr().out == 'Hello World4\n'


def test_bad_define(tmp_path):
    path = write_script(tmp_path, 'd.musl', 'x = 1\n')
    with pytest.raises(SystemExit) as e:
        main(['-D', 'novalue', path])
    assert e.value.code == 2


def test_scripts_share_variables(tmp_path, capsys):
    first = write_script(tmp_path, 'one.musl', 'x = 41\n')
    second = write_script(tmp_path, 'two.musl', 'print(x + 1)\n')
    main([first, second])
    assert capsys.readouterr().out == '42\n'


def test_lenient(tmp_path, capsys):
    path = write_script(tmp_path, 'l.musl', 'print(undefined + 1)\n')
    with pytest.raises(SystemExit):
        main([path])
    capsys.readouterr()
    main(['--lenient', path])
    assert capsys.readouterr().out == '1\n'


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as e:
        main([str(tmp_path / 'nope.musl')])
    assert e.value.code == 1
    assert 'Unable to read' in capsys.readouterr().err


def test_check_mode(tmp_path, capsys):
    good = write_script(tmp_path, 'good.musl', 'GOTO done\ndone: END\n')
    main(['--check', good])
    assert capsys.readouterr().out == f'{good}: OK\n'
    bad = write_script(tmp_path, 'bad.musl', 'GOTO nowhere\n')
    with pytest.raises(SystemExit) as e:
        main(['--check', bad])
    assert e.value.code == 1
    assert "ERROR:Line 1: GOTO/GOSUB to undefined label 'nowhere':" in capsys.readouterr().err


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    path = write_script(tmp_path, 'v.musl', 'x = 1\n')
    main(['-v', path])
    assert 'run: finished' in (tmp_path / 'debug.txt').read_text()
