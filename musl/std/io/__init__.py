from .basic_io import BasicIO
from musl.values import Value, to_string
from typing import List, Optional


def populate_io_functions(interp, basic_io: Optional[BasicIO] = None) -> BasicIO:
    """Register the console and file functions on ``interp``.

    The file table is stored as the interpreter's user data.
    """
    if basic_io is None:
        basic_io = BasicIO()
    interp.set_data(basic_io)

    def std_print(interp, args: List[Value]) -> Value:
        print(''.join(to_string(a) for a in args))
        return len(args)

    def std_input(interp, args: List[Value]) -> Value:
        prompt = interp.par_str(0) if args else '> '
        try:
            line = input(prompt)
        except EOFError:
            return ''
        return line.rstrip('\r\n')

    def std_open(interp, args: List[Value]) -> Value:
        return interp.get_data().open_file(interp.par_str(0), interp.par_str(1))

    def std_close(interp, args: List[Value]) -> Value:
        interp.get_data().close_file(interp.par_num(0))
        return 0

    def std_eof(interp, args: List[Value]) -> Value:
        return interp.get_data().eof(interp.par_num(0))

    def std_read(interp, args: List[Value]) -> Value:
        return interp.get_data().read_line(interp.par_num(0))

    def std_write(interp, args: List[Value]) -> Value:
        interp.get_data().write_line(interp.par_num(0), [to_string(a) for a in args[1:]])
        return 0

    interp.add_func('print', std_print)
    interp.add_func('input$', std_input)
    interp.add_func('open', std_open)
    interp.add_func('close', std_close)
    interp.add_func('eof', std_eof)
    interp.add_func('read$', std_read)
    interp.add_func('write', std_write)

    return basic_io
