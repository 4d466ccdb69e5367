"""Interpreter for the MUSL scripting language.

MUSL is a small line oriented BASIC dialect. This module implements the
whole language core:

* a label pre-scanner that records the position of every numbered or
  ``name:`` labeled line before a script runs,
* a recursive-descent expression evaluator that computes values while it
  parses,
* a statement executor that parses and executes in the same pass and
  implements GOTO, GOSUB, RETURN and loops by moving the lexer cursor,
* the bridge used to call host (native) functions and the re-entrant
  :meth:`Interpreter.gosub` that lets a native function call back into
  the script,
* the standard built-in functions (``VAL``, ``STR$``, ``MID$`` and so on).

No syntax tree is built. Every loop iteration re-reads its statements
from the source text, and conditional code is parsed with execution
suppressed (the ``active`` flag) rather than skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import MuslError
from .lexer import (
    Lexer, Token, TOK_SIZE,
    END, IDENT, NUMBER, QUOTE, LF,
    LET, IF, THEN, KEND, ON, GOTO, GOSUB, RETURN, AND, OR, NOT,
    FOR, TO, DO, STEP, NEXT,
)
from .native_function import NativeFunction
from .symbols import SymbolTable, fold_name
from .values import (
    Value, ErrorVal, wrap_int, parse_int, to_number, to_string, is_truthy,
    is_string_name, default_value, truncating_div, truncating_mod,
)

# Maximum number of parameters that can be passed to a function
MAX_PARAMS = 20

# Maximum nested GOSUBs
MAX_GOSUB = 20

# Maximum nested FOR loops
MAX_FOR = 5

MAX_ERROR_TEXT = 80

IDENTIFIER_RE = re.compile(r'[A-Za-z][A-Za-z0-9]*\$?')


###############################################################################
# Continuations
###############################################################################


class Flow(Enum):
    ADVANCE = 'advance'
    JUMP = 'jump'
    STOP = 'stop'


@dataclass(frozen=True)
class Continuation:
    """Tells the caller of a statement where execution goes next."""
    flow: Flow
    target: Optional[int] = None


ADVANCE = Continuation(Flow.ADVANCE)
STOP = Continuation(Flow.STOP)


def jump_to(pos: int) -> Continuation:
    return Continuation(Flow.JUMP, pos)


def describe(token: Token) -> str:
    if token.type == LF:
        return '<LF>'
    if token.type == END:
        return '<END>'
    return token.value


###############################################################################
# Interpreter implementation
###############################################################################


class Interpreter:
    """A MUSL interpreter instance.

    An instance owns its variables, native functions, stacks and cursor.
    Several scripts can be run on the same instance one after the other;
    they share variables and functions but each run gets a fresh set of
    labels.
    """
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt',
                 strict_variables: bool = True, max_gosub: int = MAX_GOSUB,
                 max_for: int = MAX_FOR, max_params: int = MAX_PARAMS,
                 token_size: int = TOK_SIZE, max_error_text: int = MAX_ERROR_TEXT):
        self.variables = SymbolTable()
        self.labels = SymbolTable()
        self.functions = SymbolTable()
        self.lexer = Lexer(token_size)
        self.strict_variables = strict_variables
        self.max_gosub = max_gosub
        self.max_for = max_for
        self.max_params = max_params
        self.max_error_text = max_error_text

        self.active = True
        self.gosub_stack: List[Optional[int]] = []
        self.for_stack: List[int] = []
        self.args: List[Value] = []
        self.user_data: Any = None

        self.error: Optional[MuslError] = None
        self.error_msg = ''
        self.error_text = ''

        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 and debug_file else None
        self.load_standard_functions()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Standard functions
    def load_standard_functions(self):
        # Built-in functions: val, str$, len, left$, right$, mid$, ucase$,
        # lcase$, trim$, instr, data

        def std_val(interp: Interpreter, args: List[Value]) -> Value:
            return parse_int(interp.par_str(0))

        def std_str(interp: Interpreter, args: List[Value]) -> Value:
            return str(interp.par_num(0))

        def std_len(interp: Interpreter, args: List[Value]) -> Value:
            return len(interp.par_str(0))

        def std_left(interp: Interpreter, args: List[Value]) -> Value:
            s = interp.par_str(0)
            n = interp.par_num(1)
            if n < 0:
                interp.throw_error("Invalid parameters to LEFT$()")
            return s[:n]

        def std_right(interp: Interpreter, args: List[Value]) -> Value:
            s = interp.par_str(0)
            n = interp.par_num(1)
            if n < 0:
                interp.throw_error("Invalid parameters to RIGHT$()")
            n = min(n, len(s))
            return s[len(s) - n:]

        def std_mid(interp: Interpreter, args: List[Value]) -> Value:
            # 1-based and inclusive: MID$("Hello World", 7, 11) is "World"
            s = interp.par_str(0)
            p = interp.par_num(1) - 1
            q = interp.par_num(2)
            if q < p or p < 0:
                interp.throw_error("Invalid parameters to MID$()")
            return s[p:q]

        def std_ucase(interp: Interpreter, args: List[Value]) -> Value:
            return interp.par_str(0).upper()

        def std_lcase(interp: Interpreter, args: List[Value]) -> Value:
            return interp.par_str(0).lower()

        def std_trim(interp: Interpreter, args: List[Value]) -> Value:
            return interp.par_str(0).strip()

        def std_instr(interp: Interpreter, args: List[Value]) -> Value:
            return interp.par_str(0).find(interp.par_str(1)) + 1

        def std_data(interp: Interpreter, args: List[Value]) -> Value:
            if len(args) < 1 or not isinstance(args[0], str):
                interp.throw_error("DATA() must take at least 1 string parameter")
            name = args[0]
            if not IDENTIFIER_RE.fullmatch(name):
                interp.throw_error("DATA()'s first parameter must be a valid identifier")
            for i, item in enumerate(args[1:], 1):
                key = f"{name}[{i}]"
                if is_string_name(name):
                    interp.set_str(key, to_string(item))
                else:
                    interp.set_num(key, to_number(item))
            return len(args) - 1

        self.add_func('val', std_val)
        self.add_func('str$', std_str)
        self.add_func('len', std_len)
        self.add_func('left$', std_left)
        self.add_func('right$', std_right)
        self.add_func('mid$', std_mid)
        self.add_func('ucase$', std_ucase)
        self.add_func('lcase$', std_lcase)
        self.add_func('trim$', std_trim)
        self.add_func('instr', std_instr)
        self.add_func('data', std_data)

    # Public API
    def run(self, script: str) -> bool:
        """Run a complete script. Returns False if the script failed.

        On failure ``error``, ``error_msg`` and ``error_text`` describe the
        problem and :meth:`cur_line` gives the line it happened on.
        """
        self.lexer.load(script)
        self.active = True
        self.gosub_stack = []
        self.for_stack = []
        self.error = None
        self.error_msg = ''
        self.error_text = ''
        self.labels.clear()
        if self.debug_level >= 1:
            lines = script.count("\n") + 1
            self.debug(f"run: {len(script)} characters, {lines} lines")
        try:
            self.scan_labels()
            self.program()
        except MuslError as e:
            self.record_error(e)
            self.error = e
            return False
        finally:
            # labels belong to a single script
            self.labels.clear()
        if self.debug_level >= 1:
            self.debug("run: finished")
        return True

    def gosub(self, label: str) -> bool:
        """Call the subroutine at ``label`` from a native function.

        Runs the script from the label until the matching RETURN (or END)
        and then restores the caller's position. Errors raised inside the
        subroutine are caught here and reported by returning False, with
        ``error_msg`` describing them; the native caller decides whether
        to abort the script with :meth:`throw_error`.
        """
        target = self.labels.get(label)
        if target is None:
            self.error_msg = "GOSUB to undefined label"
            return False
        if len(self.gosub_stack) >= self.max_gosub - 1:
            self.error_msg = "GOSUB stack overflow"
            return False
        lexer = self.lexer
        saved_pos = lexer.pos
        saved_depth = len(self.gosub_stack)
        saved_loops = len(self.for_stack)
        saved_active = self.active
        # a None frame makes RETURN hand control back to us
        self.gosub_stack.append(None)
        lexer.jump(target)
        if self.debug_level >= 2:
            self.debug(f"native gosub {label} (line {self.cur_line()})")
        ok = True
        try:
            self.program()
        except MuslError as e:
            self.record_error(e)
            ok = False
        finally:
            lexer.jump(saved_pos)
            del self.gosub_stack[saved_depth:]
            del self.for_stack[saved_loops:]
            self.active = saved_active
        return ok

    def halt(self):
        """Stop the script as if it reached an END statement."""
        if self.debug_level >= 2:
            self.debug(f"halt (line {self.cur_line()})")
        self.lexer.halt()

    def cleanup(self):
        self.variables.clear()
        self.labels.clear()
        self.functions.clear()
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def cur_line(self) -> int:
        """Line number the interpreter was executing, 0 if none."""
        return self.lexer.line_of(self.lexer.pos)

    def record_error(self, e: MuslError):
        """Fill in the position of ``e`` and the ``error_msg``/``error_text`` report."""
        self.lexer.reset()
        e.line = self.cur_line()
        e.text = self.lexer.line_text(self.lexer.pos, self.max_error_text - 1)
        self.error_msg = e.message
        self.error_text = e.text
        if self.debug_level >= 1:
            self.debug(f"error: line {e.line}: {e.name}: {e.message}")

    # Native functions
    def add_func(self, name: str, fn: Optional[Callable[..., Any]]):
        """Register ``fn`` under ``name``; ``None`` disables the name."""
        entry = NativeFunction(fold_name(name), fn) if fn is not None else None
        self.functions.set(name, entry)

    def throw_error(self, msg: str, *args: Any):
        """Abort the script from inside a native function."""
        raise MuslError(ErrorVal('NativeError', msg % args if args else msg))

    def par_num(self, n: int) -> int:
        """The n'th argument of the running native function as a number."""
        if n < 0 or n >= len(self.args):
            raise MuslError(ErrorVal('ArgumentError', "Too few parameters to function"))
        return to_number(self.args[n])

    def par_str(self, n: int) -> str:
        """The n'th argument of the running native function as a string."""
        if n < 0 or n >= len(self.args):
            raise MuslError(ErrorVal('ArgumentError', "Too few parameters to function"))
        return to_string(self.args[n])

    # Variables
    def set_num(self, name: str, num: int):
        self.variables.set(name, to_number(num))

    def get_num(self, name: str) -> int:
        value = self.variables.get(name)
        return 0 if value is None else to_number(value)

    def set_str(self, name: str, text: str):
        self.variables.set(name, to_string(text))

    def get_str(self, name: str) -> Optional[str]:
        value = self.variables.get(name)
        return None if value is None else to_string(value)

    def set_var(self, name: str, value: Value):
        if not isinstance(value, (int, str)):
            raise TypeError(f"MUSL values are int or str, got {type(value).__name__}")
        if isinstance(value, int):
            value = to_number(value)
        self.variables.set(name, value)

    def get_var(self, name: str, default: Optional[Value] = None) -> Optional[Value]:
        return self.variables.get(name, default)

    def set_data(self, data: Any):
        self.user_data = data

    def get_data(self) -> Any:
        return self.user_data

    ###########################################################################
    # Label pre-scan
    ###########################################################################

    def scan_labels(self):
        lexer = self.lexer
        store = lexer.pos
        last_number = -1
        first = True
        while True:
            if not first:
                tok = lexer.next()
                if tok.type == END:
                    break
                if tok.type != LF:
                    continue
            first = False
            tok = lexer.next()
            if tok.type == NUMBER:
                n = parse_int(tok.value)
                if n <= last_number:
                    raise MuslError(ErrorVal('LabelError', f"Label {n} out of sequence"))
                last_number = n
                self.define_label(tok.value, lexer.pos)
            elif tok.type == IDENT:
                if lexer.next().type == ':':
                    self.define_label(tok.value, lexer.pos)
                else:
                    lexer.reset()
            else:
                lexer.reset()
        lexer.jump(store)

    def define_label(self, name: str, pos: int):
        if name in self.labels:
            raise MuslError(ErrorVal('LabelError', f"Duplicate label '{name}'"))
        self.labels.set(name, pos)
        if self.debug_level >= 2:
            self.debug(f"label {name} at line {self.lexer.line_of(pos)}")

    ###########################################################################
    # Statements
    ###########################################################################

    def program(self):
        """Drive statements from the cursor until END, end of input or STOP."""
        lexer = self.lexer
        first = True
        while True:
            tok = lexer.next()
            if tok.type == END or tok.type == KEND:
                break
            if first or tok.type == LF:
                # skip the label at the start of a line
                if not first:
                    tok = lexer.next()
                if tok.type == IDENT:
                    if lexer.next().type != ':':
                        lexer.jump(tok.pos)
                elif tok.type != NUMBER:
                    lexer.reset()
            else:
                lexer.reset()
                result = self.statement()
                if result.flow is Flow.JUMP:
                    lexer.jump(result.target)
                elif result.flow is Flow.STOP:
                    break
            first = False

    def expect(self, token_type: str, message: str) -> Token:
        tok = self.lexer.next()
        if tok.type != token_type:
            raise MuslError(ErrorVal('SyntaxError', message))
        return tok

    def statement(self) -> Continuation:
        lexer = self.lexer
        tok = lexer.next()
        t = tok.type
        if self.debug_level >= 3:
            state = '' if self.active else ' (inactive)'
            self.debug(f"line {self.cur_line()}: {describe(tok)}{state}")
        if t == IDENT or t == LET:
            self.assign_or_call(tok)
        elif t == IF:
            result = self.if_stmt()
            if result.flow is not Flow.ADVANCE:
                return result
        elif t == GOTO or t == GOSUB:
            result = self.goto_stmt(t)
            if result is not None:
                return result
        elif t == RETURN:
            result = self.return_stmt()
            if result is not None:
                return result
        elif t == ON:
            result = self.on_stmt()
            if result is not None:
                return result
        elif t == FOR:
            self.for_stmt()
        elif t == NEXT:
            result = self.next_stmt()
            if result is not None:
                return result
        elif t == KEND or t == END:
            if self.active:
                lexer.reset()
                return STOP
        else:
            raise MuslError(ErrorVal('SyntaxError', f"Statement expected, got '{describe(tok)}'"))
        return self.end_of_statement()

    def end_of_statement(self) -> Continuation:
        lexer = self.lexer
        tok = lexer.next()
        if tok.type == ':':
            while lexer.next().type == LF:
                pass
            lexer.reset()
            return self.statement()
        if tok.type not in (LF, KEND, END):
            raise MuslError(ErrorVal('SyntaxError', f"':' or <LF> expected, got '{describe(tok)}'"))
        lexer.reset()
        return ADVANCE

    def assign_or_call(self, tok: Token):
        lexer = self.lexer
        has_let = tok.type == LET
        if has_let:
            tok = lexer.next()
            if tok.type != IDENT:
                raise MuslError(ErrorVal('SyntaxError', "Identifier expected"))
        name = tok.value
        if lexer.next().type == '[':
            has_let = True
            name = self.index_name(name)
        else:
            lexer.reset()
        op = lexer.next()
        if op.type == '=':
            value = self.expr()
            if self.active:
                self.variables.set(name, value)
                if self.debug_level >= 3:
                    self.debug(f"  {name} = {value!r}")
        elif not has_let and op.type == '(':
            self.call(name)
        else:
            raise MuslError(ErrorVal('SyntaxError', "'=' expected"))

    def index_name(self, base: str) -> str:
        """Build ``base[index]`` after the opening bracket has been read."""
        index = self.expr()
        self.expect(']', "Missing ']'")
        return f"{base}[{to_string(index)}]"

    def if_stmt(self) -> Continuation:
        lexer = self.lexer
        save = self.active
        cond = self.expr()
        if self.active:
            self.active = is_truthy(cond)
        self.expect(THEN, "THEN expected")
        # the consequent may start on a following line
        while lexer.next().type == LF:
            pass
        lexer.reset()
        result = self.statement()
        self.active = save
        return result

    def resolve_label(self, name: str, what: str) -> int:
        target = self.labels.get(name)
        if target is None:
            raise MuslError(ErrorVal('LabelError', f"{what} to undefined label '{name}'"))
        return target

    def push_gosub(self, pos: Optional[int]):
        if len(self.gosub_stack) >= self.max_gosub - 1:
            raise MuslError(ErrorVal('StackError', "GOSUB stack overflow"))
        self.gosub_stack.append(pos)

    def label_token(self) -> Token:
        tok = self.lexer.next()
        if tok.type != IDENT and tok.type != NUMBER:
            raise MuslError(ErrorVal('SyntaxError', "Label expected"))
        return tok

    def goto_stmt(self, kind: str) -> Optional[Continuation]:
        tok = self.label_token()
        target = self.resolve_label(tok.value, 'GOTO/GOSUB')
        if not self.active:
            return None
        if kind == GOSUB:
            self.push_gosub(self.lexer.pos)
        if self.debug_level >= 2:
            self.debug(f"{kind.lower()} {tok.value} (from line {self.cur_line()})")
        return jump_to(target)

    def return_stmt(self) -> Optional[Continuation]:
        if not self.active:
            return None
        if not self.gosub_stack:
            raise MuslError(ErrorVal('StackError', "GOSUB stack underflow"))
        pos = self.gosub_stack.pop()
        if pos is None:
            # the GOSUB came from native code
            if self.debug_level >= 2:
                self.debug("return to native caller")
            self.lexer.halt()
            return STOP
        if self.debug_level >= 2:
            self.debug(f"return to line {self.lexer.line_of(pos)}")
        # statements after the GOSUB on the same line continue from here
        self.lexer.jump(pos)
        return None

    def on_stmt(self) -> Optional[Continuation]:
        lexer = self.lexer
        selected = to_number(self.expr())
        kind = lexer.next().type
        if kind != GOTO and kind != GOSUB:
            raise MuslError(ErrorVal('SyntaxError', "GOTO or GOSUB expected"))
        j = 0
        while True:
            tok = self.label_token()
            if self.active and j == selected:
                target = self.resolve_label(tok.value, 'ON .. GOTO/GOSUB')
                if kind == GOSUB:
                    while lexer.next().type == ',':
                        self.label_token()
                    lexer.reset()
                    self.push_gosub(lexer.pos)
                if self.debug_level >= 2:
                    self.debug(f"on {selected} {kind.lower()} {tok.value}")
                return jump_to(target)
            j += 1
            if lexer.next().type != ',':
                break
        # no matching label: carry on with the next statement
        lexer.reset()
        return None

    def for_header(self) -> Tuple[str, int, int, int]:
        """Parse ``ident = start TO stop [STEP step] DO`` after FOR."""
        lexer = self.lexer
        tok = lexer.next()
        if tok.type != IDENT:
            raise MuslError(ErrorVal('SyntaxError', "Identifier expected after FOR"))
        self.expect('=', "'=' expected")
        start = to_number(self.expr())
        self.expect(TO, "TO expected")
        stop = to_number(self.expr())
        if lexer.next().type == STEP:
            step = to_number(self.expr())
        else:
            lexer.reset()
            step = 1 if start < stop else -1
        self.expect(DO, "DO expected")
        return tok.value, start, stop, step

    def for_stmt(self):
        lexer = self.lexer
        if len(self.for_stack) >= self.max_for:
            raise MuslError(ErrorVal('StackError', "FOR stack overflow"))
        self.for_stack.append(lexer.pos)
        name, start, stop, step = self.for_header()
        if self.active:
            self.variables.set(name, start)
            # NEXT resumes right after DO, so the body starts on the next line
            if lexer.next().type not in (LF, END):
                raise MuslError(ErrorVal('SyntaxError', "<LF> expected after DO"))
            lexer.reset()
            return
        # Suppressed loop: read over the body up to the matching NEXT
        # without executing anything.
        self.for_stack.pop()
        self.expect(LF, "<LF> expected after DO")
        while True:
            tok = lexer.next()
            if tok.type == NEXT:
                break
            if tok.type == END:
                raise MuslError(ErrorVal('SyntaxError', "NEXT expected"))
            if tok.type == NUMBER or tok.type == LF:
                continue
            if tok.type == IDENT:
                if lexer.next().type == ':':
                    continue
                lexer.jump(tok.pos)
            else:
                lexer.reset()
            self.statement()

    def next_stmt(self) -> Optional[Continuation]:
        if not self.active:
            return None
        lexer = self.lexer
        if not self.for_stack:
            raise MuslError(ErrorVal('StackError', "FOR stack underflow"))
        save = lexer.pos
        # bounds are re-read from the FOR header on every iteration
        lexer.jump(self.for_stack[-1])
        name, start, stop, step = self.for_header()
        index = to_number(self.variables.get(name, 0))
        if index == stop:
            lexer.jump(save)
            self.for_stack.pop()
            return None
        self.variables.set(name, wrap_int(index + step))
        return jump_to(lexer.pos)

    ###########################################################################
    # Expressions
    ###########################################################################

    def expr(self) -> Value:
        value = self.and_expr()
        while self.lexer.next().type == OR:
            value = to_number(value) | to_number(self.and_expr())
        self.lexer.reset()
        return value

    def and_expr(self) -> Value:
        value = self.not_expr()
        while self.lexer.next().type == AND:
            value = to_number(value) & to_number(self.not_expr())
        self.lexer.reset()
        return value

    def not_expr(self) -> Value:
        if self.lexer.next().type == NOT:
            return 0 if is_truthy(self.comp_expr()) else 1
        self.lexer.reset()
        return self.comp_expr()

    def comp_expr(self) -> Value:
        left = self.cat_expr()
        tok = self.lexer.next()
        if tok.type in ('=', '<', '>', '~'):
            right = self.cat_expr()
            return self.compare(tok.type, left, right)
        self.lexer.reset()
        return left

    def compare(self, op: str, a: Value, b: Value) -> int:
        # the left operand decides whether this is a string comparison
        if isinstance(a, str):
            b = to_string(b)
        else:
            a, b = to_number(a), to_number(b)
        if op == '=':
            return 1 if a == b else 0
        if op == '<':
            return 1 if a < b else 0
        if op == '>':
            return 1 if a > b else 0
        return 1 if a != b else 0

    def cat_expr(self) -> Value:
        value = self.add_expr()
        while self.lexer.next().type == '&':
            value = to_string(value) + to_string(self.add_expr())
        self.lexer.reset()
        return value

    def add_expr(self) -> Value:
        value = self.mul_expr()
        while True:
            t = self.lexer.next().type
            if t == '+':
                value = wrap_int(to_number(value) + to_number(self.mul_expr()))
            elif t == '-':
                value = wrap_int(to_number(value) - to_number(self.mul_expr()))
            else:
                break
        self.lexer.reset()
        return value

    def mul_expr(self) -> Value:
        value = self.unary()
        while True:
            t = self.lexer.next().type
            if t == '*':
                value = wrap_int(to_number(value) * to_number(self.unary()))
            elif t == '/' or t == '%':
                divisor = to_number(self.unary())
                if divisor == 0:
                    raise MuslError(ErrorVal('ArithmeticError', "Divide by zero"))
                if t == '/':
                    value = wrap_int(truncating_div(to_number(value), divisor))
                else:
                    value = wrap_int(truncating_mod(to_number(value), divisor))
            else:
                break
        self.lexer.reset()
        return value

    def unary(self) -> Value:
        t = self.lexer.next().type
        if t == '-':
            return wrap_int(-to_number(self.atom()))
        if t == '+':
            return to_number(self.atom())
        self.lexer.reset()
        return self.atom()

    def atom(self) -> Value:
        lexer = self.lexer
        tok = lexer.next()
        if tok.type == '(':
            value = self.expr()
            self.expect(')', "Missing ')'")
            return value
        if tok.type == IDENT:
            nxt = lexer.next()
            if nxt.type == '(':
                return self.call(tok.value)
            if nxt.type == '[':
                name = self.index_name(tok.value)
            else:
                lexer.reset()
                name = tok.value
            return self.read_variable(name)
        if tok.type == NUMBER:
            return parse_int(tok.value)
        if tok.type == QUOTE:
            return tok.value
        raise MuslError(ErrorVal('SyntaxError', f"Value expected, got '{describe(tok)}'"))

    def read_variable(self, name: str) -> Value:
        value = self.variables.get(name)
        if value is None:
            if self.active and self.strict_variables:
                raise MuslError(ErrorVal('NameError', f"Read from undefined variable '{name}'"))
            return default_value(name)
        return value

    ###########################################################################
    # Native function calls
    ###########################################################################

    def call(self, name: str) -> Value:
        """Evaluate the arguments of ``name(...)`` and invoke it if active."""
        lexer = self.lexer
        args: List[Value] = []
        if lexer.next().type != ')':
            lexer.reset()
            while True:
                if len(args) >= self.max_params:
                    raise MuslError(ErrorVal('ArgumentError', f"Too many parameters to function {name}"))
                args.append(self.expr())
                t = lexer.next().type
                if t == ')':
                    break
                if t != ',':
                    raise MuslError(ErrorVal('SyntaxError', "Expected ')'"))
        func = self.functions.get(name)
        if func is None:
            raise MuslError(ErrorVal('NameError', f"Call to undefined function {name}()"))
        if not self.active:
            return default_value(name)
        return self.invoke(func, args)

    def invoke(self, func: NativeFunction, args: List[Value]) -> Value:
        if self.debug_level >= 3:
            self.debug(f"  call {func.name}({', '.join(repr(a) for a in args)})")
        saved = self.args
        self.args = args
        try:
            result = func.fn(self, args)
        finally:
            self.args = saved
        if result is None:
            return 0
        if isinstance(result, bool):
            return int(result)
        if isinstance(result, int):
            return wrap_int(result)
        if isinstance(result, str):
            return result
        raise MuslError(ErrorVal('ArgumentError', f"Function {func.name}() returned an invalid value"))


def read_script(path: str) -> str:
    """Read an entire script file into memory."""
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def run_program(source: str, functions: Optional[Dict[str, Callable[..., Any]]] = None,
                debug_level: int = 0, **options: Any) -> Interpreter:
    """Convenience function to run a MUSL program from a source string.

    Raises :class:`MuslError` if the script fails; the exception carries
    the line number and source snippet of the failure.
    """
    interpreter = Interpreter(debug_level=debug_level, **options)
    for name, fn in (functions or {}).items():
        interpreter.add_func(name, fn)
    if not interpreter.run(source):
        raise interpreter.error
    return interpreter
