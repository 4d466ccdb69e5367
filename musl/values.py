"""Value model and coercion helpers for MUSL.

MUSL values are either numbers or strings. Numbers are represented as
plain Python ``int`` objects that always hold a signed 32-bit quantity,
strings as ``str``. There are no floats and no booleans; conditions are
numbers where zero is false.

Values are weakly typed: every operator coerces its operands on demand.
The rules implemented here are the only place where conversions happen,
so the interpreter and native functions stay consistent with each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

Value = Union[int, str]

INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1

DIGITS = '0123456789'


@dataclass
class ErrorVal:
    """Describes a fatal MUSL error.

    ``name`` is the error category (for example ``'SyntaxError'`` or
    ``'StackError'``) and ``message`` the short human readable text that
    is reported to the embedder.
    """
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


def wrap_int(n: int) -> int:
    """Wrap an arbitrary Python integer to signed 32-bit two's complement."""
    n &= 0xFFFFFFFF
    if n > INT_MAX:
        n -= 0x100000000
    return n


def parse_int(text: str) -> int:
    """Parse the leading integer of ``text`` the way C's ``atoi`` does.

    Leading whitespace is skipped, an optional sign is accepted and the
    longest run of decimal digits is converted. Strings without digits
    (including the empty string) give 0.
    """
    i = 0
    length = len(text)
    while i < length and text[i].isspace():
        i += 1
    negative = False
    if i < length and text[i] in '+-':
        negative = text[i] == '-'
        i += 1
    start = i
    while i < length and text[i] in DIGITS:
        i += 1
    if i == start:
        return 0
    n = int(text[start:i])
    return wrap_int(-n if negative else n)


def to_number(value: Value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return wrap_int(value)
    return parse_int(value)


def to_string(value: Value) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    return value


def is_truthy(value: Value) -> bool:
    return to_number(value) != 0


def is_string_name(name: str) -> bool:
    """Return True for string-flavored names such as ``a$`` or ``a$[3]``."""
    base = name.split('[', 1)[0]
    return base.endswith('$')


def default_value(name: str) -> Value:
    """The value an uninitialized variable (or a suppressed call) yields."""
    return '' if is_string_name(name) else 0


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero, as in C."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def truncating_mod(a: int, b: int) -> int:
    """Remainder whose sign follows the dividend, as in C."""
    return a - b * truncating_div(a, b)
