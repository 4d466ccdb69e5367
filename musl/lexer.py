"""Cursor based tokenizer for MUSL.

The interpreter never tokenizes a script up front. Instead it keeps a
cursor into the source text and asks the lexer for one token at a time.
The lexer remembers where the most recent token started so that the
caller can push back exactly one token with :meth:`Lexer.reset`.
Control transfer (GOTO, GOSUB, RETURN, loops) is just :meth:`Lexer.jump`
to another position in the same text.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Optional

from .errors import MuslError
from .values import DIGITS, ErrorVal

TOK_SIZE = 80

# Token types
END = 'END'          # end of input (or halted cursor)
IDENT = 'IDENT'
NUMBER = 'NUMBER'
QUOTE = 'QUOTE'
LF = 'LF'

LET = 'LET'
IF = 'IF'
THEN = 'THEN'
KEND = 'KEND'        # the END keyword
ON = 'ON'
GOTO = 'GOTO'
GOSUB = 'GOSUB'
RETURN = 'RETURN'
AND = 'AND'
OR = 'OR'
NOT = 'NOT'
FOR = 'FOR'
TO = 'TO'
DO = 'DO'
STEP = 'STEP'
NEXT = 'NEXT'

KEYWORDS = {
    'let': LET,
    'if': IF,
    'then': THEN,
    'end': KEND,
    'on': ON,
    'goto': GOTO,
    'gosub': GOSUB,
    'return': RETURN,
    'and': AND,
    'or': OR,
    'not': NOT,
    'for': FOR,
    'to': TO,
    'do': DO,
    'step': STEP,
    'next': NEXT,
}

# Single character operators; the token type is the character itself.
OPERATORS = '=<>~+-*/%()[],:&'

ESCAPES = {'n': '\n', 'r': '\r', 't': '\t'}

# Character classes are ASCII only, as in the C locale
WHITESPACE = ' \t\n\r\f\v'
IDENT_START = string.ascii_letters + '_'
IDENT_CHARS = IDENT_START + string.digits


@dataclass
class Token:
    type: str
    value: str
    pos: int


class Lexer:
    """Produces tokens from a cursor into an immutable source string."""

    def __init__(self, token_size: int = TOK_SIZE):
        self.token_size = token_size
        self.source = ''
        self.pos: Optional[int] = None
        self.last: Optional[int] = None

    def load(self, source: str):
        self.source = source
        self.pos = 0
        self.last = None

    def error(self, message: str):
        raise MuslError(ErrorVal('LexerError', message))

    # Cursor control

    def reset(self):
        """Push back the most recent token."""
        if self.last is not None:
            self.pos = self.last

    def jump(self, pos: Optional[int]):
        self.pos = pos
        self.last = None

    def halt(self):
        self.jump(None)

    def peek_char(self, offset: int = 0) -> str:
        i = self.pos + offset
        if i < len(self.source):
            return self.source[i]
        return ''

    # Scanning

    def next(self) -> Token:
        if self.pos is None:
            return Token(END, '', len(self.source))
        src = self.source
        length = len(src)
        self.last = self.pos

        while True:
            while self.pos < length and src[self.pos] in WHITESPACE:
                c = src[self.pos]
                self.pos += 1
                if c == '\n':
                    return Token(LF, '\n', self.pos - 1)
            if self.pos < length and src[self.pos] == '#':
                while self.pos < length and src[self.pos] != '\n':
                    self.pos += 1
                if self.pos >= length:
                    return Token(END, '', self.pos)
                self.pos += 1
                return Token(LF, '\n', self.pos - 1)
            if self.pos < length and src[self.pos] == '\\':
                # line continuation: only blanks may follow the backslash
                self.pos += 1
                while self.pos < length and src[self.pos] != '\n' and src[self.pos] in WHITESPACE:
                    self.pos += 1
                if self.pos >= length or src[self.pos] != '\n':
                    self.error("Bad '\\' at end of line")
                self.pos += 1
                continue
            break

        self.last = self.pos
        start = self.pos
        if start >= length:
            return Token(END, '', start)
        c = src[start]

        if c == '"' or c == '\'':
            self.pos += 1
            return Token(QUOTE, self.scan_string(c, raw=False), start)
        if c in 'rR' and self.peek_char(1) in ('"', '\''):
            quote = self.peek_char(1)
            self.pos += 2
            return Token(QUOTE, self.scan_string(quote, raw=True), start)
        if c in IDENT_START:
            while self.pos < length and src[self.pos] in IDENT_CHARS:
                self.pos += 1
            if self.pos < length and src[self.pos] == '$':
                self.pos += 1
            value = src[start:self.pos].lower()
            self.check_size(value)
            return Token(KEYWORDS.get(value, IDENT), value, start)
        if c in DIGITS:
            while self.pos < length and src[self.pos] in DIGITS:
                self.pos += 1
            value = src[start:self.pos]
            self.check_size(value)
            return Token(NUMBER, value, start)
        if c in OPERATORS:
            self.pos += 1
            return Token(c, c, start)
        self.error(f"Unknown token '{c}'")

    def scan_string(self, quote: str, raw: bool) -> str:
        src = self.source
        length = len(src)
        chars = []
        while True:
            if self.pos >= length:
                self.error("Unterminated string")
            ch = src[self.pos]
            if ch == quote:
                self.pos += 1
                break
            if not raw and ch == '\\':
                if self.pos + 1 >= length:
                    self.error("Unterminated string")
                esc = src[self.pos + 1]
                chars.append(ESCAPES.get(esc, esc))
                self.pos += 2
            else:
                chars.append(ch)
                self.pos += 1
            if len(chars) >= self.token_size:
                self.error("Token too long")
        return ''.join(chars)

    def check_size(self, text: str):
        if len(text) >= self.token_size:
            self.error("Token too long")

    # Positions

    def line_of(self, pos: Optional[int]) -> int:
        """1-based line number of ``pos`` in the source, 0 if unknown."""
        if pos is None:
            return 0
        return self.source.count('\n', 0, pos) + 1

    def line_text(self, pos: Optional[int], limit: int) -> str:
        """Source text from ``pos`` to the end of its line, at most ``limit`` characters."""
        if pos is None:
            return ''
        end = self.source.find('\n', pos)
        if end < 0:
            end = len(self.source)
        return self.source[pos:min(end, pos + limit)]
