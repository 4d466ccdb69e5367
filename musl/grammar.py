"""Static syntax checker for MUSL scripts.

The interpreter parses and executes in a single pass, so a syntax error
in a branch that never runs goes unnoticed until that branch is taken.
This module parses a whole script up front with a Lark grammar of the
language and then walks the parse tree to validate the labels:

* numeric labels must appear in increasing order,
* a label may only be defined once,
* every GOTO, GOSUB and ON target must be defined somewhere.

The parse tree only exists for checking; the interpreter never sees it.
`check_script` is the public entry point.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from lark import Lark, Tree, Visitor
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from .errors import MuslError
from .values import ErrorVal, parse_int

KEYWORDS = ('let', 'if', 'then', 'end', 'on', 'goto', 'gosub', 'return',
            'and', 'or', 'not', 'for', 'to', 'do', 'step', 'next')

# Keywords only match as whole words; "ending" is an identifier.
_WORD_END = r'(?![a-z0-9_$])'


def _keyword(word: str) -> str:
    return f'{word.upper()}: /{word}{_WORD_END}/i'


MUSL_GRAMMAR = r"""
    program: line (_NL line)*

    line: [label] [stmt_list]

    label: NUMBER       -> number_label
         | NAME ":"     -> name_label

    // A FOR header ends its line: NEXT resumes right after DO
    stmt_list: (statement ":" _NL*)* (statement | loop_head)

    ?statement: assign
              | call_stmt
              | if_stmt
              | goto_stmt
              | gosub_stmt
              | on_stmt
              | return_stmt
              | next_stmt
              | end_stmt

    ?loop_head: for_stmt
              | _if_head loop_head   -> if_stmt

    assign: [LET] NAME ["[" expr "]"] "=" expr
    call_stmt: NAME "(" [args] ")"
    if_stmt: _if_head statement
    _if_head: IF expr THEN _NL*
    goto_stmt: GOTO label_ref
    gosub_stmt: GOSUB label_ref
    on_stmt: ON expr (GOTO | GOSUB) label_ref ("," label_ref)*
    return_stmt: RETURN
    for_stmt: FOR NAME "=" expr TO expr [STEP expr] DO
    next_stmt: NEXT
    end_stmt: END

    label_ref: NAME | NUMBER

    // Expressions, lowest precedence first
    ?expr: and_expr
         | expr OR and_expr
    ?and_expr: not_expr
             | and_expr AND not_expr
    ?not_expr: comp_expr
             | NOT comp_expr
    ?comp_expr: cat_expr
              | cat_expr COMP_OP cat_expr
    ?cat_expr: add_expr
             | cat_expr "&" add_expr
    ?add_expr: mul_expr
             | add_expr ADD_OP mul_expr
    ?mul_expr: unary
             | mul_expr MUL_OP unary
    ?unary: atom
          | ADD_OP atom
    ?atom: "(" expr ")"
         | NUMBER
         | STRING
         | RAW_STRING
         | variable
         | call
    variable: NAME ["[" expr "]"]
    call: NAME "(" [args] ")"
    args: expr ("," expr)*

    COMP_OP: "=" | "<" | ">" | "~"
    ADD_OP: "+" | "-"
    MUL_OP: "*" | "/" | "%"

    NUMBER: /[0-9]+/
    STRING: /"(?:\\.|[^"\\])*"/ | /'(?:\\.|[^'\\])*'/
    RAW_STRING.2: /[rR]"[^"]*"/ | /[rR]'[^']*'/
""" + '\n'.join('    ' + _keyword(word) for word in KEYWORDS) + r"""
    NAME: /(?!(?:""" +'|'.join(KEYWORDS) + r""")(?![a-z0-9_$]))[a-z_][a-z0-9_]*\$?/i

    _NL: /\r?\n/
    COMMENT: /#[^\n]*/
    CONTINUATION: /\\[ \t]*\r?\n/
    WS: /[ \t\f\r]+/
    %ignore WS
    %ignore COMMENT
    %ignore CONTINUATION
"""


_parser: Optional[Lark] = None


def get_parser() -> Lark:
    """The LALR parser for MUSL_GRAMMAR, built on first use."""
    global _parser
    if _parser is None:
        _parser = Lark(
            MUSL_GRAMMAR,
            start='program',
            parser='lalr',
            propagate_positions=True,
            maybe_placeholders=False,
        )
    return _parser


class LabelChecker(Visitor):
    """Collects label definitions and references from a parse tree."""

    def __init__(self):
        self.labels: Dict[str, int] = {}
        self.references: List[tuple] = []
        self.last_number = -1

    def define(self, name: str, line: int):
        if name in self.labels:
            raise MuslError(ErrorVal('LabelError', f"Duplicate label '{name}'"), line=line)
        self.labels[name] = line

    def number_label(self, tree: Tree):
        token = tree.children[0]
        n = parse_int(token.value)
        if n <= self.last_number:
            raise MuslError(ErrorVal('LabelError', f"Label {n} out of sequence"), line=token.line)
        self.last_number = n
        self.define(token.value, token.line)

    def name_label(self, tree: Tree):
        token = tree.children[0]
        self.define(token.value.lower(), token.line)

    def label_ref(self, tree: Tree):
        token = tree.children[0]
        self.references.append((token.value.lower(), token.line))


def _describe(e: UnexpectedInput) -> str:
    if isinstance(e, UnexpectedCharacters):
        return f"Unexpected character {e.char!r}"
    if isinstance(e, UnexpectedEOF):
        return "Unexpected end of input"
    if isinstance(e, UnexpectedToken):
        return f"Unexpected token {e.token!r}"
    return "Invalid syntax"


def _source_line(source: str, line: Optional[int]) -> str:
    lines = source.splitlines()
    if line is None or line < 1 or line > len(lines):
        return ''
    return lines[line - 1]


def parse_script(source: str) -> Tree:
    """Parse ``source`` into a Lark tree, raising MuslError on bad syntax."""
    try:
        return get_parser().parse(source)
    except UnexpectedInput as e:
        line = e.line if isinstance(getattr(e, 'line', None), int) and e.line > 0 else None
        raise MuslError(ErrorVal('SyntaxError', _describe(e)), line=line,
                        text=_source_line(source, line))


def check_script(source: str):
    """Validate a whole script without running it.

    Raises :class:`MuslError` with ``line`` set for the first syntax or
    label problem found.
    """
    tree = parse_script(source)
    checker = LabelChecker()
    try:
        checker.visit_topdown(tree)
    except MuslError as e:
        e.text = _source_line(source, e.line)
        raise
    for name, line in checker.references:
        if name not in checker.labels:
            raise MuslError(ErrorVal('LabelError', f"GOTO/GOSUB to undefined label '{name}'"),
                            line=line, text=_source_line(source, line))
