# MUSL language package
# This package provides an embeddable interpreter for the MUSL scripting language.
from .errors import MuslError
from .interpreter import run_program, read_script, Interpreter
from .grammar import check_script

__all__ = [
    'run_program',
    'read_script',
    'check_script',
    'Interpreter',
    'MuslError',
]
