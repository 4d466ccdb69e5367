from typing import IO, List, Optional

from musl.errors import MuslError
from musl.values import ErrorVal

NUM_FILES = 10


class BasicIO:
    """File table shared by the I/O functions of one interpreter.

    Scripts refer to open files by their slot number in the table.
    """
    def __init__(self, num_files: int = NUM_FILES):
        self.files: List[Optional[IO[str]]] = [None] * num_files
        self.at_eof: List[bool] = [False] * num_files

    def handle(self, fileno: int, caller: str) -> IO[str]:
        if fileno < 0 or fileno >= len(self.files) or self.files[fileno] is None:
            raise MuslError(ErrorVal('NativeError', f"Invalid file handle in {caller}()"))
        return self.files[fileno]

    def open_file(self, filename: str, mode: str) -> int:
        for fileno, f in enumerate(self.files):
            if f is None:
                break
        else:
            raise MuslError(ErrorVal('NativeError', "Too many open files"))
        try:
            self.files[fileno] = open(filename, mode, encoding='utf-8')
        except (OSError, ValueError):
            raise MuslError(ErrorVal('NativeError', "Unable to OPEN() file"))
        self.at_eof[fileno] = False
        return fileno

    def close_file(self, fileno: int):
        f = self.handle(fileno, 'CLOSE')
        f.close()
        self.files[fileno] = None
        self.at_eof[fileno] = False

    def eof(self, fileno: int) -> int:
        self.handle(fileno, 'EOF')
        return 1 if self.at_eof[fileno] else 0

    def read_line(self, fileno: int) -> str:
        f = self.handle(fileno, 'READ$')
        try:
            line = f.readline()
        except (OSError, ValueError):
            raise MuslError(ErrorVal('NativeError', "Couldn't READ$() from file"))
        if line == '':
            self.at_eof[fileno] = True
        return line.rstrip('\r\n')

    def write_line(self, fileno: int, items: List[str]):
        f = self.handle(fileno, 'WRITE')
        try:
            f.write(' '.join(items) + '\n')
        except (OSError, ValueError):
            raise MuslError(ErrorVal('NativeError', "Couldn't WRITE() to file"))

    def close_all(self):
        for fileno, f in enumerate(self.files):
            if f is not None:
                f.close()
                self.files[fileno] = None
