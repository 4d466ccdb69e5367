from typing import Optional
from musl.values import ErrorVal


class MuslError(Exception):
    """Exception type used to propagate fatal MUSL errors.

    The run boundary fills in ``line`` and ``text`` (the source snippet at
    the failure point) once the error has been caught.
    """
    def __init__(self, err: ErrorVal, line: Optional[int] = None, text: Optional[str] = None):
        super().__init__(f"{err.name}: {err.message}")
        self.err = err
        self.line = line
        self.text = text

    @property
    def name(self) -> str:
        return self.err.name

    @property
    def message(self) -> str:
        return self.err.message
