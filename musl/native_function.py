from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class NativeFunction:
    """A host function callable from scripts.

    ``fn`` is invoked as ``fn(interpreter, args)`` and returns one value.
    """
    name: str
    fn: Callable[..., Any]

    def __repr__(self) -> str:
        return f"<native {self.name}>"
