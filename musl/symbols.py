from typing import Any, Dict, Optional


def fold_name(name: str) -> str:
    """Case-fold a symbol name.

    Only the part before the first ``[`` is folded; the index portion of
    a synthetic array name such as ``list$[Foo]`` keeps its case.
    """
    base, sep, index = name.partition('[')
    return base.lower() + sep + index


class SymbolTable:
    """Maps case-insensitive names to entries.

    One class serves the variable, label and function namespaces. Entries
    are whatever the owner stores: values, cursor positions or native
    functions.
    """
    def __init__(self):
        self.values: Dict[str, Any] = {}

    def __contains__(self, name: str) -> bool:
        return fold_name(name) in self.values

    def __len__(self) -> int:
        return len(self.values)

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        return self.values.get(fold_name(name), default)

    def set(self, name: str, value: Any):
        self.values[fold_name(name)] = value

    def remove(self, name: str):
        self.values.pop(fold_name(name), None)

    def clear(self):
        self.values.clear()
