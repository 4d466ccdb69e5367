from .io import populate_io_functions, BasicIO
from .system import populate_system_functions


def load_host_library(interp) -> BasicIO:
    """Register every host function used by the command line front end."""
    basic_io = populate_io_functions(interp)
    populate_system_functions(interp)
    return basic_io


__all__ = [
    'load_host_library',
    'populate_io_functions',
    'populate_system_functions',
    'BasicIO',
]
