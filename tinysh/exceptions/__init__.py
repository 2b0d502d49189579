"""
tinysh Exception Hierarchy

All custom exceptions inherit from ShellException, which carries the
operation or command name used to report the error to the user.

Architecture:
    ShellException (Base)
    ├── ConfigError
    ├── BuiltinError
    ├── ProcessException
    │   ├── ProcessCreationError
    │   └── CommandNotFoundError
    └── IOException
        ├── RedirectError
        └── PipeError
"""

from .shell_exceptions import (
    ShellException,
    ConfigError,
    BuiltinError,
)

from .process_exceptions import (
    ProcessException,
    ProcessCreationError,
    CommandNotFoundError,
)

from .io_exceptions import (
    IOException,
    RedirectError,
    PipeError,
)

__all__ = [
    # Shell exceptions
    "ShellException",
    "ConfigError",
    "BuiltinError",
    # Process exceptions
    "ProcessException",
    "ProcessCreationError",
    "CommandNotFoundError",
    # I/O exceptions
    "IOException",
    "RedirectError",
    "PipeError",
]
