"""
I/O Exceptions

Exceptions related to redirect files and inter-process pipes.

Version: 1.0.0
"""

from typing import Optional, Any

from .shell_exceptions import ShellException


class IOException(ShellException):
    """
    Base exception for redirect and pipe errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        prefix: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=message,
            prefix=prefix,
            error_code=error_code or 4000,
            context=context
        )


class RedirectError(IOException):
    """
    A redirect target could not be opened.

    Example:
        >>> raise RedirectError("cannot open input file in.txt: No such file", path="in.txt")
    """

    def __init__(
        self,
        message: str,
        path: str,
        direction: str = "input",
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["path"] = path
        ctx["direction"] = direction
        super().__init__(
            message=message,
            prefix="redirect",
            error_code=4001,
            context=ctx
        )
        self.path = path
        self.direction = direction


class PipeError(IOException):
    """
    Error creating or wiring a pipe.

    Example:
        >>> raise PipeError("Too many open files", pipe_index=3)
    """

    def __init__(
        self,
        message: str,
        pipe_index: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if pipe_index is not None:
            ctx["pipe_index"] = pipe_index
        super().__init__(
            message=message,
            prefix="pipe",
            error_code=4002,
            context=ctx
        )
        self.pipe_index = pipe_index
