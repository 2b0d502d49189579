"""
Process Exceptions

Exceptions raised while creating external processes.

Version: 1.0.0
"""

from typing import Optional, Any, List

from .shell_exceptions import ShellException


class ProcessException(ShellException):
    """
    Base exception for all process-related errors.

    Attributes:
        command: Name of the command being launched
        argv: Full argument vector, if known
    """

    def __init__(
        self,
        message: str,
        command: str,
        argv: Optional[List[str]] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if argv is not None:
            ctx["argv"] = argv
        super().__init__(
            message=message,
            prefix=command,
            error_code=error_code or 2000,
            context=ctx
        )
        self.command = command
        self.argv = argv


class ProcessCreationError(ProcessException):
    """
    The operating system refused to start a process.

    Raised for start failures other than a missing executable, for
    example a permission problem or a path that is a directory.

    Example:
        >>> raise ProcessCreationError("Permission denied", command="./x")
    """

    def __init__(
        self,
        message: str,
        command: str,
        argv: Optional[List[str]] = None,
        errno: Optional[int] = None
    ) -> None:
        ctx = {}
        if errno is not None:
            ctx["errno"] = errno
        super().__init__(
            message=message,
            command=command,
            argv=argv,
            error_code=2001,
            context=ctx
        )
        self.errno = errno


class CommandNotFoundError(ProcessException):
    """
    No executable with the requested name could be found.

    Example:
        >>> raise CommandNotFoundError("nosuchcmd")
    """

    def __init__(
        self,
        command: str,
        argv: Optional[List[str]] = None
    ) -> None:
        super().__init__(
            message="command not found",
            command=command,
            argv=argv,
            error_code=2002
        )
