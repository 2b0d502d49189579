"""
Shell Exceptions

Base exception for tinysh plus the errors raised by the interpreter itself:
configuration loading and builtin command failures.

Version: 1.0.0
"""

from typing import Optional, Any


class ShellException(Exception):
    """
    Base exception for all tinysh errors.

    Every error the interpreter can detect is raised as a subclass of
    this exception and reported by the shell as a single line prefixed
    with the operation or command that failed.

    Attributes:
        message: Human-readable error description
        prefix: Operation or command name used when reporting
        error_code: Numeric error code for programmatic handling
        context: Additional context about the error

    Example:
        >>> raise ShellException("something went wrong", prefix="tinysh")
    """

    def __init__(
        self,
        message: str,
        prefix: str = "tinysh",
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.prefix = prefix
        self.error_code = error_code or 1000
        self.context = context or {}

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({context_str})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"prefix={self.prefix!r}, "
            f"error_code={self.error_code})"
        )

    def report(self) -> str:
        """Format the error as the one-line message shown to the user."""
        return f"{self.prefix}: {self.message}"


class ConfigError(ShellException):
    """
    Configuration file could not be loaded or holds invalid values.

    Example:
        >>> raise ConfigError("Invalid configuration key: shell.colour")
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if path is not None:
            ctx["path"] = path
        super().__init__(
            message=message,
            prefix="config",
            error_code=1001,
            context=ctx
        )
        self.path = path


class BuiltinError(ShellException):
    """
    A builtin command failed.

    The prefix is the builtin's name, so ``cd`` failing to change
    directory is reported as ``cd: <reason>``.

    Example:
        >>> raise BuiltinError("kill", "invalid pid: abc")
    """

    def __init__(
        self,
        command: str,
        message: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=message,
            prefix=command,
            error_code=3000,
            context=context
        )
        self.command = command
