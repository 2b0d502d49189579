"""
Shell Built-in Commands

Implements the commands executed inside the interpreter:
cd, pwd, echo, kill and ps.

Version: 1.0.0
"""

import os
import signal
import subprocess
from typing import Optional, Callable, List, BinaryIO

from tinysh.exceptions import BuiltinError, ShellException
from tinysh.logger import get_logger


class BuiltinCommands:
    """
    Built-in shell commands.

    These commands are executed directly by the shell without
    creating a new process (``ps`` runs its listing helper but
    prints the result itself). Every handler takes the argument list
    and the stage's output stream and returns an exit status.
    """

    def __init__(self, shell):
        """
        Initialize built-in commands.

        Args:
            shell: The shell instance
        """
        self._shell = shell
        self._logger = get_logger('builtins')
        self._commands: dict[str, Callable[[List[str], Optional[BinaryIO]], int]] = {
            'cd': self.cmd_cd,
            'pwd': self.cmd_pwd,
            'echo': self.cmd_echo,
            'kill': self.cmd_kill,
            'ps': self.cmd_ps,
        }

    def is_builtin(self, name: str) -> bool:
        """Check if a command is built-in."""
        return name in self._commands

    def execute(self, name: str, args: List[str], stdout: Optional[BinaryIO] = None) -> int:
        """
        Execute a built-in command.

        Args:
            name: Command name
            args: Command arguments
            stdout: Redirected output file, or None for the shell's stdout

        Returns:
            Exit code
        """
        cmd = self._commands.get(name)
        if cmd is None:
            return 127

        try:
            return cmd(args, stdout)
        except ShellException as e:
            error = e
        except OSError as e:
            # Output that could not be written, e.g. a full disk
            error = BuiltinError(name, e.strerror or str(e), context={'errno': e.errno})

        self._logger.warning(str(error), context={'command': name})
        self._shell.report(error.report())
        return 1

    def _write(self, text: str, stdout: Optional[BinaryIO]) -> None:
        self._shell.streams.write_out(text, stdout)

    # Command implementations

    def cmd_cd(self, args: List[str], stdout: Optional[BinaryIO] = None) -> int:
        """Change directory; defaults to $HOME."""
        if not args:
            path = self._shell.environ.get('HOME', '')
        else:
            path = args[0]

        path = self._shell.expander.expand(path)

        try:
            os.chdir(path)
        except OSError as e:
            raise BuiltinError('cd', f"{path}: {e.strerror or e}", context={'path': path}) from e

        self._logger.debug("Changed directory", context={'cwd': path})
        return 0

    def cmd_pwd(self, args: List[str], stdout: Optional[BinaryIO] = None) -> int:
        """Print working directory."""
        try:
            cwd = os.getcwd()
        except OSError as e:
            raise BuiltinError('pwd', e.strerror or str(e)) from e

        self._write(cwd + '\n', stdout)
        return 0

    def cmd_echo(self, args: List[str], stdout: Optional[BinaryIO] = None) -> int:
        """Echo arguments."""
        self._write(' '.join(args) + '\n', stdout)
        return 0

    def cmd_kill(self, args: List[str], stdout: Optional[BinaryIO] = None) -> int:
        """Send the termination signal to a process."""
        if not args:
            raise BuiltinError('kill', "usage: kill <pid>")

        try:
            pid = int(args[0])
        except ValueError:
            raise BuiltinError('kill', f"invalid pid: {args[0]}") from None

        # 0 and negative pids address process groups
        if pid <= 0:
            raise BuiltinError('kill', f"invalid pid: {args[0]}")

        sig = self._termination_signal()
        try:
            os.kill(pid, sig)
        except ProcessLookupError as e:
            raise BuiltinError('kill', f"process not found: {pid}", context={'pid': pid}) from e
        except (OSError, OverflowError) as e:
            raise BuiltinError(
                'kill',
                f"failed to send signal: {getattr(e, 'strerror', None) or e}",
                context={'pid': pid}
            ) from e

        self._logger.info("Sent signal", pid=pid, context={'signal': sig.name})
        return 0

    def _termination_signal(self) -> signal.Signals:
        name = self._shell.config.process.kill_signal
        try:
            return signal.Signals[name]
        except KeyError:
            raise BuiltinError('kill', f"invalid signal: {name}") from None

    def cmd_ps(self, args: List[str], stdout: Optional[BinaryIO] = None) -> int:
        """List processes using the host's listing helper."""
        command = self._shell.config.process.ps_command

        try:
            completed = subprocess.run(command, capture_output=True, check=True)
        except FileNotFoundError as e:
            raise BuiltinError('ps', f"{command[0]}: command not found") from e
        except subprocess.CalledProcessError as e:
            raise BuiltinError('ps', f"{command[0]} exited with status {e.returncode}") from e
        except OSError as e:
            raise BuiltinError('ps', e.strerror or str(e)) from e

        self._shell.streams.write_bytes(completed.stdout, stdout)
        return 0
