"""
tinysh Shell Module

The interactive command-line shell: reads one line at a time and runs
it through expansion, conditional and pipeline splitting, redirects,
builtins and external processes.

Version: 1.0.0
"""

import signal
from typing import Optional, List

from .parser import CommandParser, CommandSegment, JoinOperator
from .builtins import BuiltinCommands
from .expander import EnvironmentExpander, snapshot_environment
from tinysh.core.config_loader import Config, get_config
from tinysh.core.streams import StandardStreams
from tinysh.exceptions import (
    CommandNotFoundError,
    ProcessCreationError,
    ShellException,
)
from tinysh.logger import get_logger
from tinysh.process.launcher import ProcessLauncher


class Shell:
    """
    tinysh Interactive Shell.

    Provides:
    - Environment variable expansion
    - Conditional segments (&&, ||)
    - Pipeline execution
    - I/O redirection
    - Built-in commands

    By default ``&&`` and ``||`` are parsed but do not gate execution:
    every segment of a line runs. Setting ``shell.conditional_gating``
    makes them short-circuit on the previous segment's exit status.

    Example:
        >>> shell = Shell()
        >>> shell.execute_line("echo hello | tr a-z A-Z")
        HELLO
        0
    """

    def __init__(
        self,
        environ: Optional[dict[str, str]] = None,
        config: Optional[Config] = None,
        streams: Optional[StandardStreams] = None
    ):
        self._logger = get_logger('shell')
        self._config = config if config is not None else get_config()
        self._environ = environ if environ is not None else snapshot_environment()
        self._streams = streams if streams is not None else StandardStreams()
        self._expander = EnvironmentExpander(self._environ)
        self._parser = CommandParser()
        self._builtins = BuiltinCommands(self)
        self._launcher = ProcessLauncher(self._streams, file_mode=self._config.process.file_mode)
        self._last_status = 0

    @property
    def environ(self) -> dict[str, str]:
        return self._environ

    @property
    def config(self) -> Config:
        return self._config

    @property
    def streams(self) -> StandardStreams:
        return self._streams

    @property
    def expander(self) -> EnvironmentExpander:
        return self._expander

    @property
    def parser(self) -> CommandParser:
        return self._parser

    @property
    def builtins(self) -> BuiltinCommands:
        return self._builtins

    @property
    def last_status(self) -> int:
        return self._last_status

    def run(self) -> int:
        """
        Run the interactive shell.

        This is the main REPL loop. It ends on the line ``exit`` or at
        end of input, after printing the farewell message.

        Returns:
            Exit status for the interpreter process (always 0)
        """
        shell_config = self._config.shell

        self._streams.write_out(f"{shell_config.welcome_message}\n")

        while True:
            try:
                line = self._read_line()
            except EOFError:
                self._streams.write_out(f"\n{shell_config.farewell_message}\n")
                break
            except KeyboardInterrupt:
                self._streams.write_out("^C\n")
                continue
            except UnicodeDecodeError as e:
                self.report(f"tinysh: error reading input: {e}")
                continue

            line = line.strip()
            if not line:
                continue

            if line == 'exit':
                self._streams.write_out(f"{shell_config.farewell_message}\n")
                break

            try:
                self.execute_line(line)
            except KeyboardInterrupt:
                self._streams.write_out("\n")
            except OSError as e:
                self._logger.error(
                    "I/O error while executing line",
                    context={'line': line, 'errno': e.errno}
                )
                self.report(f"tinysh: {e.strerror or e}")

        return 0

    def _read_line(self) -> str:
        """Prompt for and read one line; raises EOFError at end of input."""
        prompt = self._config.shell.prompt

        if self._streams.stdin is None:
            return input(prompt)

        self._streams.write_out(prompt)
        raw = self._streams.stdin.readline()
        if not raw:
            raise EOFError
        return raw.decode()

    def execute_line(self, line: str) -> int:
        """
        Execute one command line.

        Args:
            line: Command line string

        Returns:
            Exit status of the last segment that ran
        """
        line = self._expander.expand(line)

        for segment in self._parser.split_conditionals(line):
            if not self._should_execute(segment):
                self._logger.debug(
                    "Segment skipped",
                    context={'segment': segment.text, 'status': self._last_status}
                )
                continue
            self._last_status = self._execute_segment(segment)

        return self._last_status

    def _should_execute(self, segment: CommandSegment) -> bool:
        if not segment.execution_gate:
            return False
        if not self._config.shell.conditional_gating:
            return True
        if segment.join_operator == JoinOperator.AND:
            return self._last_status == 0
        if segment.join_operator == JoinOperator.OR:
            return self._last_status != 0
        return True

    def _execute_segment(self, segment: CommandSegment) -> int:
        stages = self._parser.split_pipeline(segment.text)

        if len(stages) == 1:
            return self._execute_stage(stages[0])
        return self._execute_pipeline(stages)

    def _execute_stage(self, text: str) -> int:
        """Run a single stage with its redirects applied."""
        command_text, redirects = self._parser.parse_redirects(text)

        # An ambiguous stage is resolved as one external program name
        if redirects.ambiguous:
            argv = [command_text] if command_text else []
        else:
            argv = command_text.split()

        if not argv:
            return 0

        try:
            with self._launcher.open_redirects(redirects) as files:
                if not redirects.ambiguous and self._builtins.is_builtin(argv[0]):
                    return self._builtins.execute(argv[0], argv[1:], files.stdout)
                status = self._launcher.run_single(argv, files)
        except ShellException as e:
            return self._fail(e)

        if status != 0:
            self.report(f"{argv[0]}: {self._describe_status(status)}")
        return status

    def _execute_pipeline(self, stages: List[str]) -> int:
        """Run two or more stages joined by pipes; redirects are not applied."""
        try:
            result = self._launcher.run_pipeline(stages)
        except ShellException as e:
            return self._fail(e)

        if result.error is not None:
            return self._fail(result.error)

        if result.returncode is None:
            return 0
        return result.returncode

    def _fail(self, error: ShellException) -> int:
        """Report an error to the user and map it to an exit status."""
        self._logger.warning(str(error), context={'prefix': error.prefix})
        self.report(error.report())

        if isinstance(error, CommandNotFoundError):
            return 127
        if isinstance(error, ProcessCreationError):
            return 126
        return 1

    @staticmethod
    def _describe_status(status: int) -> str:
        if status < 0:
            try:
                return f"terminated by signal {signal.Signals(-status).name}"
            except ValueError:
                return f"terminated by signal {-status}"
        return f"exited with status {status}"

    def report(self, message: str) -> None:
        """Write a one-line error report to the interpreter's error stream."""
        self._streams.write_err(f"{message}\n")

