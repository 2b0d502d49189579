"""
Process Launcher Module

Creates external processes for a single command or a pipeline, binds
their standard streams, waits for them and releases every file and
pipe descriptor before returning.

Version: 1.0.0
"""

import os
import subprocess
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Optional, List, Union, BinaryIO, TYPE_CHECKING

from tinysh.core.streams import StandardStreams
from tinysh.exceptions import (
    CommandNotFoundError,
    ProcessCreationError,
    ProcessException,
    RedirectError,
)
from tinysh.ipc.pipe import PipeSet
from tinysh.logger import get_logger

if TYPE_CHECKING:
    from tinysh.shell.parser import RedirectSpec


# A child stream: inherited (None), an open file, or a raw descriptor
StreamTarget = Union[None, int, BinaryIO]


@dataclass
class ProcessHandle:
    """One live external process."""
    argv: List[str]
    process: subprocess.Popen
    returncode: Optional[int] = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def command(self) -> str:
        return self.argv[0]

    def wait(self) -> int:
        """Block until the process exits and return its exit status."""
        self.returncode = self.process.wait()
        return self.returncode


@dataclass
class RedirectHandles:
    """
    Files opened for one stage's redirects.

    Both handles are owned here until close(), which is idempotent and
    closes each handle even when the other fails to flush.
    """
    stdin: Optional[BinaryIO] = None
    stdout: Optional[BinaryIO] = None
    _closed: bool = field(default=False, repr=False)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for handle in (self.stdin, self.stdout):
            if handle is not None:
                # A failed flush was already reported by the writer
                with suppress(OSError):
                    handle.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> 'RedirectHandles':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""
    handles: List[ProcessHandle] = field(default_factory=list)
    error: Optional[ProcessException] = None

    @property
    def returncode(self) -> Optional[int]:
        """Exit status of the last started stage."""
        if not self.handles:
            return None
        return self.handles[-1].returncode


class ProcessLauncher:
    """
    Starts and waits for external commands.

    Provides:
    - Redirect file opening with guaranteed release
    - Single-stage execution with redirected or inherited streams
    - N-stage pipelines joined by N-1 OS pipes

    Standard error of every child is always inherited.

    Example:
        >>> launcher = ProcessLauncher(StandardStreams())
        >>> with launcher.open_redirects(RedirectSpec(output_path='out.txt')) as files:
        ...     launcher.run_single(['ls', '-l'], files)
        0
    """

    def __init__(self, streams: StandardStreams, file_mode: int = 0o644):
        self._streams = streams
        self._file_mode = file_mode
        self._logger = get_logger('launcher')

    @property
    def streams(self) -> StandardStreams:
        return self._streams

    def open_redirects(self, spec: 'RedirectSpec') -> RedirectHandles:
        """
        Open the files named by a redirect spec.

        The input is opened read-only. The output is created if absent
        and truncated, or appended to in append mode.

        Raises:
            RedirectError: If a file cannot be opened; anything opened
                before the failure is closed first
        """
        handles = RedirectHandles()

        if spec.input_path is not None:
            try:
                handles.stdin = open(spec.input_path, 'rb')
            except OSError as e:
                raise RedirectError(
                    f"cannot open input file {spec.input_path}: {e.strerror or e}",
                    path=spec.input_path,
                    direction="input"
                ) from e

        if spec.output_path is not None:
            flags = os.O_WRONLY | os.O_CREAT
            flags |= os.O_APPEND if spec.append_mode else os.O_TRUNC
            try:
                fd = os.open(spec.output_path, flags, self._file_mode)
            except OSError as e:
                handles.close()
                raise RedirectError(
                    f"cannot open output file {spec.output_path}: {e.strerror or e}",
                    path=spec.output_path,
                    direction="output"
                ) from e
            handles.stdout = os.fdopen(fd, 'wb')

        return handles

    def start(
        self,
        argv: List[str],
        stdin: StreamTarget = None,
        stdout: StreamTarget = None
    ) -> ProcessHandle:
        """
        Start one external process.

        ``None`` for a stream inherits the interpreter's own.

        Raises:
            CommandNotFoundError: If the executable does not exist
            ProcessCreationError: For any other start failure
        """
        command = argv[0]
        self._streams.flush()

        try:
            process = subprocess.Popen(
                argv,
                stdin=stdin if stdin is not None else self._streams.stdin,
                stdout=stdout if stdout is not None else self._streams.stdout,
                stderr=self._streams.stderr,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(command, argv=argv) from e
        except OSError as e:
            raise ProcessCreationError(
                e.strerror or str(e),
                command=command,
                argv=argv,
                errno=e.errno
            ) from e
        except ValueError as e:
            raise ProcessCreationError(str(e), command=command, argv=argv) from e

        self._logger.debug("Started process", pid=process.pid, context={'argv': argv})
        return ProcessHandle(argv=argv, process=process)

    def run_single(self, argv: List[str], files: Optional[RedirectHandles] = None) -> int:
        """
        Run one command to completion.

        Args:
            argv: Command and arguments
            files: Opened redirect files; the caller owns and closes them

        Returns:
            The command's exit status
        """
        stdin = files.stdin if files is not None else None
        stdout = files.stdout if files is not None else None

        handle = self.start(argv, stdin=stdin, stdout=stdout)
        status = handle.wait()
        self._logger.debug(
            "Process exited",
            pid=handle.pid,
            context={'command': handle.command, 'status': status}
        )
        return status

    def run_pipeline(self, stages: List[str]) -> PipelineResult:
        """
        Run a pipeline of external commands.

        Stage ``i`` reads from pipe ``i - 1`` (the first stage inherits
        stdin) and writes to pipe ``i`` (the last stage inherits
        stdout). Stages are started one after another and run
        concurrently. After each start attempt the interpreter closes
        its copies of that stage's pipe ends so readers see end of file.

        A start failure stops launching; stages already started are
        left to finish and are still waited for, in start order. All
        pipe ends are released before returning.

        Args:
            stages: Raw stage texts; each is split on whitespace and
                empty stages are skipped

        Returns:
            PipelineResult with the started handles and any start error

        Raises:
            PipeError: If the pipes cannot be created
        """
        result = PipelineResult()

        with PipeSet.create(len(stages) - 1) as pipes:
            try:
                for index, stage in enumerate(stages):
                    argv = stage.split()
                    try:
                        if not argv:
                            self._logger.debug("Skipping empty stage", context={'stage': index})
                            continue
                        result.handles.append(self.start(
                            argv,
                            stdin=pipes.stdin_for(index),
                            stdout=pipes.stdout_for(index),
                        ))
                    except ProcessException as e:
                        self._logger.warning(
                            "Pipeline stage failed to start",
                            context={'stage': index, 'command': argv[0], 'error': e.message}
                        )
                        result.error = e
                        break
                    finally:
                        pipes.release_stage(index)
            finally:
                # Individual exit statuses are not reported
                self._wait_all(result.handles)

        self._logger.debug(
            "Pipeline finished",
            context={'stages': len(stages), 'started': len(result.handles)}
        )
        return result

    @staticmethod
    def _wait_all(handles: List[ProcessHandle]) -> None:
        """
        Reap every handle in start order.

        An interrupt while waiting does not abandon the remaining
        stages: the interrupted handle is waited for again, the rest
        are reaped, and the interrupt is re-raised afterwards.
        """
        interrupted: Optional[KeyboardInterrupt] = None

        for handle in handles:
            while True:
                try:
                    handle.wait()
                    break
                except KeyboardInterrupt as e:
                    interrupted = e

        if interrupted is not None:
            raise interrupted
