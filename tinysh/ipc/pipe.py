"""
Pipe Module

OS pipes used to wire pipeline stages together.

A PipeSet owns every descriptor it creates until release(). Closing is
idempotent: each end is closed at most once, and errors from closing
are discarded because a child may already have released its copy.

Version: 1.0.0
"""

import os
from contextlib import suppress
from dataclasses import dataclass
from typing import Optional, List, Iterator

from tinysh.exceptions import PipeError
from tinysh.logger import get_logger


@dataclass
class Pipe:
    """A unidirectional byte pipe."""
    index: int
    read_fd: Optional[int] = None
    write_fd: Optional[int] = None

    @classmethod
    def open(cls, index: int) -> 'Pipe':
        """Create a new OS pipe."""
        read_fd, write_fd = os.pipe()
        return cls(index=index, read_fd=read_fd, write_fd=write_fd)

    def close_read(self) -> None:
        """Close the read end if it is still open."""
        if self.read_fd is not None:
            fd, self.read_fd = self.read_fd, None
            with suppress(OSError):
                os.close(fd)

    def close_write(self) -> None:
        """Close the write end if it is still open."""
        if self.write_fd is not None:
            fd, self.write_fd = self.write_fd, None
            with suppress(OSError):
                os.close(fd)

    def close(self) -> None:
        self.close_read()
        self.close_write()

    @property
    def closed(self) -> bool:
        return self.read_fd is None and self.write_fd is None


class PipeSet:
    """
    The N-1 pipes joining the N stages of a pipeline.

    Pipe ``i`` carries data from stage ``i`` to stage ``i + 1``.

    Example:
        >>> with PipeSet.create(2) as pipes:
        ...     stdin_of_stage_1 = pipes[0].read_fd
    """

    def __init__(self, pipes: Optional[List[Pipe]] = None):
        self._pipes: List[Pipe] = pipes or []
        self._logger = get_logger('ipc')

    @classmethod
    def create(cls, count: int) -> 'PipeSet':
        """
        Create ``count`` pipes.

        Raises:
            PipeError: If the OS refuses a pipe; pipes created so far
                are released before raising
        """
        pipe_set = cls()
        for index in range(count):
            try:
                pipe_set._pipes.append(Pipe.open(index))
            except OSError as e:
                pipe_set.release()
                raise PipeError(
                    f"cannot create pipe: {e.strerror or e}",
                    pipe_index=index
                ) from e

        pipe_set._logger.debug("Created pipes", context={'count': count})
        return pipe_set

    def __len__(self) -> int:
        return len(self._pipes)

    def __getitem__(self, index: int) -> Pipe:
        return self._pipes[index]

    def __iter__(self) -> Iterator[Pipe]:
        return iter(self._pipes)

    def stdin_for(self, stage: int) -> Optional[int]:
        """Read end feeding ``stage``, or None for the first stage."""
        if stage == 0:
            return None
        return self._pipes[stage - 1].read_fd

    def stdout_for(self, stage: int) -> Optional[int]:
        """Write end fed by ``stage``, or None for the last stage."""
        if stage >= len(self._pipes):
            return None
        return self._pipes[stage].write_fd

    def release_stage(self, stage: int) -> None:
        """Close the interpreter's copies of the ends handed to ``stage``."""
        if stage > 0:
            self._pipes[stage - 1].close_read()
        if stage < len(self._pipes):
            self._pipes[stage].close_write()

    def release(self) -> None:
        """Close every remaining pipe end. Safe to call more than once."""
        for pipe in self._pipes:
            pipe.close()

    @property
    def released(self) -> bool:
        return all(pipe.closed for pipe in self._pipes)

    def __enter__(self) -> 'PipeSet':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
