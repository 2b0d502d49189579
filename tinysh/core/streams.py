"""
Standard Stream Binding

Describes where the interpreter's own standard streams point. ``None``
means "inherit": external processes get the interpreter's file
descriptor and builtins write through ``sys.stdout``/``sys.stderr``.
Explicit streams must be binary file objects backed by a descriptor.

Version: 1.0.0
"""

import sys
from dataclasses import dataclass
from typing import Optional, BinaryIO, TextIO


@dataclass
class StandardStreams:
    """The interpreter's stdin, stdout and stderr."""
    stdin: Optional[BinaryIO] = None
    stdout: Optional[BinaryIO] = None
    stderr: Optional[BinaryIO] = None

    def write_out(self, text: str, target: Optional[BinaryIO] = None) -> None:
        """Write text to ``target`` if given, else to the interpreter's stdout."""
        self.write_bytes(text.encode(), target)

    def write_bytes(self, data: bytes, target: Optional[BinaryIO] = None) -> None:
        """Write raw bytes, unchanged, to ``target`` or the interpreter's stdout."""
        write_raw(target if target is not None else self.stdout, data, sys.stdout)

    def write_err(self, text: str) -> None:
        """Write text to the interpreter's error stream."""
        write_raw(self.stderr, text.encode(), sys.stderr)

    def flush(self) -> None:
        """Flush pending output before a child process writes to the same descriptor."""
        for stream, fallback in ((self.stdout, sys.stdout), (self.stderr, sys.stderr)):
            (stream if stream is not None else fallback).flush()


def write_raw(stream: Optional[BinaryIO], data: bytes, fallback: TextIO) -> None:
    """
    Write and flush ``data``.

    With no explicit stream the bytes go to the fallback text stream's
    underlying binary buffer, after any text already queued on it.

    Raises:
        OSError: If the write or flush fails
    """
    if stream is None:
        fallback.flush()
        stream = fallback.buffer
    stream.write(data)
    stream.flush()
