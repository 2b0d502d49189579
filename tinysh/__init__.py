"""
tinysh - A line-oriented command interpreter

Runs one line at a time: environment expansion, && / || segments,
| pipelines, < > >> redirects, a handful of builtins and external
processes.
"""

__version__ = "1.0.0"

from .shell.shell import Shell

__all__ = [
    'Shell',
]
