"""
tinysh Shell Module

Provides the interactive command-line shell:
- Command parsing
- Environment expansion
- Built-in commands
- Pipeline execution
- I/O redirection
"""

from .parser import (
    CommandParser,
    CommandSegment,
    JoinOperator,
    RedirectSpec,
    Token,
    TokenType,
)
from .expander import EnvironmentExpander, snapshot_environment
from .builtins import BuiltinCommands
from .shell import Shell

__all__ = [
    'CommandParser',
    'CommandSegment',
    'JoinOperator',
    'RedirectSpec',
    'Token',
    'TokenType',
    'EnvironmentExpander',
    'snapshot_environment',
    'BuiltinCommands',
    'Shell',
]
