"""
tinysh Process Module

External process creation:
- Redirect file handling
- Single-stage execution
- Pipeline execution
"""

from .launcher import (
    ProcessLauncher,
    ProcessHandle,
    RedirectHandles,
    PipelineResult,
)

__all__ = [
    'ProcessLauncher',
    'ProcessHandle',
    'RedirectHandles',
    'PipelineResult',
]
