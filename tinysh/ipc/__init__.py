"""
tinysh IPC Module

OS pipes joining pipeline stages.
"""

from .pipe import Pipe, PipeSet

__all__ = ['Pipe', 'PipeSet']
