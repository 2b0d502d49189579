"""
tinysh Core Module

Components shared by every subsystem:
- Configuration Loader
- Standard stream binding
"""

from .config_loader import (
    ConfigLoader,
    Config,
    ShellConfig,
    ProcessConfig,
    LoggingConfig,
    get_config,
)
from .streams import StandardStreams

__all__ = [
    # Config
    'ConfigLoader',
    'Config',
    'ShellConfig',
    'ProcessConfig',
    'LoggingConfig',
    'get_config',
    # Streams
    'StandardStreams',
]
