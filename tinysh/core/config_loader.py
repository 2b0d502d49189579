"""
tinysh Configuration Loader

Configuration management for the interpreter:
- Optional JSON configuration file (named by TINYSH_CONFIG)
- Default value handling for every setting
- Runtime configuration updates by dotted key
- Type-safe access to configuration values

Version: 1.0.0
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, List
import threading

from tinysh.exceptions import ConfigError


CONFIG_ENV_VAR = "TINYSH_CONFIG"


@dataclass
class ShellConfig:
    """Read loop and line execution settings."""
    prompt: str = "tinysh> "
    welcome_message: str = "Welcome to tinysh! Type 'exit' to quit."
    farewell_message: str = "Goodbye!"
    conditional_gating: bool = False


@dataclass
class ProcessConfig:
    """External process and redirect settings."""
    ps_command: List[str] = field(default_factory=lambda: ["ps", "aux"])
    kill_signal: str = "SIGTERM"
    file_mode: int = 0o644


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "WARNING"
    log_file: Optional[str] = None
    console_output: bool = False


@dataclass
class Config:
    """
    Main configuration container.

    Holds all configuration settings for the interpreter.
    """
    shell: ShellConfig = field(default_factory=ShellConfig)
    process: ProcessConfig = field(default_factory=ProcessConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoader:
    """
    Configuration loader and manager.

    Handles loading configuration from JSON files, validating
    settings, and providing runtime configuration access.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('tinysh.json')
        >>> print(config.shell.prompt)
        tinysh>
    """

    _instance: Optional['ConfigLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigLoader':
        """Singleton pattern for configuration access."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._config = Config()
            return cls._instance

    def load(self, config_path: str) -> Config:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            ConfigError: If the file cannot be read, parsed or validated
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                path=config_path
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in configuration file: {e}",
                path=config_path
            )
        except OSError as e:
            raise ConfigError(
                f"Cannot read configuration file: {e}",
                path=config_path
            )

        if not isinstance(data, dict):
            raise ConfigError(
                "Configuration root must be a JSON object",
                path=config_path
            )

        self._config = self._parse_config(data)
        return self._config

    def load_from_env(self) -> Config:
        """Load the file named by TINYSH_CONFIG, or keep defaults if unset."""
        config_path = os.environ.get(CONFIG_ENV_VAR)
        if not config_path:
            return self.config
        return self.load(config_path)

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into Config object."""
        config = Config()

        unknown = set(data) - {'shell', 'process', 'logging'}
        if unknown:
            raise ConfigError(
                f"Unknown configuration section: {sorted(unknown)[0]}"
            )

        # Parse shell config
        if 'shell' in data:
            shell_data = self._section(data, 'shell')
            config.shell = ShellConfig(
                prompt=shell_data.get('prompt', config.shell.prompt),
                welcome_message=shell_data.get('welcome_message', config.shell.welcome_message),
                farewell_message=shell_data.get('farewell_message', config.shell.farewell_message),
                conditional_gating=self._flag(
                    shell_data, 'shell', 'conditional_gating', config.shell.conditional_gating
                ),
            )

        # Parse process config
        if 'process' in data:
            proc_data = self._section(data, 'process')
            config.process = ProcessConfig(
                ps_command=list(proc_data.get('ps_command', config.process.ps_command)),
                kill_signal=proc_data.get('kill_signal', config.process.kill_signal),
                file_mode=proc_data.get('file_mode', config.process.file_mode),
            )
            if not config.process.ps_command:
                raise ConfigError("process.ps_command must not be empty")
            if not isinstance(config.process.file_mode, int):
                raise ConfigError("process.file_mode must be an integer")

        # Parse logging config
        if 'logging' in data:
            log_data = self._section(data, 'logging')
            config.logging = LoggingConfig(
                level=log_data.get('level', config.logging.level),
                log_file=log_data.get('log_file', config.logging.log_file),
                console_output=self._flag(
                    log_data, 'logging', 'console_output', config.logging.console_output
                ),
            )

        return config

    @staticmethod
    def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
        """Fetch a configuration section, which must be a JSON object."""
        section = data[name]
        if not isinstance(section, dict):
            raise ConfigError(f"Configuration section '{name}' must be an object")
        return section

    @staticmethod
    def _flag(section: dict[str, Any], section_name: str, key: str, default: bool) -> bool:
        """Fetch a boolean setting; strings such as "false" are rejected."""
        value = section.get(key, default)
        if not isinstance(value, bool):
            raise ConfigError(f"{section_name}.{key} must be true or false")
        return value

    @property
    def config(self) -> Config:
        """Get the current configuration."""
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'shell.prompt')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        obj: Any = self._config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Args:
            key: Dot-notation key (e.g., 'shell.conditional_gating')
            value: Value to set

        Note:
            This modifies configuration at runtime but does not
            persist changes to disk.
        """
        parts = key.split('.')
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigError(f"Invalid configuration key: {key}")

        final_key = parts[-1]
        if hasattr(obj, final_key):
            setattr(obj, final_key, value)
        else:
            raise ConfigError(f"Invalid configuration key: {key}")

    def reset(self) -> None:
        """Drop any loaded settings and return to defaults."""
        self._config = Config()

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        def dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, '__dataclass_fields__'):
                return {
                    k: dataclass_to_dict(v)
                    for k, v in obj.__dict__.items()
                }
            elif isinstance(obj, list):
                return [dataclass_to_dict(item) for item in obj]
            return obj

        return dataclass_to_dict(self._config)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    return ConfigLoader().config
