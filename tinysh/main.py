#!/usr/bin/env python3
"""
tinysh - main entry point

Startup sequence:
1. Load configuration (TINYSH_CONFIG, optional)
2. Initialize logging
3. Snapshot the process environment
4. Run the interactive shell until ``exit`` or end of input

No command-line arguments are accepted.

Version: 1.0.0
"""

import sys

from tinysh.core.config_loader import ConfigLoader
from tinysh.exceptions import ConfigError
from tinysh.logger import Logger, LogLevel, get_logger
from tinysh.shell.expander import snapshot_environment
from tinysh.shell.shell import Shell


def main() -> None:
    """Boot the interpreter and exit with its status."""
    try:
        config = ConfigLoader().load_from_env()
    except ConfigError as e:
        print(e.report(), file=sys.stderr)
        sys.exit(1)

    Logger.initialize(
        level=LogLevel.from_name(config.logging.level),
        log_file=config.logging.log_file,
        console_output=config.logging.console_output,
    )
    get_logger('shell').info("Interpreter starting", context={'version': '1.0.0'})

    shell = Shell(environ=snapshot_environment(), config=config)
    status = shell.run()

    Logger.shutdown()
    sys.exit(status)


if __name__ == '__main__':
    main()
