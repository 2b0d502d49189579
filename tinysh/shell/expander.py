"""
Environment Expander

Substitutes ``$NAME`` references using the session's environment map.

Version: 1.0.0
"""

import os
from typing import Optional, Mapping


def snapshot_environment(source: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """
    Copy the host environment into the session's own mapping.

    Args:
        source: Mapping to copy, ``os.environ`` by default

    Returns:
        A new dict owned by the session
    """
    return dict(os.environ if source is None else source)


class EnvironmentExpander:
    """
    Replaces ``$NAME`` with the value of ``NAME``.

    Every entry of the mapping is substituted in turn, anywhere in the
    text. There is no word-boundary check, so ``$HOME`` also matches the
    front of ``$HOMEX``; when names overlap the result follows the
    mapping's iteration order.

    The mapping is shared with the caller, never copied or modified.

    Example:
        >>> EnvironmentExpander({'USER': 'ada'}).expand('hi $USER')
        'hi ada'
    """

    def __init__(self, environ: dict[str, str]):
        self._environ = environ

    @property
    def environ(self) -> dict[str, str]:
        return self._environ

    def expand(self, text: str) -> str:
        """Expand every ``$NAME`` occurrence in ``text``."""
        if '$' not in text:
            return text

        for name, value in self._environ.items():
            text = text.replace('$' + name, value)
        return text
