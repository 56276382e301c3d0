"""Exception types raised inside svls."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from svls.model import ParseFailure


class NeverThrown(RuntimeError):
    """Raised by ``never()`` when a path that must be unreachable is reached."""

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})


class ConfigError(Exception):
    """A configuration file could not be used.

    Every variant carries the offending path. None of them are fatal: the
    caller substitutes a default and keeps going.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(str(path))
        self.path = path


class ConfigReadError(ConfigError):
    """The file exists but could not be read."""


class ConfigParseError(ConfigError):
    """The file was read but is not a valid settings document."""


class ConfigMissingError(ConfigError):
    """No ancestor directory holds the file."""


class SourceParseError(Exception):
    """The parse collaborator rejected the text."""

    def __init__(self, failure: ParseFailure) -> None:
        super().__init__("parse error")
        self.failure = failure
