"""svls package root."""

from svls.exceptions import ConfigError, NeverThrown
from svls.invariants import never

__all__ = ["__version__", "ConfigError", "NeverThrown", "never"]

__version__ = "0.2.0"
