from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import typer

from svls import __version__

TRACE = 5

app = typer.Typer(add_completion=False)


class LogLevel(str, Enum):
    off = "off"
    trace = "trace"
    debug = "debug"
    info = "info"
    warn = "warn"
    error = "error"


_LOG_LEVELS = {
    LogLevel.trace: TRACE,
    LogLevel.debug: logging.DEBUG,
    LogLevel.info: logging.INFO,
    LogLevel.warn: logging.WARNING,
    LogLevel.error: logging.ERROR,
}


def configure_logging(level: LogLevel, log_file: Path) -> None:
    """Send log records to ``log_file``; ``off`` leaves logging unconfigured."""
    if level is LogLevel.off:
        return
    logging.addLevelName(TRACE, "TRACE")
    # Opening the file happens here so an unwritable path fails at startup.
    handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(_LOG_LEVELS[level])


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"svls {__version__}")
        raise typer.Exit(code=0)


def _default_start() -> None:
    from svls.server import start

    start()


@app.command()
def main(
    ctx: typer.Context,
    log_level: LogLevel = typer.Option(
        LogLevel.off, "--log-level", help="The level of log printing"
    ),
    log_file: Path = typer.Option(
        Path("svls.log"), "--log-file", help="The file to print log information to"
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True
    ),
) -> None:
    """SystemVerilog language server speaking LSP over stdio."""
    configure_logging(log_level, log_file)
    logging.getLogger(__name__).debug("start")
    start_fn: Callable[[], None] = (ctx.obj or {}).get("start", _default_start)
    start_fn()


def entrypoint() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    entrypoint()
